from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from uuid import UUID
from typing import Annotated
from app.services.user_crud import user_crud
from app.schemas.user_schema import UserOut, UserRegister, UserUpdate, UserLogin, LoginResponse, \
    RefreshTokenRequest, RefreshTokenResponse, MyProfileOut, LocationUpdate
from app.database import SupabaseClient, get_db
from app.security.auth import get_current_active_user
from app.utils.user_app_service import user_app_service
from app.models.user_model import UserProfile
from app.logger import get_logger


user_router = APIRouter()
logger = get_logger(__name__)


# AUTH ENDPOINTS

@user_router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register_user(user: UserRegister, db: SupabaseClient = Depends(get_db)):
    """Register a new user"""
    try:
        logger.info(f"Registering user: {user.username}")
        return user_app_service.register_user(db, user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error registering user {user.username}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while registering user"
        )


@user_router.post("/token", response_model=LoginResponse)
def user_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: SupabaseClient = Depends(get_db),
):
    """OAuth2 password flow, used by the interactive docs"""
    logger.info(f"Token request for user: {form_data.username}")
    try:
        user_login = UserLogin(username=form_data.username, password=form_data.password)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials (Username or Password)",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return user_app_service.login_user(db, user_login)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during token generation for {form_data.username}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during token generation"
        )


@user_router.post("/auth/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login_user(user_login: UserLogin, db: SupabaseClient = Depends(get_db)):
    """Login user and return access and refresh tokens"""
    try:
        logger.info(f"Login attempt for user: {user_login.username}")
        return user_app_service.login_user(db, user_login)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login for {user_login.username}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during login"
        )


@user_router.post("/auth/refresh", response_model=RefreshTokenResponse, status_code=status.HTTP_200_OK)
def refresh_access_token(refresh_request: RefreshTokenRequest, db: SupabaseClient = Depends(get_db)):
    """Refresh access token using valid refresh token"""
    try:
        logger.info("Refreshing access token")
        return user_app_service.refresh_access_token(db, refresh_request)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error refreshing token: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while refreshing token"
        )


# PROFILE ENDPOINTS

@user_router.get("/me", response_model=MyProfileOut, status_code=status.HTTP_200_OK)
def get_current_user_profile(current_user: UserProfile = Depends(get_current_active_user)):
    """Get current user profile"""
    return MyProfileOut.model_validate(current_user)


@user_router.patch("/me", response_model=MyProfileOut, status_code=status.HTTP_200_OK)
def update_current_user_profile(
        user_update: UserUpdate,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Update current user profile"""
    try:
        logger.info(f"User updating profile: {current_user.id}")
        updated_user = user_crud.update_profile(db, current_user.id, user_update)
        return MyProfileOut.model_validate(updated_user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating profile for {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating profile"
        )


@user_router.put("/me/location", response_model=MyProfileOut, status_code=status.HTTP_200_OK)
def update_current_user_location(
        location: LocationUpdate,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Set the caller's location for nearby products and delivery"""
    try:
        logger.info(f"User updating location: {current_user.id}")
        updated_user = user_crud.update_location(db, current_user.id, location)
        return MyProfileOut.model_validate(updated_user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating location for {current_user.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating location"
        )


@user_router.get("/users/{user_id}", response_model=UserOut, status_code=status.HTTP_200_OK)
def get_user_by_id(
        user_id: UUID,
        current_user: UserProfile = Depends(get_current_active_user),
        db: SupabaseClient = Depends(get_db)
):
    """Public profile of another user, e.g. a product owner"""
    try:
        logger.info(f"User {current_user.id} fetching user {user_id}")
        return UserOut.model_validate(user_crud.get_profile(db, user_id))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching user"
        )
