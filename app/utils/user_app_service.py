from app.database import SupabaseClient
from app.models.user_model import UserProfile
from app.schemas.user_schema import (
    UserOut,
    UserLogin,
    UserRegister,
    LoginResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
)
from fastapi import HTTPException, status
from app.security.auth import create_token_pair, verify_refresh_token
from app.utils.exceptions import BackendError, to_http_exception
from app.logger import get_logger

logger = get_logger(__name__)


def _banned_exception(user: UserProfile) -> HTTPException:
    detail = "Your account has been banned"
    if user.ban_reason:
        detail = f"{detail}: {user.ban_reason}"
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UserService:
    @staticmethod
    def login_user(db: SupabaseClient, user_login: UserLogin) -> LoginResponse:
        """Check the credentials with the backend and issue a token pair"""
        username = user_login.username.strip()
        try:
            result = db.rpc(
                "login_user",
                {"p_username": username, "p_password": user_login.password.strip()},
            )
        except BackendError as e:
            logger.error(f"Error during login for {username}: {e.message}")
            raise to_http_exception(e)

        if not isinstance(result, dict) or not result.get("success") or not result.get("user"):
            logger.warning(f"Failed login attempt for username: {username}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials (Username or Password)",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user = UserProfile.model_validate(result["user"])
        if user.is_banned:
            logger.warning(f"Banned user tried to log in: {username}")
            raise _banned_exception(user)

        access_token, refresh_token = create_token_pair(user)
        logger.info(f"User logged in: {username}")
        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            user=UserOut.model_validate(user),
        )

    @staticmethod
    def register_user(db: SupabaseClient, user_register: UserRegister) -> UserOut:
        username = user_register.username.strip()
        try:
            result = db.rpc(
                "register_user",
                {
                    "p_username": username,
                    "p_password": user_register.password,
                    "p_full_name": user_register.full_name.strip(),
                    "p_email": user_register.email,
                    "p_phone_number": user_register.phone_number,
                },
            )
        except BackendError as e:
            logger.error(f"Error registering {username}: {e.message}")
            raise to_http_exception(e)

        if not isinstance(result, dict) or not result.get("success") or not result.get("user"):
            error = result.get("error") if isinstance(result, dict) else None
            logger.warning(f"Registration refused for {username}: {error}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error or "Registration failed",
            )

        user = UserProfile.model_validate(result["user"])
        logger.info(f"User registered: {username}")
        return UserOut.model_validate(user)

    @staticmethod
    def refresh_access_token(
        db: SupabaseClient, refresh_request: RefreshTokenRequest
    ) -> RefreshTokenResponse:
        """Generate new access and refresh tokens using valid refresh token"""
        user = verify_refresh_token(refresh_request.refresh_token, db)
        if user.is_banned:
            raise _banned_exception(user)

        access_token, refresh_token = create_token_pair(user)
        logger.info(f"Tokens refreshed for user: {user.id}")
        return RefreshTokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
        )


user_app_service = UserService()
