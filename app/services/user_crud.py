from fastapi import HTTPException, status
from uuid import UUID
from datetime import datetime, timezone
from app.database import SupabaseClient
from app.models.user_model import UserProfile
from app.schemas.user_schema import LocationUpdate, UserUpdate
from app.utils.exceptions import BackendError, to_http_exception
from app.logger import get_logger

logger = get_logger(__name__)


class UserCRUD:
    @staticmethod
    def get_profile(db: SupabaseClient, user_id: UUID) -> UserProfile:
        try:
            row = db.select_one("users", filters={"id": f"eq.{user_id}"})
        except BackendError as e:
            logger.error(f"Error fetching user {user_id}: {e.message}")
            raise to_http_exception(e)
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found: This user does not exist in the database"
            )
        return UserProfile.model_validate(row)

    @staticmethod
    def update_profile(db: SupabaseClient, user_id: UUID, user_update: UserUpdate) -> UserProfile:
        update_data = {
            key: value
            for key, value in user_update.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not update_data:
            return UserCRUD.get_profile(db, user_id)

        try:
            db.set_user_context(str(user_id))
            rows = db.update("users", update_data, filters={"id": f"eq.{user_id}"})
        except BackendError as e:
            logger.error(f"Error updating user {user_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found: This user does not exist in the database"
            )
        logger.info(f"Profile updated: {user_id}")
        return UserProfile.model_validate(rows[0])


    @staticmethod
    def update_location(db: SupabaseClient, user_id: UUID, location: LocationUpdate) -> UserProfile:
        """Store where the user is, used for nearby products and delivery distance"""
        update_data = location.model_dump()
        update_data["location_updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            db.set_user_context(str(user_id))
            rows = db.update("users", update_data, filters={"id": f"eq.{user_id}"})
        except BackendError as e:
            logger.error(f"Error updating location of user {user_id}: {e.message}")
            raise to_http_exception(e)

        if not rows:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found: This user does not exist in the database"
            )
        logger.info(f"Location updated for user {user_id}")
        return UserProfile.model_validate(rows[0])


user_crud = UserCRUD()
