import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app import models, schemas
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="User with this mobile number already exists")
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def update_profile(self, user: models.User, user_in: schemas.UserUpdate) -> models.User:
        update_data = user_in.model_dump(exclude_unset=True)

        mobile_number = update_data.get("mobile_number")
        if mobile_number and mobile_number != user.mobile_number:
            taken = self.db.query(models.User).filter(
                models.User.mobile_number == mobile_number,
                models.User.id != user.id,
            ).first()
            if taken:
                raise HTTPException(status_code=409, detail="User with this mobile number already exists")

        password = update_data.pop("password", None)
        if password:
            user.password_hash = get_password_hash(password)
        if update_data.get("name") is None:
            update_data.pop("name", None)
        for field, value in update_data.items():
            setattr(user, field, value)

        self._commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated their profile")
        return user
