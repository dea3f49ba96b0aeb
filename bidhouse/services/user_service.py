"""
User Service

Registration only; sessions and tokens belong to the auth layer in front of
this service.
"""
import logging

from email_validator import EmailNotValidError, validate_email
from passlib.context import CryptContext
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from bidhouse.core.config import get_settings
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.models import User
from bidhouse.services.exceptions import StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


class UserService:

    @staticmethod
    def register_user(db: Session, email: str, password: str) -> User:
        """
        Create an account

        Raises:
            ValidationError: bad email, short password or email already taken
        """
        try:
            email = validate_email(email or "", check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValidationError(str(e), {"field": "email"}) from e

        min_length = get_settings().PASSWORD_MIN_LENGTH
        if not password or len(password) < min_length:
            raise ValidationError(
                f"Password must be at least {min_length} characters", {"field": "password"}
            )

        repo = AuctionRepository(db)
        try:
            if repo.get_user_by_email(email) is not None:
                raise ValidationError("User with this email already exists", {"field": "email"})

            user = repo.add_user(User(email=email, password_hash=pwd_context.hash(password)))
            db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            db.rollback()
            raise ValidationError("User with this email already exists", {"field": "email"}) from e
        except DBAPIError as e:
            db.rollback()
            logger.error(f"Store failure while registering user: {e}")
            raise StoreUnavailableError("The auction store is unavailable") from e
        except ValidationError:
            db.rollback()
            raise

        logger.info(f"Registered user {user.id}", extra={"user_id": user.id})
        return user

    @staticmethod
    def verify_password(user: User, password: str) -> bool:
        return pwd_context.verify(password, user.password_hash)
