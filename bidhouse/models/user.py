"""
User Model
"""
import uuid

from sqlalchemy import Column, String, DateTime

from bidhouse.core.utils import utcnow
from bidhouse.models import Base


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Marketplace account; credentials are owned by the auth layer"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

