from bson import ObjectId
from sqlalchemy import Boolean, Column, String

from ..database import Base


def generate_id() -> str:
    return str(ObjectId())


class User(Base):
    """SQLAlchemy model for application users."""

    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=generate_id)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    role = Column(String, default="user", nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    is_account_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
