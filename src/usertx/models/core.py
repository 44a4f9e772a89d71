from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String

from .base import Base


class User(Base):
    """User model. Rows are only ever bulk inserted."""
    __tablename__ = "users"

    name = Column(String(255), nullable=False)


class UserRole(Base):
    """Link between a user and an opaque role identifier."""
    __tablename__ = "user_roles"
    __table_args__ = (
        CheckConstraint("role_id > 0", name="ck_user_roles_role_id_positive"),
    )

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Integer, nullable=False)
