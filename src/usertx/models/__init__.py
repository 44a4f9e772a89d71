from .base import Base
from .core import User, UserRole

__all__ = [
    "Base",
    "User",
    "UserRole",
]
