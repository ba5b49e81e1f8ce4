"""Users as consumed by lending."""

from .directory import User, UserDirectory

__all__ = ["User", "UserDirectory"]
