from .schema import UserEntry, UserCreateRequest, UserUpdateRequest
from .service import UserService

__all__ = ["UserEntry", "UserCreateRequest", "UserUpdateRequest", "UserService"]
