from .command import UserCommandService
from .service import UserQueryService

__all__ = ["UserCommandService", "UserQueryService"]
