from .service import RoleQueryService

__all__ = ["RoleQueryService"]
