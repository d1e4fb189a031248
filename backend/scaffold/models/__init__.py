from scaffold.models.role import Role, user_roles
from scaffold.models.user import User

__all__ = ["Role", "User", "user_roles"]
