from app.models.user import User
from app.models.auth_session import AuthSession
from app.models.project import Project

__all__ = ["User", "AuthSession", "Project"]
