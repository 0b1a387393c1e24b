from functools import lru_cache

from fastapi import Cookie, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.ai_engine import GeminiTextService, TextService
from app.db.repository import ProjectRepository, SqlProjectRepository
from app.db.session import get_db
from app.models.auth_session import AuthSession
from app.models.user import User
from app.schemas.project import Project

SESSION_COOKIE = "session_id"


def get_optional_user(
    session_id: str | None = Cookie(None, alias=SESSION_COOKIE),
    db: Session = Depends(get_db),
) -> User | None:
    if not session_id:
        return None
    session = db.query(AuthSession).filter(AuthSession.id == session_id).first()
    if not session:
        return None
    return db.query(User).filter(User.id == session.user_id).first()


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def get_project_repository(db: Session = Depends(get_db)) -> ProjectRepository:
    return SqlProjectRepository(db)


@lru_cache
def get_text_service() -> TextService:
    return GeminiTextService()


def ensure_owner(project: Project, user: User | None, action: str = "access") -> None:
    """Owned projects are only reachable by their owner; unowned ones are open."""
    if project.user_id and project.user_id != (user.id if user else None):
        raise HTTPException(status_code=401, detail=f"You do not have permission to {action} this project")
