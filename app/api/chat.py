from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import ensure_owner, get_optional_user, get_project_repository, get_text_service
from app.core.ai_engine import TextService
from app.core.chat_turn import run_guest_turn, run_project_turn
from app.core.logging import get_logger
from app.core.security import new_id
from app.db.repository import ProjectNotFoundError, ProjectRepository, StoreError, now_ms
from app.models.user import User
from app.schemas.chat import ChatRequest, GuestChatRequest
from app.schemas.project import Message

router = APIRouter(prefix="/api/chat", tags=["Chat"])
logger = get_logger(__name__)


def _dump_schema(schema):
    return schema.model_dump(by_alias=True) if schema else None


@router.post("/guest")
def guest_chat(data: GuestChatRequest, service: TextService = Depends(get_text_service)):
    """Guest mode: kuch save nahi hota, history client bhejta hai."""
    message = (data.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")
    history = [
        Message(
            id=m.id or new_id(),
            content=m.content,
            is_user=m.is_user,
            timestamp=m.timestamp or now_ms(),
        )
        for m in data.messages
    ]
    result = run_guest_turn(history, message, service)
    return {
        "response": result.reply,
        "messages": [m.model_dump(by_alias=True) for m in result.messages],
        "schema": _dump_schema(result.schema),
    }


@router.post("/{project_id}")
def project_chat(
    project_id: str,
    data: ChatRequest,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
    service: TextService = Depends(get_text_service),
):
    message = (data.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    project = repo.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    ensure_owner(project, user)

    try:
        result = run_project_turn(repo, project_id, message, service)
    except ProjectNotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")
    except StoreError as e:
        logger.error("Chat turn store failure for project %s: %s", project_id, e)
        raise HTTPException(status_code=500, detail="Failed to add message")

    return {
        "response": result.reply,
        "schema": _dump_schema(result.schema),
        "action": result.action.value,
    }


@router.get("/{project_id}")
def chat_history(
    project_id: str,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    project = repo.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    ensure_owner(project, user)
    return {"messages": [m.model_dump(by_alias=True) for m in project.messages]}
