"""
One chat turn, end to end.
Project turn: user msg save -> schema create/replace/none -> reply -> reply save.
Guest turn: same flow, nothing persisted.
Schema generation failure never breaks the turn: old schema stays.
"""
import enum
from dataclasses import dataclass, field
from typing import Optional

from app.core.ai_engine import TextService, generate_schema, get_chat_response
from app.core.logging import get_logger
from app.core.schema_classifier import Classifier, is_schema_generation_request, is_schema_update_request
from app.core.security import new_id
from app.db.repository import ProjectNotFoundError, ProjectRepository, StoreError, now_ms
from app.schemas.project import Message, Project, Schema

logger = get_logger(__name__)


class SchemaAction(str, enum.Enum):
    CREATE = "create"
    REPLACE = "replace"
    NONE = "none"


@dataclass
class TurnResult:
    reply: str
    schema: Optional[Schema]
    action: SchemaAction
    project: Optional[Project] = None
    messages: list[Message] = field(default_factory=list)


def decide_schema_action(
    current: Optional[Schema],
    message: str,
    classify: Classifier = is_schema_generation_request,
) -> SchemaAction:
    requested = classify(message)
    if current is None:
        return SchemaAction.CREATE if requested else SchemaAction.NONE
    if requested or is_schema_update_request(message):
        return SchemaAction.REPLACE
    return SchemaAction.NONE


def run_project_turn(
    repository: ProjectRepository,
    project_id: str,
    message: str,
    service: TextService,
    classify: Classifier = is_schema_generation_request,
) -> TurnResult:
    project = repository.get_project(project_id)
    if not project:
        raise ProjectNotFoundError(project_id)

    updated = repository.append_message(project_id, content=message, is_user=True)
    if not updated:
        raise StoreError("Failed to add message")

    action = decide_schema_action(project.database_schema, message, classify)
    schema = updated.database_schema
    if action is not SchemaAction.NONE:
        try:
            logger.info("Generating schema (%s) for project %s", action.value, project_id)
            new_schema = generate_schema(updated.messages, service)
            repository.set_schema(project_id, new_schema)
            schema = new_schema
        except Exception:
            # Non-fatal for the chat turn: reply still goes out, previous schema kept
            logger.exception("Schema generation failed for project %s", project_id)
            action = SchemaAction.NONE

    reply = get_chat_response(updated.messages, service)
    final = repository.append_message(project_id, content=reply, is_user=False)
    if not final:
        raise StoreError("Failed to add AI response")

    return TurnResult(reply=reply, schema=schema, action=action, project=final, messages=final.messages)


def run_guest_turn(
    history: list[Message],
    message: str,
    service: TextService,
    classify: Classifier = is_schema_generation_request,
) -> TurnResult:
    """Guest mode: history lives in the browser, nothing is saved."""
    messages = [*history, Message(id=new_id(), content=message, is_user=True, timestamp=now_ms())]

    schema = None
    action = SchemaAction.NONE
    if classify(message):
        action = SchemaAction.CREATE
        try:
            schema = generate_schema(messages, service)
        except Exception:
            logger.exception("[GUEST] Schema generation failed")
            action = SchemaAction.NONE

    reply = get_chat_response(messages, service)
    messages.append(Message(id=new_id(), content=reply, is_user=False, timestamp=now_ms()))
    return TurnResult(reply=reply, schema=schema, action=action, messages=messages)
