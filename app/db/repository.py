"""
Project store: whole-document get/replace, no field-level updates.
- ProjectRepository = interface the chat pipeline depends on
- SqlProjectRepository = SQLAlchemy backing (projects table, JSON columns)
- Concurrent turns on one project are not coordinated: last write wins
"""
import time
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.core.security import new_id
from app.models.project import Project as ProjectRow
from app.schemas.project import Message, Project, Schema

logger = get_logger(__name__)

DEFAULT_PROJECT_TITLE = "New Project"


class StoreError(Exception):
    """Write failed or the store is unreachable."""


class ProjectNotFoundError(StoreError):
    def __init__(self, project_id: str):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


def now_ms() -> int:
    return int(time.time() * 1000)


class ProjectRepository:
    """Store contract used by the core. Methods return None when the project is missing."""

    def get_project(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def list_projects(self, user_id: str) -> list[Project]:
        raise NotImplementedError

    def create_project(self, title: str = DEFAULT_PROJECT_TITLE, user_id: str | None = None) -> Project:
        raise NotImplementedError

    def update_project(self, project_id: str, updates: dict[str, Any]) -> Optional[Project]:
        raise NotImplementedError

    def delete_project(self, project_id: str) -> bool:
        raise NotImplementedError

    def append_message(self, project_id: str, content: str, is_user: bool) -> Optional[Project]:
        project = self.get_project(project_id)
        if not project:
            return None
        message = Message(id=new_id(), content=content, is_user=is_user, timestamp=now_ms())
        return self.update_project(project_id, {"messages": [*project.messages, message]})

    def set_schema(self, project_id: str, schema: Schema) -> Optional[Project]:
        return self.update_project(project_id, {"schema": schema})


def _row_to_project(row: ProjectRow) -> Project:
    return Project(
        id=row.id,
        title=row.title,
        created_at=row.created_at,
        updated_at=row.updated_at,
        messages=[Message.model_validate(m) for m in (row.messages or [])],
        database_schema=Schema.model_validate(row.schema_data) if row.schema_data else None,
        user_id=row.user_id,
    )


class SqlProjectRepository(ProjectRepository):
    def __init__(self, db: Session):
        self.db = db

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Project store write failed: %s", e)
            raise StoreError("Failed to write project") from e

    def get_project(self, project_id: str) -> Optional[Project]:
        row = self.db.query(ProjectRow).filter(ProjectRow.id == project_id).first()
        return _row_to_project(row) if row else None

    def list_projects(self, user_id: str) -> list[Project]:
        rows = (
            self.db.query(ProjectRow)
            .filter(ProjectRow.user_id == user_id)
            .order_by(ProjectRow.updated_at.desc())
            .all()
        )
        return [_row_to_project(r) for r in rows]

    def create_project(self, title: str = DEFAULT_PROJECT_TITLE, user_id: str | None = None) -> Project:
        ts = now_ms()
        row = ProjectRow(
            id=new_id(),
            title=(title or "").strip() or DEFAULT_PROJECT_TITLE,
            user_id=user_id,
            messages=[],
            schema_data=None,
            created_at=ts,
            updated_at=ts,
        )
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return _row_to_project(row)

    def update_project(self, project_id: str, updates: dict[str, Any]) -> Optional[Project]:
        row = self.db.query(ProjectRow).filter(ProjectRow.id == project_id).first()
        if not row:
            return None
        if "title" in updates and updates["title"] is not None:
            row.title = str(updates["title"]).strip() or row.title
        if "messages" in updates:
            # New list every time so SQLAlchemy sees the JSON change
            row.messages = [
                m.model_dump(by_alias=True) if isinstance(m, Message) else dict(m)
                for m in updates["messages"]
            ]
        if "schema" in updates:
            schema = updates["schema"]
            row.schema_data = schema.model_dump(by_alias=True) if isinstance(schema, Schema) else schema
        row.updated_at = now_ms()
        self._commit()
        self.db.refresh(row)
        return _row_to_project(row)

    def delete_project(self, project_id: str) -> bool:
        row = self.db.query(ProjectRow).filter(ProjectRow.id == project_id).first()
        if not row:
            return False
        self.db.delete(row)
        self._commit()
        return True
