from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from app.api.deps import ensure_owner, get_current_user, get_optional_user, get_project_repository
from app.core.relationships import infer_relationships
from app.core.schema_extractor import normalize_code
from app.db.repository import DEFAULT_PROJECT_TITLE, ProjectRepository
from app.models.user import User
from app.schemas.project import Project, ProjectCreateRequest, ProjectUpdateRequest, Schema

router = APIRouter(prefix="/api/projects", tags=["Projects"])


def _dump(project: Project) -> dict:
    return project.model_dump(by_alias=True)


def _get_or_404(repo: ProjectRepository, project_id: str) -> Project:
    project = repo.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def export_filename(schema: Schema) -> str:
    return "KeyMap database.sql" if schema.type == "sql" else "KeyMap database.json"


@router.get("")
def list_projects(
    user: User = Depends(get_current_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    return [_dump(p) for p in repo.list_projects(user.id)]


@router.post("", status_code=201)
def create_project(
    data: ProjectCreateRequest,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    project = repo.create_project(data.title or DEFAULT_PROJECT_TITLE, user_id=user.id if user else None)
    return _dump(project)


@router.get("/{project_id}")
def get_project(
    project_id: str,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    project = _get_or_404(repo, project_id)
    ensure_owner(project, user)
    return _dump(project)


@router.get("/{project_id}/view")
def view_project(project_id: str, repo: ProjectRepository = Depends(get_project_repository)):
    """Read-only share view: schema + title only, no owner check."""
    project = _get_or_404(repo, project_id)
    schema = project.database_schema
    return {
        "id": project.id,
        "title": project.title,
        "schema": schema.model_dump(by_alias=True) if schema else None,
    }


@router.get("/{project_id}/diagram")
def project_diagram(project_id: str, repo: ProjectRepository = Depends(get_project_repository)):
    project = _get_or_404(repo, project_id)
    schema = project.database_schema
    return {
        "tables": [t.model_dump(by_alias=True) for t in schema.tables] if schema else [],
        "relationships": [r.to_dict() for r in infer_relationships(schema)],
    }


@router.get("/{project_id}/export")
def export_schema(project_id: str, repo: ProjectRepository = Depends(get_project_repository)):
    project = _get_or_404(repo, project_id)
    schema = project.database_schema
    if not schema:
        raise HTTPException(status_code=404, detail="Project has no schema yet")
    filename = export_filename(schema)
    return PlainTextResponse(
        normalize_code(schema.code),
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.patch("/{project_id}")
def update_project(
    project_id: str,
    data: ProjectUpdateRequest,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    project = _get_or_404(repo, project_id)
    ensure_owner(project, user, "update")
    updates = {}
    if data.title is not None:
        updates["title"] = data.title
    if data.database_schema is not None:
        updates["schema"] = data.database_schema
    updated = repo.update_project(project_id, updates)
    if not updated:
        raise HTTPException(status_code=404, detail="Project not found")
    return _dump(updated)


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    user: User | None = Depends(get_optional_user),
    repo: ProjectRepository = Depends(get_project_repository),
):
    project = _get_or_404(repo, project_id)
    ensure_owner(project, user, "delete")
    if not repo.delete_project(project_id):
        raise HTTPException(status_code=500, detail="Failed to delete project")
    return {"success": True}
