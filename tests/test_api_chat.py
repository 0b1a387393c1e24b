from app.api.deps import get_project_repository, get_text_service
from app.core.ai_engine import CHAT_ERROR_REPLY
from app.core.schema_extractor import fallback_schema
from main import app

from fakes import InMemoryProjectRepository, UnavailableTextService


def _new_project(client):
    return client.post("/api/projects", json={"title": "Blog"}).json()["id"]


def test_chat_generates_schema_on_request(signed_in, fake_service):
    project_id = _new_project(signed_in)

    first = signed_in.post(f"/api/chat/{project_id}", json={"message": "I need a blog with posts and authors"})
    assert first.status_code == 200
    assert first.json()["action"] == "none"
    assert first.json()["schema"] is None
    assert first.json()["response"] == fake_service.chat_reply

    second = signed_in.post(f"/api/chat/{project_id}", json={"message": "generate the schema now"})
    body = second.json()
    assert body["action"] == "create"
    assert {"Authors", "Posts"} <= {t["name"] for t in body["schema"]["tables"]}

    project = signed_in.get(f"/api/projects/{project_id}").json()
    assert project["schema"] == body["schema"]

    history = signed_in.get(f"/api/chat/{project_id}").json()["messages"]
    assert [m["isUser"] for m in history] == [True, False, True, False]


def test_chat_rejects_empty_message(signed_in):
    project_id = _new_project(signed_in)
    resp = signed_in.post(f"/api/chat/{project_id}", json={"message": "   "})
    assert resp.status_code == 400


def test_chat_unknown_project(signed_in):
    assert signed_in.post("/api/chat/missing", json={"message": "hi"}).status_code == 404
    assert signed_in.get("/api/chat/missing").status_code == 404


def test_chat_on_someone_elses_project(make_client, signed_in):
    project_id = _new_project(signed_in)
    stranger = make_client()
    resp = stranger.post(f"/api/chat/{project_id}", json={"message": "hi"})
    assert resp.status_code == 401


def test_chat_with_service_down_still_answers(client):
    app.dependency_overrides[get_text_service] = UnavailableTextService
    project_id = _new_project(client)

    resp = client.post(f"/api/chat/{project_id}", json={"message": "generate the schema now"})
    body = resp.json()
    assert resp.status_code == 200
    assert body["response"] == CHAT_ERROR_REPLY
    assert body["schema"] == fallback_schema().model_dump(by_alias=True)


def test_store_failure_returns_500(client):
    repo = InMemoryProjectRepository(fail_appends_after=1)
    project = repo.create_project()
    app.dependency_overrides[get_project_repository] = lambda: repo

    resp = client.post(f"/api/chat/{project.id}", json={"message": "hello"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to add message"


def test_guest_chat_returns_history_and_schema(client):
    resp = client.post(
        "/api/chat/guest",
        json={
            "message": "generate the schema now",
            "messages": [{"content": "I need a blog with posts and authors", "isUser": True}],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [m["isUser"] for m in body["messages"]] == [True, True, False]
    assert all(m["id"] and m["timestamp"] for m in body["messages"])
    assert {"Authors", "Posts"} <= {t["name"] for t in body["schema"]["tables"]}


def test_guest_chat_without_request_has_no_schema(client):
    resp = client.post("/api/chat/guest", json={"message": "hello", "messages": []})
    assert resp.json()["schema"] is None
