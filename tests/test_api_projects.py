SCHEMA = {
    "tables": [
        {"name": "Users", "fields": [{"name": "id", "type": "INT", "isPrimaryKey": True}]},
        {
            "name": "Orders",
            "fields": [
                {"name": "id", "type": "INT", "isPrimaryKey": True},
                {"name": "user_id", "type": "INT"},
            ],
        },
    ],
    "type": "sql",
    "code": "CREATE TABLE Users (\\n  id INT PRIMARY KEY\\n);",
}


def _new_project(client, title="Shop"):
    resp = client.post("/api/projects", json={"title": title})
    assert resp.status_code == 201
    return resp.json()


def test_create_and_list_projects(signed_in):
    project = _new_project(signed_in)
    assert project["title"] == "Shop"
    assert project["messages"] == []
    assert project["schema"] is None
    assert project["userId"]
    assert project["createdAt"] == project["updatedAt"]

    listed = signed_in.get("/api/projects").json()
    assert [p["id"] for p in listed] == [project["id"]]


def test_default_title_and_guest_owned_project(client):
    project = _new_project(client, title=None)
    assert project["title"] == "New Project"
    assert project["userId"] is None
    # unowned projects are open to anyone
    assert client.get(f"/api/projects/{project['id']}").status_code == 200


def test_listing_requires_login(client):
    assert client.get("/api/projects").status_code == 401


def test_unknown_project_is_404(signed_in):
    assert signed_in.get("/api/projects/missing").status_code == 404


def test_other_users_cannot_touch_project(make_client, signed_in):
    project = _new_project(signed_in)

    bob = make_client()
    bob.post("/api/auth/signup", json={"name": "Bob", "email": "bob@example.com", "password": "pw"})
    url = f"/api/projects/{project['id']}"

    assert bob.get(url).status_code == 401
    assert bob.patch(url, json={"title": "mine"}).status_code == 401
    resp = bob.delete(url)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "You do not have permission to delete this project"
    assert bob.get("/api/projects").json() == []


def test_patch_title_and_schema(signed_in):
    project = _new_project(signed_in)
    resp = signed_in.patch(f"/api/projects/{project['id']}", json={"title": "Store", "schema": SCHEMA})
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Store"
    assert [t["name"] for t in body["schema"]["tables"]] == ["Users", "Orders"]
    assert body["updatedAt"] >= project["updatedAt"]


def test_delete_project(signed_in):
    project = _new_project(signed_in)
    assert signed_in.delete(f"/api/projects/{project['id']}").json() == {"success": True}
    assert signed_in.get(f"/api/projects/{project['id']}").status_code == 404


def test_view_is_shareable(make_client, signed_in):
    project = _new_project(signed_in)
    signed_in.patch(f"/api/projects/{project['id']}", json={"schema": SCHEMA})

    resp = make_client().get(f"/api/projects/{project['id']}/view")
    assert resp.status_code == 200
    assert resp.json()["title"] == "Shop"
    assert "messages" not in resp.json()


def test_diagram_infers_relationships(signed_in):
    project = _new_project(signed_in)
    signed_in.patch(f"/api/projects/{project['id']}", json={"schema": SCHEMA})

    diagram = signed_in.get(f"/api/projects/{project['id']}/diagram").json()
    assert len(diagram["tables"]) == 2
    assert diagram["relationships"] == [
        {
            "sourceTable": "Orders",
            "sourceField": "user_id",
            "targetTable": "Users",
            "targetField": "id",
            "inferred": True,
        }
    ]


def test_diagram_without_schema_is_empty(signed_in):
    project = _new_project(signed_in)
    diagram = signed_in.get(f"/api/projects/{project['id']}/diagram").json()
    assert diagram == {"tables": [], "relationships": []}


def test_export_downloads_normalized_sql(signed_in):
    project = _new_project(signed_in)
    signed_in.patch(f"/api/projects/{project['id']}", json={"schema": SCHEMA})

    resp = signed_in.get(f"/api/projects/{project['id']}/export")
    assert resp.status_code == 200
    assert resp.text == "CREATE TABLE Users (\n  id INT PRIMARY KEY\n);"
    disposition = resp.headers["content-disposition"]
    assert disposition.startswith("attachment")
    assert "KeyMap%20database.sql" in disposition


def test_export_without_schema_is_404(signed_in):
    project = _new_project(signed_in)
    assert signed_in.get(f"/api/projects/{project['id']}/export").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health").headers["x-robots-tag"] == "noindex, nofollow"
