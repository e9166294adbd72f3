import sqlite3
from datetime import datetime

from todo_api.repositories import DatabaseError


def create_todo_payload(title="Test Task", description="Do something", completed=False):
    return {
        "title": title,
        "description": description,
        "completed": completed,
    }


def assert_todo_shape(todo: dict):
    for key in ["id", "title", "description", "completed", "created_at", "updated_at"]:
        assert key in todo
    assert isinstance(todo["id"], int)
    assert isinstance(todo["title"], str)
    assert isinstance(todo["description"], str)
    assert isinstance(todo["completed"], bool)
    # Timestamps are ISO8601 strings parseable by datetime.fromisoformat
    datetime.fromisoformat(todo["created_at"])
    datetime.fromisoformat(todo["updated_at"])


class TestHealth:
    def test_no_cross_origin_headers(self, client):
        res = client.get("/health", headers={"Origin": "http://elsewhere.test"})
        assert res.status_code == 200
        assert "access-control-allow-origin" not in res.headers

    def test_health_check(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("application/json")
        assert res.json() == {"status": "healthy", "database": "connected"}

    def test_health_check_reports_unreachable_database(self, client, store, monkeypatch):
        def broken_ping():
            raise DatabaseError("Error verifying database connection: server closed the connection")

        monkeypatch.setattr(store, "ping", broken_ping)
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "degraded", "database": "disconnected"}


class TestTodosCRUD:
    def test_example_lifecycle(self, client):
        res = client.post("/todos", json={"title": "buy milk"})
        assert res.status_code == 201
        assert res.headers["content-type"].startswith("application/json")
        created = res.json()
        assert created["id"] == 1
        assert created["title"] == "buy milk"
        assert created["description"] == ""
        assert created["completed"] is False

        res_get = client.get("/todos/1")
        assert res_get.status_code == 200
        assert res_get.json() == created

        res_del = client.delete("/todos/1")
        assert res_del.status_code == 204
        assert res_del.text == ""

        assert client.get("/todos/1").status_code == 404

    def test_create_todo_assigns_id_and_timestamps(self, client):
        res = client.post("/todos", json=create_todo_payload(title="Pay bills", description="Electricity"))
        assert res.status_code == 201
        todo = res.json()
        assert_todo_shape(todo)
        assert todo["id"] > 0
        assert todo["title"] == "Pay bills"
        assert todo["description"] == "Electricity"
        assert todo["completed"] is False
        assert todo["created_at"] == todo["updated_at"]

    def test_create_todo_null_description_is_empty_string(self, client):
        res = client.post("/todos", json=create_todo_payload(title="No details", description=None, completed=True))
        assert res.status_code == 201
        todo = res.json()
        assert todo["description"] == ""
        assert todo["completed"] is True

    def test_create_ignores_client_supplied_id(self, client):
        first = client.post("/todos", json={"title": "First"}).json()
        res = client.post("/todos", json={"id": 999, "title": "Second"})
        assert res.status_code == 201
        assert res.json()["id"] == first["id"] + 1
        assert client.get("/todos/999").status_code == 404

    def test_get_todo_and_not_found(self, client):
        res_create = client.post("/todos", json=create_todo_payload(title="Read book"))
        assert res_create.status_code == 201
        todo = res_create.json()

        res_get = client.get(f"/todos/{todo['id']}")
        assert res_get.status_code == 200
        assert res_get.json() == todo

        res_404 = client.get("/todos/999999")
        assert res_404.status_code == 404
        assert res_404.text == "Todo not found"
        assert res_404.headers["content-type"].startswith("text/plain")

    def test_put_replace_todo(self, client):
        res_create = client.post("/todos", json=create_todo_payload(title="Initial", description="A"))
        assert res_create.status_code == 201
        original = res_create.json()
        tid = original["id"]

        res_put = client.put(f"/todos/{tid}", json=create_todo_payload(title="Replaced", description="B", completed=True))
        assert res_put.status_code == 200
        updated = res_put.json()
        assert updated["id"] == tid
        assert updated["title"] == "Replaced"
        assert updated["description"] == "B"
        assert updated["completed"] is True
        assert updated["created_at"] == original["created_at"]
        assert datetime.fromisoformat(updated["updated_at"]) >= datetime.fromisoformat(original["updated_at"])

        assert client.get(f"/todos/{tid}").json() == updated

    def test_put_resets_omitted_fields(self, client):
        tid = client.post("/todos", json=create_todo_payload(title="Full", description="Details", completed=True)).json()["id"]

        res_put = client.put(f"/todos/{tid}", json={"title": "Only title"})
        assert res_put.status_code == 200
        updated = res_put.json()
        assert updated["title"] == "Only title"
        assert updated["description"] == ""
        assert updated["completed"] is False

    def test_put_not_found(self, client):
        res = client.put("/todos/424242", json=create_todo_payload(title="Nope"))
        assert res.status_code == 404
        assert res.text == "Todo not found"

    def test_put_empty_title_rejected(self, client):
        tid = client.post("/todos", json=create_todo_payload(title="Keep me")).json()["id"]
        res = client.put(f"/todos/{tid}", json={"title": ""})
        assert res.status_code == 400
        assert res.text == "Title is required"
        assert client.get(f"/todos/{tid}").json()["title"] == "Keep me"

    def test_delete_todo(self, client):
        tid = client.post("/todos", json=create_todo_payload(title="ToDelete")).json()["id"]

        res_del = client.delete(f"/todos/{tid}")
        assert res_del.status_code == 204
        assert res_del.text == ""

        res_get = client.get(f"/todos/{tid}")
        assert res_get.status_code == 404
        # Deleting again should still be 404
        res_del_again = client.delete(f"/todos/{tid}")
        assert res_del_again.status_code == 404
        assert res_del_again.text == "Todo not found"


class TestList:
    def test_list_empty(self, client):
        res = client.get("/todos")
        assert res.status_code == 200
        assert res.json() == []

    def test_list_newest_first(self, client):
        ids = []
        for i in range(5):
            res = client.post("/todos", json=create_todo_payload(title=f"Task {i}", completed=(i % 2 == 0)))
            assert res.status_code == 201
            ids.append(res.json()["id"])

        res = client.get("/todos")
        assert res.status_code == 200
        items = res.json()
        assert [t["id"] for t in items] == list(reversed(ids))
        created_ts = [datetime.fromisoformat(t["created_at"]) for t in items]
        assert created_ts == sorted(created_ts, reverse=True)
        for item in items:
            assert_todo_shape(item)

    def test_list_excludes_deleted(self, client):
        keep = client.post("/todos", json={"title": "keep"}).json()
        gone = client.post("/todos", json={"title": "gone"}).json()
        client.delete(f"/todos/{gone['id']}")

        assert client.get("/todos").json() == [keep]


class TestClientErrors:
    def test_invalid_id(self, client):
        for method in ("get", "delete"):
            res = getattr(client, method)("/todos/abc")
            assert res.status_code == 400
            assert res.text == "Invalid id"
        res_put = client.put("/todos/1.5", json={"title": "x"})
        assert res_put.status_code == 400
        assert res_put.text == "Invalid id"

    def test_invalid_id_forms_never_reach_the_store(self, client):
        client.post("/todos", json={"title": "only one"})
        for raw in ("0_1", "%201", "1%20", "99999999999999999999", "-9223372036854775809", "9223372036854775808"):
            for method in ("get", "delete"):
                res = getattr(client, method)(f"/todos/{raw}")
                assert res.status_code == 400, raw
                assert res.text == "Invalid id"
        assert len(client.get("/todos").json()) == 1

    def test_largest_id_is_valid_but_missing(self, client):
        res = client.get("/todos/9223372036854775807")
        assert res.status_code == 404
        assert res.text == "Todo not found"

    def test_create_empty_title_performs_no_insert(self, client):
        for payload in ({"title": ""}, {"title": "   "}, {"title": None}, {"description": "no title"}):
            res = client.post("/todos", json=payload)
            assert res.status_code == 400
            assert res.text == "Title is required"
        assert client.get("/todos").json() == []

    def test_create_malformed_json(self, client):
        res = client.post("/todos", content="{not json", headers={"Content-Type": "application/json"})
        assert res.status_code == 400
        assert res.text.startswith("Invalid JSON")
        assert client.get("/todos").json() == []

    def test_update_malformed_json(self, client):
        tid = client.post("/todos", json={"title": "x"}).json()["id"]
        res = client.put(f"/todos/{tid}", content="[1, 2", headers={"Content-Type": "application/json"})
        assert res.status_code == 400
        assert res.text.startswith("Invalid JSON")

    def test_create_wrong_field_type(self, client):
        res = client.post("/todos", json={"title": 123})
        assert res.status_code == 400
        assert res.text.startswith("Invalid request body: title")


class TestDatabaseErrors:
    def test_database_error_is_500_with_driver_text(self, client, settings):
        conn = sqlite3.connect(settings.db_name)
        conn.execute("DROP TABLE todos")
        conn.commit()
        conn.close()

        res = client.get("/todos")
        assert res.status_code == 500
        assert res.headers["content-type"].startswith("text/plain")
        assert res.text == "Error fetching todos: no such table: todos"

        res_create = client.post("/todos", json={"title": "lost"})
        assert res_create.status_code == 500
        assert "no such table: todos" in res_create.text
