import uuid

import pytest

from .conftest import client, column_order, get_headers, invite_member, make_board, make_task


@pytest.fixture
def doing_board(client):
    owner = get_headers(client)
    board, cols = make_board(client, owner)
    return owner, board, cols


def test_create_task_lands_at_first_position(client, doing_board):
    owner, board, cols = doing_board
    task = make_task(client, owner, board["id"], cols["Doing"]["id"], "Fix bug")
    assert task["column_id"] == cols["Doing"]["id"]
    assert task["position"] == 1
    assert task["description"] == ""
    assert task["due_date"] is None


def test_create_task_rejects_column_of_another_board(client, doing_board):
    owner, board, _ = doing_board
    _, other_cols = make_board(client, owner, name="Other")
    resp = client.post(
        f"/api/boards/{board['id']}/tasks",
        json={"column_id": other_cols["Doing"]["id"], "title": "Nope"},
        headers=owner,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"
    assert resp.json()["field"] == "column_id"
    unknown = client.post(
        f"/api/boards/{board['id']}/tasks",
        json={"column_id": str(uuid.uuid4()), "title": "Nope"},
        headers=owner,
    )
    assert unknown.status_code == 400


@pytest.mark.parametrize("due", ["2024-02-30", "2024-13-01", "24-01-01", "tomorrow"])
def test_due_date_must_be_real_calendar_date(client, doing_board, due):
    owner, board, cols = doing_board
    resp = client.post(
        f"/api/boards/{board['id']}/tasks",
        json={"column_id": cols["Doing"]["id"], "title": "Due", "due_date": due},
        headers=owner,
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "due_date"


def test_due_date_round_trips_and_clears(client, doing_board):
    owner, board, cols = doing_board
    task = make_task(client, owner, board["id"], cols["Doing"]["id"], "Due", due_date="2024-02-29")
    assert task["due_date"] == "2024-02-29"
    cleared = client.patch(f"/api/tasks/{task['id']}", json={"title": "Due", "due_date": ""}, headers=owner)
    assert cleared.status_code == 200
    assert cleared.json()["due_date"] is None


def test_update_task_fields(client, doing_board):
    owner, board, cols = doing_board
    task = make_task(client, owner, board["id"], cols["Doing"]["id"], "Write", description="draft")
    resp = client.patch(
        f"/api/tasks/{task['id']}",
        json={"title": " Write docs ", "assignee_id": "someone@example.com"},
        headers=owner,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Write docs"
    assert data["assignee_id"] == "someone@example.com"
    # omitted fields are left untouched
    assert data["description"] == "draft"


def test_update_task_requires_title(client, doing_board):
    owner, board, cols = doing_board
    task = make_task(client, owner, board["id"], cols["Doing"]["id"], "T")
    missing = client.patch(f"/api/tasks/{task['id']}", json={"description": "x"}, headers=owner)
    assert missing.status_code == 400
    assert missing.json()["field"] == "title"
    blank = client.patch(f"/api/tasks/{task['id']}", json={"title": "  "}, headers=owner)
    assert blank.status_code == 400


def test_reorder_within_column(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    make_task(client, owner, board["id"], doing, "A")
    make_task(client, owner, board["id"], doing, "B")
    c = make_task(client, owner, board["id"], doing, "C")
    resp = client.patch(f"/api/tasks/{c['id']}/move", json={"position": 1}, headers=owner)
    assert resp.status_code == 200
    assert resp.json()["position"] == 1
    assert column_order(client, owner, board["id"], doing) == [("C", 1), ("A", 2), ("B", 3)]


def test_move_across_columns(client, doing_board):
    owner, board, cols = doing_board
    doing, done = cols["Doing"]["id"], cols["Done"]["id"]
    a = make_task(client, owner, board["id"], doing, "A")
    make_task(client, owner, board["id"], doing, "B")
    resp = client.patch(f"/api/tasks/{a['id']}/move", json={"column_id": done, "position": 1}, headers=owner)
    assert resp.status_code == 200
    assert resp.json()["column_id"] == done
    assert column_order(client, owner, board["id"], doing) == [("B", 1)]
    assert column_order(client, owner, board["id"], done) == [("A", 1)]


def test_cross_column_move_conserves_relative_order(client, doing_board):
    owner, board, cols = doing_board
    doing, done = cols["Doing"]["id"], cols["Done"]["id"]
    moved = None
    for title in "ABCD":
        task = make_task(client, owner, board["id"], doing, title)
        if title == "B":
            moved = task
    for title in "XYZ":
        make_task(client, owner, board["id"], done, title)
    client.patch(f"/api/tasks/{moved['id']}/move", json={"column_id": done, "position": 3}, headers=owner)
    assert column_order(client, owner, board["id"], doing) == [("A", 1), ("C", 2), ("D", 3)]
    assert column_order(client, owner, board["id"], done) == [("X", 1), ("Y", 2), ("B", 3), ("Z", 4)]


def test_move_defaults_to_append_in_current_column(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    a = make_task(client, owner, board["id"], doing, "A")
    make_task(client, owner, board["id"], doing, "B")
    resp = client.patch(f"/api/tasks/{a['id']}/move", json={}, headers=owner)
    assert resp.json()["position"] == 2
    assert column_order(client, owner, board["id"], doing) == [("B", 1), ("A", 2)]


def test_move_to_current_place_is_a_no_op(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    make_task(client, owner, board["id"], doing, "A")
    b = make_task(client, owner, board["id"], doing, "B")
    make_task(client, owner, board["id"], doing, "C")
    before = client.get(f"/api/boards/{board['id']}/tasks", headers=owner).json()
    resp = client.patch(f"/api/tasks/{b['id']}/move", json={"column_id": doing, "position": 2}, headers=owner)
    assert resp.status_code == 200
    after = client.get(f"/api/boards/{board['id']}/tasks", headers=owner).json()
    assert [(t["id"], t["position"], t["version"]) for t in after] == [
        (t["id"], t["position"], t["version"]) for t in before
    ]
    moves = client.get("/api/audit", params={"entity_id": b["id"], "entity": "task"}, headers=owner).json()
    assert [e["action"] for e in moves] == ["TASK_CREATED"]


def test_move_to_unknown_column_touches_nothing(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    a = make_task(client, owner, board["id"], doing, "A")
    make_task(client, owner, board["id"], doing, "B")
    _, other_cols = make_board(client, owner, name="Other")
    resp = client.patch(
        f"/api/tasks/{a['id']}/move",
        json={"column_id": other_cols["Doing"]["id"], "position": 1},
        headers=owner,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"
    assert column_order(client, owner, board["id"], doing) == [("A", 1), ("B", 2)]


def test_delete_task_renormalizes_column(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    make_task(client, owner, board["id"], doing, "A")
    b = make_task(client, owner, board["id"], doing, "B")
    make_task(client, owner, board["id"], doing, "C")
    resp = client.delete(f"/api/tasks/{b['id']}", headers=owner)
    assert resp.status_code == 204
    assert column_order(client, owner, board["id"], doing) == [("A", 1), ("C", 2)]
    missing = client.get(f"/api/tasks/{b['id']}", headers=owner)
    assert missing.status_code == 404
    assert missing.json()["error"] == "TASK_NOT_FOUND"


def test_create_task_at_position_inserts(client, doing_board):
    owner, board, cols = doing_board
    doing = cols["Doing"]["id"]
    make_task(client, owner, board["id"], doing, "A")
    make_task(client, owner, board["id"], doing, "B")
    make_task(client, owner, board["id"], doing, "X", position=2)
    make_task(client, owner, board["id"], doing, "Y", position=100)
    assert column_order(client, owner, board["id"], doing) == [("A", 1), ("X", 2), ("B", 3), ("Y", 4)]


def test_list_tasks_sorted_by_column_then_position(client, doing_board):
    owner, board, cols = doing_board
    make_task(client, owner, board["id"], cols["Done"]["id"], "D1")
    make_task(client, owner, board["id"], cols["Backlog"]["id"], "B1")
    make_task(client, owner, board["id"], cols["Backlog"]["id"], "B2")
    tasks = client.get(f"/api/boards/{board['id']}/tasks", headers=owner).json()
    assert [t["title"] for t in tasks] == ["B1", "B2", "D1"]


def test_member_can_work_with_tasks(client, doing_board):
    owner, board, cols = doing_board
    member = invite_member(client, owner, board["id"])
    task = make_task(client, member, board["id"], cols["Backlog"]["id"], "By member")
    moved = client.patch(
        f"/api/tasks/{task['id']}/move", json={"column_id": cols["Done"]["id"]}, headers=member
    )
    assert moved.status_code == 200
    assert client.delete(f"/api/tasks/{task['id']}", headers=member).status_code == 204


def test_outsider_cannot_see_tasks(client, doing_board):
    owner, board, cols = doing_board
    task = make_task(client, owner, board["id"], cols["Doing"]["id"], "Secret")
    outsider = get_headers(client)
    for method, path, body in [
        ("get", f"/api/tasks/{task['id']}", None),
        ("patch", f"/api/tasks/{task['id']}", {"title": "x"}),
        ("patch", f"/api/tasks/{task['id']}/move", {"position": 1}),
        ("delete", f"/api/tasks/{task['id']}", None),
    ]:
        kwargs = {"json": body} if body is not None else {}
        resp = getattr(client, method)(path, headers=outsider, **kwargs)
        assert resp.status_code == 404
        assert resp.json()["error"] == "TASK_NOT_FOUND"
    create = client.post(
        f"/api/boards/{board['id']}/tasks",
        json={"column_id": cols["Doing"]["id"], "title": "x"},
        headers=outsider,
    )
    assert create.status_code == 404
    assert create.json()["error"] == "BOARD_NOT_FOUND"


def test_task_density_after_mixed_operations(client, doing_board):
    owner, board, cols = doing_board
    backlog, doing = cols["Backlog"]["id"], cols["Doing"]["id"]
    tasks = [make_task(client, owner, board["id"], backlog, t) for t in "ABCDE"]
    client.patch(f"/api/tasks/{tasks[4]['id']}/move", json={"position": 1}, headers=owner)
    client.patch(f"/api/tasks/{tasks[1]['id']}/move", json={"column_id": doing, "position": 1}, headers=owner)
    client.delete(f"/api/tasks/{tasks[0]['id']}", headers=owner)
    client.patch(f"/api/tasks/{tasks[3]['id']}/move", json={"column_id": doing, "position": 0}, headers=owner)
    make_task(client, owner, board["id"], doing, "F", position=2)
    assert column_order(client, owner, board["id"], backlog) == [("E", 1), ("C", 2)]
    assert column_order(client, owner, board["id"], doing) == [("D", 1), ("F", 2), ("B", 3)]
