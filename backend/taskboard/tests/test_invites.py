from .conftest import client, ensure_auth_headers, get_headers, make_board


def test_invite_lifecycle(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    invitee, invitee_email = ensure_auth_headers(client)

    resp = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email.upper()}, headers=owner)
    assert resp.status_code == 201
    invite = resp.json()
    assert invite["status"] == "pending"
    assert invite["role"] == "member"

    incoming = client.get("/api/invites", headers=invitee).json()
    assert [i["id"] for i in incoming] == [invite["id"]]
    outgoing = client.get("/api/invites", params={"type": "outgoing"}, headers=owner).json()
    assert [i["id"] for i in outgoing] == [invite["id"]]

    # invisible until accepted
    assert client.get(f"/api/boards/{board['id']}", headers=invitee).status_code == 404

    accepted = client.post(f"/api/invites/{invite['id']}/accept", headers=invitee)
    assert accepted.status_code == 200
    assert accepted.json() == {"ok": True, "board_id": board["id"]}
    assert client.get(f"/api/boards/{board['id']}", headers=invitee).status_code == 200

    history = client.get("/api/invites", params={"status": "accepted"}, headers=invitee).json()
    assert history[0]["status"] == "accepted"
    assert history[0]["accepted_at"]

    again = client.post(f"/api/invites/{invite['id']}/accept", headers=invitee)
    assert again.status_code == 404
    assert again.json()["error"] == "INVITE_NOT_FOUND"


def test_invite_requires_registered_user(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    resp = client.post(f"/api/boards/{board['id']}/invites", json={"email": "ghost@example.com"}, headers=owner)
    assert resp.status_code == 404
    assert resp.json()["error"] == "USER_NOT_FOUND"
    bad = client.post(f"/api/boards/{board['id']}/invites", json={"email": "not-an-email"}, headers=owner)
    assert bad.status_code == 400
    assert bad.json()["field"] == "email"


def test_duplicate_invites_and_existing_members_are_rejected(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    invitee, invitee_email = ensure_auth_headers(client)
    first = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner)
    assert first.status_code == 201

    dup = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner)
    assert dup.status_code == 409
    assert dup.json()["error"] == "INVITE_ALREADY_SENT"

    client.post(f"/api/invites/{first.json()['id']}/accept", headers=invitee)
    member = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner)
    assert member.status_code == 409
    assert member.json()["error"] == "ALREADY_MEMBER"

    owner_email = client.get("/api/auth/me", headers=owner).json()["email"]
    self_invite = client.post(f"/api/boards/{board['id']}/invites", json={"email": owner_email}, headers=owner)
    assert self_invite.json()["error"] == "ALREADY_MEMBER"


def test_only_the_invitee_can_accept(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    _, invitee_email = ensure_auth_headers(client)
    invite = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner).json()

    stranger = get_headers(client)
    resp = client.post(f"/api/invites/{invite['id']}/accept", headers=stranger)
    assert resp.status_code == 403
    assert resp.json()["error"] == "FORBIDDEN"
    assert client.get(f"/api/boards/{board['id']}", headers=stranger).status_code == 404


def test_revoke_invite(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    invitee, invitee_email = ensure_auth_headers(client)
    invite = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner).json()

    denied = client.post(f"/api/invites/{invite['id']}/revoke", headers=invitee)
    assert denied.status_code == 403

    revoked = client.post(f"/api/invites/{invite['id']}/revoke", headers=owner)
    assert revoked.status_code == 200
    assert revoked.json()["ok"] is True

    late = client.post(f"/api/invites/{invite['id']}/accept", headers=invitee)
    assert late.status_code == 404
    assert late.json()["error"] == "INVITE_NOT_FOUND"
    assert client.get("/api/invites", headers=invitee).json() == []

    # a revoked invite does not block a fresh one
    fresh = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner)
    assert fresh.status_code == 201


def test_member_cannot_invite(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    member, member_email = ensure_auth_headers(client)
    invite = client.post(f"/api/boards/{board['id']}/invites", json={"email": member_email}, headers=owner).json()
    client.post(f"/api/invites/{invite['id']}/accept", headers=member)

    _, other_email = ensure_auth_headers(client)
    resp = client.post(f"/api/boards/{board['id']}/invites", json={"email": other_email}, headers=member)
    assert resp.status_code == 403


def test_invite_actions_are_audited(client):
    owner = get_headers(client)
    board, _ = make_board(client, owner, columns=())
    invitee, invitee_email = ensure_auth_headers(client)
    invite = client.post(f"/api/boards/{board['id']}/invites", json={"email": invitee_email}, headers=owner).json()
    client.post(f"/api/invites/{invite['id']}/accept", headers=invitee)

    entries = client.get(
        "/api/audit", params={"entity": "boardInvite", "entity_id": invite["id"], "order": "asc"}, headers=owner
    ).json()
    assert [e["action"] for e in entries] == ["BOARD_INVITE_CREATED", "BOARD_INVITE_ACCEPTED"]
    assert entries[1]["actor"] == invitee_email
