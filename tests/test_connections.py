import repositories
from schemas import Connection, Identity


def test_directory_excludes_nothing_for_new_user(client, login):
    login()
    users = client.get("/api/users").json()
    assert [u["name"] for u in users] == [
        "Alice Johnson", "Bob Smith", "Charlie Brown", "Diana Prince", "Eve Wilson",
    ]
    assert all(u["requestSent"] is False for u in users)


def test_directory_search_is_case_insensitive(client, login):
    login()
    names = [u["name"] for u in client.get("/api/users", params={"search": "BR"}).json()]
    assert names == ["Charlie Brown"]


def test_directory_excludes_connected_users(client, login):
    login()
    repositories.connections.add_connection(
        Connection(user=Identity(id="4", name="Diana Prince", email="diana@example.com"))
    )
    ids = [u["id"] for u in client.get("/api/users").json()]
    assert "4" not in ids
    assert len(ids) == 4


def test_send_request_snapshots_sender(client, login):
    identity = login(name="Zed")
    res = client.post("/api/connections/requests", json={"toUserId": "2"})
    assert res.status_code == 200
    request = res.json()
    assert request["status"] == "pending"
    assert request["fromUser"]["id"] == identity["id"]
    assert request["fromUser"]["name"] == "Zed"
    bob = next(u for u in client.get("/api/users").json() if u["id"] == "2")
    assert bob["requestSent"] is True


def test_duplicate_pending_requests_are_stored(client, login):
    login()
    client.post("/api/connections/requests", json={"toUserId": "3"})
    client.post("/api/connections/requests", json={"toUserId": "3"})
    assert len(repositories.connections.list_requests()) == 2


def test_pending_requests_lists_only_incoming(client, login, incoming_request):
    identity = login()
    mine = incoming_request(identity["id"])
    incoming_request("someone-else")
    pending = client.get("/api/connections/requests").json()
    assert [r["id"] for r in pending] == [mine.id]


def test_accept_creates_one_connection(client, login, incoming_request):
    identity = login()
    existing = Connection(user=Identity(id="5", name="Eve Wilson", email="eve@example.com"))
    repositories.connections.add_connection(existing)
    request = incoming_request(identity["id"])

    res = client.post(f"/api/connections/requests/{request.id}/accept")
    assert res.status_code == 200
    assert res.json()["status"] == "accepted"

    connections = client.get("/api/connections").json()
    assert len(connections) == 2
    assert connections[0]["id"] == existing.id
    assert connections[1]["user"]["id"] == "2"
    assert connections[1]["status"] == "connected"
    assert repositories.connections.find_request(request.id).status == "accepted"
    assert client.get("/api/connections/requests").json() == []


def test_reject_creates_no_connection(client, login, incoming_request):
    identity = login()
    request = incoming_request(identity["id"])
    res = client.post(f"/api/connections/requests/{request.id}/reject")
    assert res.status_code == 200
    assert repositories.connections.find_request(request.id).status == "rejected"
    assert client.get("/api/connections").json() == []


def test_terminal_requests_cannot_change(client, login, incoming_request):
    identity = login()
    request = incoming_request(identity["id"])
    client.post(f"/api/connections/requests/{request.id}/reject")
    res = client.post(f"/api/connections/requests/{request.id}/accept")
    assert res.status_code == 400
    assert res.json()["detail"] == "Request already rejected"
    assert client.get("/api/connections").json() == []


def test_cannot_answer_someone_elses_request(client, login, incoming_request):
    login()
    request = incoming_request("someone-else")
    assert client.post(f"/api/connections/requests/{request.id}/accept").status_code == 403
    assert repositories.connections.find_request(request.id).status == "pending"


def test_unknown_request(client, login):
    login()
    assert client.post("/api/connections/requests/missing/reject").status_code == 404


def test_sender_snapshot_is_not_updated(client, login, incoming_request):
    identity = login()
    sender = Identity(id="9", name="Old Name", email="old@example.com")
    request = incoming_request(identity["id"], sender=sender)
    sender.name = "New Name"
    client.post(f"/api/connections/requests/{request.id}/accept")
    assert client.get("/api/connections").json()[0]["user"]["name"] == "Old Name"
