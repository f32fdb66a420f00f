"""
Friend request and friends endpoints, including status codes and envelope.
"""
API = "/api/v1"


def test_send_and_accept_flow(client, make_user, auth_headers):
    alice, bob = make_user("Alice"), make_user("Bob")

    response = client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "Friend request sent successfully."
    request_id = body["data"]["id"]

    response = client.get(f"{API}/friend-requests/sent", headers=auth_headers(alice))
    assert response.json()["data"] == [bob.id]

    response = client.get(f"{API}/friend-requests/received", headers=auth_headers(bob))
    received = response.json()["data"]
    assert [r["id"] for r in received] == [request_id]
    assert received[0]["sender_name"] == "Alice"

    response = client.post(f"{API}/friend-requests/accept", json={"request_id": request_id}, headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "accepted"

    response = client.get(f"{API}/friends/check/{alice.id}", headers=auth_headers(bob))
    assert response.json()["data"] == {"user_id": alice.id, "is_friend": True}

    response = client.get(f"{API}/friends/count", headers=auth_headers(alice))
    assert response.json()["data"]["count"] == 1

    response = client.get(f"{API}/user/friends", headers=auth_headers(alice))
    assert [f["id"] for f in response.json()["data"]] == [bob.id]


def test_duplicate_request_is_bad_request(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))

    response = client.post(f"{API}/friend-requests", json={"receiver_id": alice.id}, headers=auth_headers(bob))

    assert response.status_code == 400
    assert response.json()["status"] == "error"


def test_request_to_self_is_bad_request(client, make_user, auth_headers):
    alice = make_user()
    response = client.post(f"{API}/friend-requests", json={"receiver_id": alice.id}, headers=auth_headers(alice))
    assert response.status_code == 400


def test_request_to_unknown_user_is_unprocessable(client, make_user, auth_headers):
    alice = make_user()
    response = client.post(f"{API}/friend-requests", json={"receiver_id": 4242}, headers=auth_headers(alice))

    assert response.status_code == 422
    assert "receiver_id" in response.json()["errors"]


def test_missing_receiver_is_unprocessable(client, make_user, auth_headers):
    alice = make_user()
    response = client.post(f"{API}/friend-requests", json={}, headers=auth_headers(alice))

    assert response.status_code == 422
    assert "receiver_id" in response.json()["errors"]


def test_accept_by_wrong_user_is_not_found(client, make_user, auth_headers):
    alice, bob, carol = make_user(), make_user(), make_user()
    response = client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    request_id = response.json()["data"]["id"]

    response = client.post(f"{API}/friend-requests/accept", json={"request_id": request_id}, headers=auth_headers(carol))
    assert response.status_code == 404


def test_reject_then_accept_is_not_found(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    response = client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    request_id = response.json()["data"]["id"]

    response = client.post(f"{API}/friend-requests/reject", json={"request_id": request_id}, headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "rejected"

    response = client.post(f"{API}/friend-requests/accept", json={"request_id": request_id}, headers=auth_headers(bob))
    assert response.status_code == 404


def test_cancel_request(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))

    response = client.post(f"{API}/friend-requests/cancel", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["message"] == "Friend request cancelled successfully."

    response = client.post(f"{API}/friend-requests/cancel", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    assert response.status_code == 404


def test_remove_friend(client, make_user, auth_headers):
    alice, bob = make_user(), make_user()
    response = client.post(f"{API}/friend-requests", json={"receiver_id": bob.id}, headers=auth_headers(alice))
    client.post(
        f"{API}/friend-requests/accept",
        json={"request_id": response.json()["data"]["id"]},
        headers=auth_headers(bob)
    )

    response = client.delete(f"{API}/friends/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 200

    response = client.get(f"{API}/friends/check/{bob.id}", headers=auth_headers(alice))
    assert response.json()["data"]["is_friend"] is False


def test_endpoints_require_authentication(client):
    response = client.get(f"{API}/friend-requests/received")

    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "Unauthenticated."}
