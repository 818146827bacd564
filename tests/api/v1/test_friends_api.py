def test_add_list_and_remove_friend(client, register):
    alice_headers, alice = register("alice")
    bob_headers, bob = register("bob")

    added = client.post(f"/api/v1/friends/{bob['id']}", headers=alice_headers)
    assert added.status_code == 204

    alice_friends = client.get("/api/v1/friends", headers=alice_headers).json()
    assert [friend["username"] for friend in alice_friends] == ["bob"]
    bob_friends = client.get("/api/v1/friends", headers=bob_headers).json()
    assert [friend["id"] for friend in bob_friends] == [alice["id"]]
    assert client.get("/api/v1/users/me", headers=bob_headers).json()["friends"] == [alice["id"]]

    removed = client.delete(f"/api/v1/friends/{alice['id']}", headers=bob_headers)
    assert removed.status_code == 204
    assert client.get("/api/v1/friends", headers=alice_headers).json() == []


def test_add_self_as_friend(client, register):
    headers, user = register("alice")

    response = client.post(f"/api/v1/friends/{user['id']}", headers=headers)

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "InvalidArgument"


def test_add_unknown_friend(client, register):
    headers, _ = register("alice")

    response = client.post("/api/v1/friends/ghost", headers=headers)

    assert response.status_code == 404
