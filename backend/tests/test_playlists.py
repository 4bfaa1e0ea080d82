import uuid

from conftest import API, upload_video


def _create(client, headers, name="Favorites", description="Best of"):
    return client.post(f"{API}/playlists", json={"name": name, "description": description}, headers=headers)


def test_favorites_playlist_lifecycle(client, make_user):
    user, headers = make_user("curator")
    first = upload_video(client, headers, title="One")
    second = upload_video(client, headers, title="Two")

    created = _create(client, headers)
    assert created.status_code == 201
    playlist = created.json()["data"]
    assert playlist["owner"] == user["id"]
    assert playlist["videos"] == []
    pid = playlist["id"]

    added = client.patch(f"{API}/playlists/add/{first['id']}/{pid}", headers=headers)
    assert added.status_code == 200
    assert added.json()["data"]["videos"] == [first["id"]]
    client.patch(f"{API}/playlists/add/{second['id']}/{pid}", headers=headers)

    full = client.get(f"{API}/playlists/{pid}").json()["data"]
    assert [v["title"] for v in full["videos"]] == ["One", "Two"]

    removed = client.patch(f"{API}/playlists/remove/{first['id']}/{pid}", headers=headers)
    assert removed.status_code == 200
    assert removed.json()["data"]["videos"] == [second["id"]]

    renamed = client.patch(f"{API}/playlists/{pid}", json={"name": "Top picks"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Top picks"
    assert renamed.json()["data"]["description"] == "Best of"

    listing = client.get(f"{API}/playlists/user/{user['id']}").json()["data"]
    assert [p["name"] for p in listing] == ["Top picks"]
    assert listing[0]["videos"][0]["id"] == second["id"]

    assert client.delete(f"{API}/playlists/{pid}", headers=headers).status_code == 200
    assert client.get(f"{API}/playlists/{pid}").status_code == 404


def test_create_playlist_validation(client, make_user):
    _, headers = make_user("curator")
    missing = _create(client, headers, description="  ")
    assert missing.status_code == 400
    assert missing.json()["message"] == "All fields are required"

    assert _create(client, headers).status_code == 201
    dup = _create(client, headers, name="Favorites", description="again")
    assert dup.status_code == 400
    assert dup.json()["message"] == "Playlist with the same name already exists"

    _, other = make_user("someone")
    assert _create(client, other).status_code == 201


def test_add_and_remove_edge_cases(client, make_user):
    _, headers = make_user("curator")
    video = upload_video(client, headers)
    pid = _create(client, headers).json()["data"]["id"]

    assert client.patch(f"{API}/playlists/add/{video['id']}/{pid}", headers=headers).status_code == 200
    again = client.patch(f"{API}/playlists/add/{video['id']}/{pid}", headers=headers)
    assert again.status_code == 400
    assert again.json()["message"] == "Video already in playlist"

    ghost = client.patch(f"{API}/playlists/add/{uuid.uuid4()}/{pid}", headers=headers)
    assert ghost.status_code == 404
    assert ghost.json()["message"] == "Video not found"

    client.patch(f"{API}/playlists/remove/{video['id']}/{pid}", headers=headers)
    absent = client.patch(f"{API}/playlists/remove/{video['id']}/{pid}", headers=headers)
    assert absent.status_code == 400
    assert absent.json()["message"] == "Video not found in playlist"

    bad = client.patch(f"{API}/playlists/add/nope/{pid}", headers=headers)
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid playlist ID or video ID"

    missing = client.patch(f"{API}/playlists/add/{video['id']}/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Playlist not found"


def test_only_owner_may_modify_playlist(client, make_user):
    _, owner = make_user("curator")
    _, intruder = make_user("intruder")
    video = upload_video(client, owner)
    pid = _create(client, owner).json()["data"]["id"]

    assert client.patch(f"{API}/playlists/add/{video['id']}/{pid}").status_code == 401
    assert client.patch(f"{API}/playlists/{pid}", json={"name": "Anon"}).status_code == 401
    assert client.delete(f"{API}/playlists/{pid}").status_code == 401
    assert client.patch(f"{API}/playlists/add/{video['id']}/{pid}", headers=intruder).status_code == 403
    assert client.patch(f"{API}/playlists/{pid}", json={"name": "Mine"}, headers=intruder).status_code == 403
    assert client.delete(f"{API}/playlists/{pid}", headers=intruder).status_code == 403
    assert client.patch(f"{API}/playlists/{pid}", json={}, headers=owner).status_code == 400
    assert client.get(f"{API}/playlists/{pid}").json()["data"]["name"] == "Favorites"


def test_rename_to_existing_name_is_rejected(client, make_user):
    _, headers = make_user("curator")
    _create(client, headers, name="A")
    pid = _create(client, headers, name="B").json()["data"]["id"]
    resp = client.patch(f"{API}/playlists/{pid}", json={"name": "A"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Playlist with the same name already exists"
