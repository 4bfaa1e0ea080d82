import uuid

from conftest import API, upload_video


def test_comment_crud(client, make_user):
    _, owner = make_user("owner")
    commenter_user, commenter = make_user("commenter")
    video = upload_video(client, owner)
    vid = video["id"]

    empty = client.post(f"{API}/comments/{vid}", json={"content": "   "}, headers=commenter)
    assert empty.status_code == 400
    assert empty.json()["message"] == "Comment content is required"

    created = client.post(f"{API}/comments/{vid}", json={"content": " Great video "}, headers=commenter)
    assert created.status_code == 201
    comment = created.json()["data"]
    assert comment["content"] == "Great video"
    assert comment["video"] == vid
    assert comment["owner"] == commenter_user["id"]

    listing = client.get(f"{API}/comments/{vid}").json()["data"]
    assert listing["pagination"]["totalComments"] == 1
    assert listing["comments"][0]["owner"]["username"] == "commenter"

    url = f"{API}/comments/c/{comment['id']}"
    assert client.patch(url, json={"content": "anon"}).status_code == 401
    assert client.patch(url, json={"content": "mine now"}, headers=owner).status_code == 403
    edited = client.patch(url, json={"content": "Edited"}, headers=commenter)
    assert edited.json()["data"]["content"] == "Edited"

    assert client.delete(url).status_code == 401
    assert client.delete(url, headers=owner).status_code == 403
    assert client.delete(url, headers=commenter).status_code == 200
    assert client.get(f"{API}/comments/{vid}").json()["data"]["comments"] == []


def test_comment_listing_pages(client, make_user):
    _, owner = make_user("owner")
    video = upload_video(client, owner)
    for i in range(5):
        client.post(f"{API}/comments/{video['id']}", json={"content": f"c{i}"}, headers=owner)

    page = client.get(f"{API}/comments/{video['id']}", params={"page": 3, "limit": 2}).json()["data"]
    assert len(page["comments"]) == 1
    assert page["pagination"] == {"currentPage": 3, "totalPages": 3, "totalComments": 5, "limit": 2}


def test_comments_on_missing_video(client, make_user):
    _, user = make_user("someone")
    assert client.get(f"{API}/comments/{uuid.uuid4()}").status_code == 404
    assert client.get(f"{API}/comments/bogus").status_code == 400
    assert client.post(f"{API}/comments/{uuid.uuid4()}", json={"content": "hi"}, headers=user).status_code == 404


def test_tweet_crud(client, make_user):
    author_user, author = make_user("author")
    _, other = make_user("other")

    assert client.post(f"{API}/tweets", json={}, headers=author).json()["message"] == "Tweet content is required"
    created = client.post(f"{API}/tweets", json={"content": "first post"}, headers=author)
    assert created.status_code == 201
    tweet = created.json()["data"]
    assert tweet["owner"] == author_user["id"]

    listing = client.get(f"{API}/tweets/user/{author_user['id']}").json()["data"]
    assert [t["content"] for t in listing] == ["first post"]
    assert listing[0]["owner"]["username"] == "author"

    url = f"{API}/tweets/{tweet['id']}"
    assert client.patch(url, json={"content": "anon"}).status_code == 401
    assert client.patch(url, json={"content": "nope"}, headers=other).status_code == 403
    assert client.patch(url, json={"content": "edited"}, headers=author).json()["data"]["content"] == "edited"
    assert client.delete(url).status_code == 401
    assert client.delete(url, headers=other).status_code == 403
    assert client.delete(url, headers=author).status_code == 200
    assert client.patch(url, json={"content": "gone"}, headers=author).status_code == 404

    assert client.get(f"{API}/tweets/user/{uuid.uuid4()}").status_code == 404
    assert client.post(f"{API}/tweets", json={"content": "anon"}).status_code == 401
