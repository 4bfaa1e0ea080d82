from conftest import API, upload_video


def test_stats_for_empty_channel(client, make_user):
    _, headers = make_user("newbie")
    resp = client.get(f"{API}/dashboard/stats", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"totalSubscribers": 0, "totalVideos": 0, "totalViews": 0, "totalLikes": 0}

    videos = client.get(f"{API}/dashboard/videos", headers=headers).json()["data"]
    assert videos["videos"] == []
    assert videos["pagination"]["totalVideos"] == 0
    assert videos["pagination"]["totalPages"] == 0


def test_stats_for_active_channel(client, make_user):
    creator, headers = make_user("creator")
    _, fan = make_user("fan")
    _, other = make_user("other")
    hit = upload_video(client, headers, title="Hit")
    upload_video(client, headers, title="Draft", published=False)

    client.get(f"{API}/videos/{hit['id']}", headers=fan)
    client.get(f"{API}/videos/{hit['id']}", headers=other)
    client.post(f"{API}/likes/toggle/v/{hit['id']}", headers=fan)
    client.post(f"{API}/likes/toggle/v/{hit['id']}", headers=other)
    client.post(f"{API}/subscriptions/c/{creator['id']}", headers=fan)

    stats = client.get(f"{API}/dashboard/stats", headers=headers).json()["data"]
    assert stats == {"totalSubscribers": 1, "totalVideos": 2, "totalViews": 2, "totalLikes": 2}

    resp = client.get(f"{API}/dashboard/videos", params={"sortBy": "views"}, headers=headers)
    data = resp.json()["data"]
    assert [v["title"] for v in data["videos"]] == ["Hit", "Draft"]
    assert [v["likesCount"] for v in data["videos"]] == [2, 0]
    assert data["videos"][1]["isPublished"] is False


def test_dashboard_requires_login(client):
    assert client.get(f"{API}/dashboard/stats").status_code == 401
    assert client.get(f"{API}/dashboard/videos").status_code == 401
