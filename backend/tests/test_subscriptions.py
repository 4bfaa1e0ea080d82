import uuid

from conftest import API


def test_subscribe_and_unsubscribe(client, make_user):
    channel, channel_headers = make_user("channel")
    fan_user, fan = make_user("fan")
    url = f"{API}/subscriptions/c/{channel['id']}"

    created = client.post(url, headers=fan)
    assert created.status_code == 201
    assert created.json()["data"]["channel"] == channel["id"]
    assert created.json()["data"]["subscriber"] == fan_user["id"]

    again = client.post(url, headers=fan)
    assert again.status_code == 400
    assert again.json()["message"] == "Already subscribed to this channel"

    subscribers = client.get(url).json()["data"]
    assert subscribers["totalSubscribers"] == 1
    assert subscribers["subscribers"][0]["username"] == "fan"

    channels = client.get(f"{API}/subscriptions/u/{fan_user['id']}").json()["data"]
    assert channels["totalChannels"] == 1
    assert channels["channels"][0]["id"] == channel["id"]

    assert client.delete(url, headers=fan).status_code == 200
    not_subscribed = client.delete(url, headers=fan)
    assert not_subscribed.status_code == 400
    assert not_subscribed.json()["message"] == "Not subscribed to this channel"
    assert client.get(url).json()["data"]["totalSubscribers"] == 0


def test_subscription_errors(client, make_user):
    me, headers = make_user("me")
    assert client.post(f"{API}/subscriptions/c/{me['id']}", headers=headers).status_code == 400
    missing = client.post(f"{API}/subscriptions/c/{uuid.uuid4()}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Channel not found"
    assert client.post(f"{API}/subscriptions/c/bogus", headers=headers).status_code == 400
    assert client.get(f"{API}/subscriptions/u/{uuid.uuid4()}").status_code == 404
    assert client.post(f"{API}/subscriptions/c/{me['id']}").status_code == 401
