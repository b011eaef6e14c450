import json

import redis

from rentbot.transcript import TranscriptStore


class ListRedis:
    """Just enough of the redis list API for the transcript store."""

    def __init__(self):
        self.lists = {}

    def pipeline(self):
        return _Pipeline(self)

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    def ltrim(self, key, start, end):
        items = self.lists.get(key, [])
        self.lists[key] = items[start:] if end == -1 else items[start : end + 1]

    def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start : end + 1]

    def delete(self, key):
        self.lists.pop(key, None)


class _Pipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def rpush(self, *args):
        self.ops.append(("rpush", args))

    def ltrim(self, *args):
        self.ops.append(("ltrim", args))

    def execute(self):
        for name, args in self.ops:
            getattr(self.client, name)(*args)


class DownRedis:
    def pipeline(self):
        raise redis.ConnectionError("refused")

    def lrange(self, *args):
        raise redis.ConnectionError("refused")

    def delete(self, *args):
        raise redis.ConnectionError("refused")


def test_in_memory_round_trip(transcript):
    transcript.append_message("u1", "hi", True)
    transcript.append_message("u1", "hello!", False)
    transcript.append_message("u2", "other user", True)

    assert transcript.fetch_recent("u1") == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello!"},
    ]


def test_limit_returns_most_recent_oldest_first(transcript):
    for i in range(5):
        transcript.append_message("u1", f"m{i}", True)
    assert [m["content"] for m in transcript.fetch_recent("u1", limit=2)] == ["m3", "m4"]
    assert transcript.fetch_recent("u1", limit=0) == []


def test_history_is_capped():
    store = TranscriptStore(max_messages=3)
    for i in range(5):
        store.append_message("u1", f"m{i}", True)
    assert [m["content"] for m in store.fetch_recent("u1", limit=10)] == ["m2", "m3", "m4"]


def test_redis_list_per_user():
    client = ListRedis()
    store = TranscriptStore(max_messages=3, client=client)
    for i in range(4):
        store.append_message("u1", f"m{i}", i % 2 == 0)

    assert len(client.lists["memories:u1"]) == 3
    assert store.fetch_recent("u1", limit=2) == [
        {"role": "user", "content": "m2"},
        {"role": "assistant", "content": "m3"},
    ]

    store.clear("u1")
    assert "memories:u1" not in client.lists


def test_falls_back_to_memory_when_redis_is_down():
    store = TranscriptStore(client=DownRedis())
    store.append_message("u1", "still here", True)
    assert store.fetch_recent("u1") == [{"role": "user", "content": "still here"}]
    store.clear("u1")
    assert store.fetch_recent("u1") == []


def test_undecodable_entries_are_skipped():
    client = ListRedis()
    client.lists["memories:u1"] = [
        "not json",
        json.dumps({"role": "user", "content": "hi"}),
        json.dumps({"text": "missing role"}),
        json.dumps(["a", "list"]),
    ]
    store = TranscriptStore(client=client)

    assert store.fetch_recent("u1") == [{"role": "user", "content": "hi"}]
