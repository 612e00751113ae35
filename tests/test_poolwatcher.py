"""Tests for the rbdmirrorcache.handlers.poolwatcher module."""

import logging

import kopf
import pytest

from rbdmirrorcache import state
from rbdmirrorcache.exceptions import CommandExecutionError
from rbdmirrorcache.handlers.poolwatcher import handle_pool_event


class RecordingCache:
    def __init__(self, error=None):
        self.error = error
        self.events = []

    def add(self, obj):
        self.events.append(("add", obj["metadata"]["uid"]))
        if self.error is not None:
            raise self.error

    def delete(self, obj):
        self.events.append(("delete", obj["metadata"]["uid"]))


@pytest.fixture
def recording_cache(monkeypatch):
    cache = RecordingCache()
    monkeypatch.setattr(state, "mirror_cache", cache)
    return cache


def call_handler(event_type, body):
    handle_pool_event(
        event={"type": event_type, "object": body},
        body=body,
        namespace=body["metadata"]["namespace"],
        name=body["metadata"]["name"],
        logger=logging.getLogger(__name__),
    )


@pytest.mark.parametrize(
    "event_type, action",
    [(None, "add"), ("ADDED", "add"), ("MODIFIED", "add"), ("DELETED", "delete")],
)
def test_events_map_to_cache(recording_cache, make_pool, event_type, action):
    call_handler(event_type, make_pool(uid="u1"))
    assert recording_cache.events == [(action, "u1")]


def test_cache_errors_become_temporary(recording_cache, make_pool):
    recording_cache.error = CommandExecutionError("pool1", "exit status 1")
    with pytest.raises(kopf.TemporaryError):
        call_handler("ADDED", make_pool())


def test_cache_not_started(monkeypatch, make_pool):
    monkeypatch.setattr(state, "mirror_cache", None)
    with pytest.raises(kopf.TemporaryError):
        call_handler("ADDED", make_pool())
