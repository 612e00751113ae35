"""Tests for the rbdmirrorcache.startup module."""

import asyncio
import logging

import kopf
import pytest
from kopf._core.engines import activities
from kopf._core.engines.indexing import OperatorIndexers
from kopf._core.intents.causes import Activity

from rbdmirrorcache import startup, state
from rbdmirrorcache.cache import MirrorCache
from rbdmirrorcache.exceptions import BootstrapFatalError


@pytest.fixture
def operator_state(monkeypatch, tmp_path, k8s_client):
    monkeypatch.setattr(startup, "create_k8sclient", lambda: k8s_client)
    monkeypatch.setattr(state, "allowed_namespaces", ["ns1"])
    monkeypatch.setattr(state, "ceph_config_root", str(tmp_path / "ceph"))
    monkeypatch.setattr(state, "resync_interval", 60.0)
    monkeypatch.setattr(state, "command_timeout", 15.0)
    monkeypatch.setattr(state, "serialize_resync", False)
    monkeypatch.setattr(state, "mirror_cache", None)
    monkeypatch.setattr(state, "resync_driver", None)
    return tmp_path


def test_start_and_stop_operator(operator_state):
    logger = logging.getLogger(__name__)
    startup.start_operator(logger=logger)
    try:
        cache = state.mirror_cache
        assert isinstance(cache, MirrorCache)
        assert cache.resolver.allowed_namespaces == frozenset(["ns1"])
        assert cache.fetcher.timeout == 15.0
        assert cache.serialize_resync is False
        assert (operator_state / "ceph" / "ceph.conf").is_file()
        assert state.resync_driver.is_running()
    finally:
        driver = state.resync_driver
        startup.stop_operator(logger=logger)

    assert state.resync_driver is None
    assert not driver.is_running()



def test_start_operator_bootstrap_failure(operator_state):
    (operator_state / "ceph").write_text("")
    with pytest.raises(kopf.PermanentError) as excinfo:
        startup.start_operator(logger=logging.getLogger(__name__))
    assert isinstance(excinfo.value.__cause__, BootstrapFatalError)
    assert state.mirror_cache is None
    assert state.resync_driver is None


def test_bootstrap_failure_aborts_startup(operator_state, monkeypatch, k8s_client):
    """Kopf runs the startup handler once and reports the failure."""
    (operator_state / "ceph").write_text("")
    clients = []

    def create_client():
        clients.append(k8s_client)
        return k8s_client

    async def fake_sleep(delay, *args, **kwargs):
        # A retried handler would loop here forever
        assert len(clients) == 1

    monkeypatch.setattr(startup, "create_k8sclient", create_client)
    monkeypatch.setattr(activities.aiotime, "sleep", fake_sleep)

    registry = kopf.OperatorRegistry()
    kopf.on.startup(registry=registry)(startup.start_operator)

    with pytest.raises(activities.ActivityError) as excinfo:
        asyncio.run(
            activities.run_activity(
                lifecycle=kopf.lifecycles.all_at_once,
                registry=registry,
                settings=kopf.OperatorSettings(),
                activity=Activity.STARTUP,
                indices=OperatorIndexers().indices,
                memo=kopf.Memo(),
            )
        )

    assert isinstance(excinfo.value.__cause__, kopf.PermanentError)
    assert len(clients) == 1
    assert state.resync_driver is None
