"""Shared fixtures and fakes for the rbdmirrorcache tests."""

from __future__ import annotations

import base64
import json
from types import SimpleNamespace
from typing import Any

import pytest
from kubernetes.client.exceptions import ApiException

MIRROR_STATUS = {
    "summary": {
        "health": "OK",
        "daemon_health": "OK",
        "image_health": "OK",
        "states": {"replaying": 1},
    },
    "daemons": [
        {
            "service_id": "14151",
            "instance_id": "14153",
            "client_id": "a",
            "hostname": "rook-ceph-rbd-mirror-a",
            "ceph_version": "17.2.6",
            "leader": True,
            "health": "OK",
        }
    ],
    "images": [
        {
            "name": "csi-vol-0001",
            "global_id": "2d3a1c5e-9b7f-4e2b-8a51-7f0c8b3e9d10",
            "state": "up+stopped",
            "description": "local image is primary",
            "daemon_service": {
                "service_id": "14151",
                "instance_id": "14153",
                "daemon_id": "a",
                "hostname": "rook-ceph-rbd-mirror-a",
            },
            "last_update": "2023-05-04 10:11:12",
            "peer_sites": [
                {
                    "site_name": "site-b",
                    "mirror_uuids": "b1c2d3e4-0000-4000-8000-000000000001",
                    "state": "up+replaying",
                    "description": (
                        'replaying, {"bytes_per_second":1024.0,'
                        '"bytes_per_snapshot":4096.0,'
                        '"local_snapshot_timestamp":1683195072,'
                        '"remote_snapshot_timestamp":1683195072,'
                        '"replay_state":"idle"}'
                    ),
                    "last_update": "2023-05-04 10:11:10",
                }
            ],
        }
    ],
}


def pool_manifest(
    name: str = "pool1",
    namespace: str = "ns1",
    uid: str = "u1",
    enabled: bool = True,
) -> dict[str, Any]:
    return {
        "apiVersion": "ceph.rook.io/v1",
        "kind": "CephBlockPool",
        "metadata": {"name": name, "namespace": namespace, "uid": uid},
        "spec": {"replicated": {"size": 3}, "mirroring": {"enabled": enabled}},
    }


class FakeCoreV1Api:
    def __init__(self, client: FakeK8sClient) -> None:
        self.client = client

    def read_namespaced_secret(
        self, *, name: str, namespace: str, _preload_content: bool
    ) -> SimpleNamespace:
        return self.client.read("secrets", namespace, name)

    def read_namespaced_config_map(
        self, *, name: str, namespace: str, _preload_content: bool
    ) -> SimpleNamespace:
        return self.client.read("configmaps", namespace, name)


class FakeK8sClient:
    """Stand-in for the `kubernetes.client` module holding raw manifests."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []

    def CoreV1Api(self) -> FakeCoreV1Api:  # noqa: N802
        return FakeCoreV1Api(self)

    def add_secret(self, namespace: str, name: str, data: dict[str, str]):
        encoded = {
            key: base64.b64encode(value.encode()).decode()
            for key, value in data.items()
        }
        self.objects[("secrets", namespace, name)] = {
            "kind": "Secret",
            "metadata": {"name": name, "namespace": namespace},
            "data": encoded,
        }

    def add_configmap(self, namespace: str, name: str, data: dict[str, str]):
        self.objects[("configmaps", namespace, name)] = {
            "kind": "ConfigMap",
            "metadata": {"name": name, "namespace": namespace},
            "data": data,
        }

    def read(self, kind: str, namespace: str, name: str) -> SimpleNamespace:
        self.calls.append((kind, namespace, name))
        try:
            manifest = self.objects[(kind, namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found") from None
        return SimpleNamespace(data=json.dumps(manifest).encode())


@pytest.fixture
def make_pool() -> Any:
    """Factory for CephBlockPool manifests."""
    return pool_manifest


@pytest.fixture
def mirror_status_json() -> bytes:
    return json.dumps(MIRROR_STATUS).encode()


@pytest.fixture
def k8s_client() -> FakeK8sClient:
    """A fake Kubernetes client with valid Rook records in ``ns1``."""
    client = FakeK8sClient()
    client.add_secret("ns1", "rook-ceph-mon", {"ceph-secret": "AQABCDEF=="})
    client.add_configmap(
        "ns1",
        "rook-ceph-csi-config",
        {
            "csi-cluster-config-json": json.dumps(
                [{"clusterID": "c1", "monitors": ["10.0.0.1:6789"]}]
            )
        },
    )
    return client
