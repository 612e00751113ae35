"""Models for rbd mirror pool status and the records held by the cache.

The status models parse the JSON printed by
``rbd mirror pool status <pool> --verbose --format json``. They are frozen;
a cached record is only ever replaced as a whole.
"""

from __future__ import annotations

__all__ = (
    "ClusterConfig",
    "CredentialInput",
    "DaemonService",
    "MirrorDaemonStatus",
    "MirrorImageStatus",
    "MirrorPoolSummary",
    "MirrorStatus",
    "PeerSite",
    "PeerSiteReplayDetails",
    "PoolResource",
    "PoolStatusRecord",
    "StateCounts",
    "get_uid",
    "parse_cluster_configs",
)

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from rbdmirrorcache.exceptions import TypeMismatchError

POOL_KIND = "CephBlockPool"


class _StatusModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class StateCounts(_StatusModel):
    """Number of images in each mirroring state."""

    unknown: int = 0
    error: int = 0
    syncing: int = 0
    starting_replay: int = 0
    replaying: int = 0
    stopping_replay: int = 0
    stopped: int = 0


class MirrorPoolSummary(_StatusModel):
    health: str
    daemon_health: str
    image_health: str
    states: StateCounts = Field(default_factory=StateCounts)


class MirrorDaemonStatus(_StatusModel):
    service_id: str = ""
    instance_id: str = ""
    client_id: str = ""
    hostname: str = ""
    version: str = Field(default="", alias="ceph_version")
    is_leader: bool = Field(default=False, alias="leader")
    health: str = ""


class DaemonService(_StatusModel):
    service_id: str = ""
    instance_id: str = ""
    daemon_id: str = ""
    hostname: str = ""


class PeerSiteReplayDetails(_StatusModel):
    """Replay progress embedded as JSON in a peer site description."""

    bytes_per_second: float = 0.0
    bytes_per_snapshot: float = 0.0
    local_snapshot_timestamp: int = 0
    remote_snapshot_timestamp: int = 0
    replay_state: str = ""


class PeerSite(_StatusModel):
    site_name: str = ""
    mirror_uuids: str = ""
    state: str = ""
    description: str = ""
    last_update: str = ""

    def replay_details(self) -> PeerSiteReplayDetails | None:
        """Decode the replay details from the description.

        The description looks like ``replaying, {"bytes_per_second": ...}``
        for snapshot-based mirroring. `None` is returned when it carries no
        JSON object.
        """
        start = self.description.find("{")
        if start == -1:
            return None
        try:
            return PeerSiteReplayDetails.model_validate_json(
                self.description[start:]
            )
        except ValidationError:
            return None


class MirrorImageStatus(_StatusModel):
    name: str = ""
    global_id: str = ""
    state: str = ""
    description: str = ""
    daemon_service: DaemonService = Field(default_factory=DaemonService)
    last_update: str = ""
    peer_sites: tuple[PeerSite, ...] = ()

    @field_validator("peer_sites", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class MirrorStatus(_StatusModel):
    """The verbose mirror status of a single pool."""

    summary: MirrorPoolSummary
    daemons: tuple[MirrorDaemonStatus, ...] = ()
    images: tuple[MirrorImageStatus, ...] = ()

    # rbd prints null rather than [] for an empty section
    @field_validator("daemons", "images", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class ClusterConfig(BaseModel):
    """An entry of the ``csi-cluster-config-json`` configmap field.

    Only ``monitors[0]`` of the first entry is used to reach the cluster.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cluster_id: str = Field(default="", alias="clusterID")
    monitors: tuple[str, ...] = ()

    @field_validator("monitors", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


@dataclass(frozen=True)
class CredentialInput:
    """The credentials passed to ``rbd`` for one namespace."""

    monitor: str
    id: str
    key: str

    def is_empty(self) -> bool:
        return not (self.monitor or self.id or self.key)


@dataclass(frozen=True)
class PoolStatusRecord:
    """A cached mirror status for a pool."""

    pool_name: str
    pool_namespace: str
    mirror_status: MirrorStatus


@dataclass(frozen=True)
class PoolResource:
    """The fields of a CephBlockPool used by the cache."""

    uid: str
    name: str
    namespace: str
    mirroring_enabled: bool

    @classmethod
    def from_object(cls, obj: Any) -> PoolResource:
        """Extract a `PoolResource` from a CephBlockPool manifest.

        Raises
        ------
        rbdmirrorcache.exceptions.TypeMismatchError
            Raised if ``obj`` is not a CephBlockPool.
        """
        if not isinstance(obj, Mapping):
            raise TypeMismatchError(obj, "not a mapping")
        if obj.get("kind") != POOL_KIND:
            raise TypeMismatchError(obj, f"kind is {obj.get('kind')!r}")
        uid = get_uid(obj)
        metadata = obj["metadata"]
        name = metadata.get("name")
        namespace = metadata.get("namespace")
        if not name or not namespace:
            raise TypeMismatchError(obj, "missing metadata name or namespace")

        mirroring = (obj.get("spec") or {}).get("mirroring") or {}
        return cls(
            uid=uid,
            name=name,
            namespace=namespace,
            mirroring_enabled=bool(mirroring.get("enabled", False)),
        )


def get_uid(obj: Any) -> str:
    """Get ``metadata.uid`` from a Kubernetes object manifest."""
    if not isinstance(obj, Mapping):
        raise TypeMismatchError(obj, "not a mapping")
    metadata = obj.get("metadata")
    if not isinstance(metadata, Mapping) or not metadata.get("uid"):
        raise TypeMismatchError(obj, "missing metadata.uid")
    return str(metadata["uid"])


def parse_cluster_configs(data: str) -> list[ClusterConfig]:
    """Parse the ``csi-cluster-config-json`` configmap value.

    Raises
    ------
    ValueError
        Raised if ``data`` is not a JSON list of cluster configs. A JSON
        ``null`` is read as an empty list.
    """
    items = json.loads(data)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError("expected a JSON list")
    return [ClusterConfig.model_validate(item) for item in items]
