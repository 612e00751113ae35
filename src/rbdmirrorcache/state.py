"""Constructed (cached) state as module-level attributes."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rbdmirrorcache.cache import MirrorCache
    from rbdmirrorcache.resync import ResyncDriver


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


allowed_namespaces = _parse_list(
    os.environ.get("RBD_MIRROR_ALLOWED_NAMESPACES", "openshift-storage")
)
"""Namespaces whose CephBlockPools may be queried for mirror status."""

resync_interval = float(os.environ.get("RBD_MIRROR_RESYNC_INTERVAL", "60"))
"""Seconds between resync sweeps of the mirror cache."""

command_timeout: float | None = (
    float(os.environ.get("RBD_MIRROR_COMMAND_TIMEOUT", "60")) or None
)
"""Seconds before an ``rbd`` invocation is killed; `None` never times out."""

serialize_resync = _parse_bool(
    os.environ.get("RBD_MIRROR_SERIALIZE_RESYNC", "true")
)
"""Hold the cache lock for the whole resync sweep, including ``rbd`` calls."""

ceph_config_root = os.environ.get("CEPH_CONFIG_ROOT", "/etc/ceph")
"""Directory holding the ``ceph.conf`` and ``keyring`` used by ``rbd``."""


mirror_cache: MirrorCache | None = None
"""The running mirror cache, set when the operator starts."""

resync_driver: ResyncDriver | None = None
"""The periodic resync driver, set when the operator starts."""
