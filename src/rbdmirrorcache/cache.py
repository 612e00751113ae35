"""A store of rbd mirror status for CephBlockPools with mirroring enabled.

`MirrorCache` follows the add/update/delete/replace/resync contract of a
watch-driven store, but it is a sink: the generic lookups (`MirrorCache.list`,
`MirrorCache.get`, `MirrorCache.get_by_key`) intentionally return nothing.
Consumers read through `MirrorCache.snapshot` instead.
"""

from __future__ import annotations

__all__ = ("MirrorCache", "ResyncResult")

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from rbdmirrorcache.cephconfig import ensure_ceph_config
from rbdmirrorcache.credentials import CredentialResolver
from rbdmirrorcache.exceptions import MirrorCacheError
from rbdmirrorcache.rbd import StatusFetcher
from rbdmirrorcache.types import PoolResource, PoolStatusRecord, get_uid


@dataclass
class ResyncResult:
    """Outcome of a `MirrorCache.resync` sweep."""

    refreshed: int = 0
    failed: int = 0
    skipped: int = 0


class MirrorCache:
    """Mirror status of CephBlockPools, keyed by pool UID.

    All writes and the resync sweep are serialized on a single lock.
    Records are immutable and are only ever replaced whole.

    Parameters
    ----------
    resolver : `rbdmirrorcache.credentials.CredentialResolver`
        Resolves the ``rbd`` credentials of a pool's namespace.
    fetcher : `rbdmirrorcache.rbd.StatusFetcher`, optional
        Runs ``rbd mirror pool status``.
    config_root : `str` or `pathlib.Path`
        Where ``ceph.conf`` and ``keyring`` are created. Failure to create
        them raises `rbdmirrorcache.exceptions.BootstrapFatalError`.
    serialize_resync : `bool`
        If `True`, `resync` holds the lock for the whole sweep, including the
        ``rbd`` calls. If `False`, the lock is held only to take a snapshot
        and to commit each refreshed record. A record that is deleted or
        rewritten by a writer while its status is being fetched keeps the
        writer's result.
    logger : `logging.Logger`, optional
        Logger to use for logging messages.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        fetcher: StatusFetcher | None = None,
        *,
        config_root: str | Path = "/etc/ceph",
        serialize_resync: bool = True,
        logger: Any | None = None,
    ) -> None:
        self.logger = logger or structlog.getLogger(__name__)
        ensure_ceph_config(config_root, logger=self.logger)

        self.resolver = resolver
        self.fetcher = fetcher or StatusFetcher(logger=self.logger)
        self.serialize_resync = serialize_resync
        self._records: dict[str, PoolStatusRecord] = {}
        self._lock = threading.Lock()

    def add(self, obj: Any) -> None:
        """Fetch and store the mirror status of a CephBlockPool.

        Pools with mirroring disabled are skipped; an existing record for
        such a pool is left as it is.

        Raises
        ------
        rbdmirrorcache.exceptions.MirrorCacheError
            Raised if ``obj`` is not a CephBlockPool, or if its credentials or
            status cannot be obtained. The store is not modified.
        """
        pool = PoolResource.from_object(obj)
        if not pool.mirroring_enabled:
            self.logger.info(
                f"Skipping rbd mirror status update for pool "
                f"{pool.namespace}/{pool.name} because mirroring is disabled"
            )
            return

        record = self._fetch_record(pool.name, pool.namespace)
        with self._lock:
            self._records[pool.uid] = record

    update = add

    def delete(self, obj: Any) -> None:
        """Remove the record of a CephBlockPool, if there is one."""
        uid = get_uid(obj)
        with self._lock:
            self._records.pop(uid, None)

    def replace(self, items: Iterable[Any]) -> None:
        """Discard every record, then `add` each item in order.

        The first failing item stops the replacement and its error is raised;
        the items before it stay in the store and the items after it are not
        applied.
        """
        with self._lock:
            self._records = {}
        for item in items:
            self.add(item)

    def resync(self) -> ResyncResult:
        """Refresh the mirror status of every stored pool.

        A pool whose credentials or status cannot be obtained keeps its
        previous record. Failures are logged, never raised.
        """
        self.logger.info("RBD mirror store resync started")
        if self.serialize_resync:
            with self._lock:
                result = self._resync_locked()
        else:
            result = self._resync_unlocked()
        self.logger.info(
            f"RBD mirror store resync ended: {result.refreshed} refreshed, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result

    def _resync_locked(self) -> ResyncResult:
        result = ResyncResult()
        for uid, record in list(self._records.items()):
            try:
                fresh = self._fetch_record(
                    record.pool_name, record.pool_namespace
                )
            except MirrorCacheError as e:
                self.logger.error(f"Resync of pool {uid} failed: {e}")
                result.failed += 1
                continue
            self._records[uid] = fresh
            result.refreshed += 1
        return result

    def _resync_unlocked(self) -> ResyncResult:
        result = ResyncResult()
        for uid, record in self.snapshot().items():
            try:
                fresh = self._fetch_record(
                    record.pool_name, record.pool_namespace
                )
            except MirrorCacheError as e:
                self.logger.error(f"Resync of pool {uid} failed: {e}")
                result.failed += 1
                continue
            with self._lock:
                if self._records.get(uid) is not record:
                    result.skipped += 1
                    continue
                self._records[uid] = fresh
            result.refreshed += 1
        return result

    def _fetch_record(self, name: str, namespace: str) -> PoolStatusRecord:
        credentials = self.resolver.resolve(namespace)
        mirror_status = self.fetcher.fetch(name, credentials)
        return PoolStatusRecord(
            pool_name=name,
            pool_namespace=namespace,
            mirror_status=mirror_status,
        )

    def snapshot(self) -> dict[str, PoolStatusRecord]:
        """Copy the stored records, keyed by pool UID."""
        with self._lock:
            return dict(self._records)

    def list(self) -> list[Any]:
        return []

    def list_keys(self) -> list[str]:
        return []

    def get(self, obj: Any) -> tuple[Any, bool]:
        return None, False

    def get_by_key(self, key: str) -> tuple[Any, bool]:
        return None, False
