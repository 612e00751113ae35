"""Kopf handler that feeds CephBlockPool events into the mirror cache."""

__all__ = ("handle_pool_event",)

from typing import Any

import kopf

from rbdmirrorcache import state
from rbdmirrorcache.exceptions import MirrorCacheError


@kopf.on.event("ceph.rook.io", "v1", "cephblockpools")  # type: ignore[arg-type]
def handle_pool_event(
    *,
    event: dict[str, Any],
    body: dict[str, Any],
    namespace: str,
    name: str,
    logger: Any,
    **kwargs: Any,
) -> None:
    """Add, update or delete the cached mirror status of a CephBlockPool.

    Parameters
    ----------
    event : `dict`
        The watch event. Its type is "ADDED", "MODIFIED" or "DELETED", or
        `None` for objects seen while listing.
    body : `dict`
        The body of the CephBlockPool.
    namespace : `str`
        The Kubernetes namespace of the CephBlockPool.
    name : `str`
        The name of the CephBlockPool.
    logger : `Any`
        A logger instance for logging messages.
    kwargs : `Any`
        Additional keyword arguments, if any.

    Raises
    ------
    kopf.TemporaryError
        Raised if the cache could not be updated. Kopf logs it; a failed
        pool is picked up again by its next event.
    """
    cache = state.mirror_cache
    if cache is None:
        raise kopf.TemporaryError("Mirror cache is not started", delay=10)

    try:
        if event["type"] == "DELETED":
            cache.delete(body)
        else:
            cache.add(body)
    except MirrorCacheError as e:
        logger.error(f"Failed to update mirror status of {namespace}/{name}")
        raise kopf.TemporaryError(str(e), delay=30) from e
