"""Code intended to run on start-up and shutdown of the operator."""

__all__ = ("start_operator", "stop_operator")

from typing import Any

import kopf
import structlog

from rbdmirrorcache import state
from rbdmirrorcache.cache import MirrorCache
from rbdmirrorcache.credentials import CredentialResolver
from rbdmirrorcache.exceptions import BootstrapFatalError
from rbdmirrorcache.k8s import create_k8sclient
from rbdmirrorcache.rbd import StatusFetcher
from rbdmirrorcache.resync import ResyncDriver


@kopf.on.startup(errors=kopf.ErrorsMode.PERMANENT)  # type: ignore[arg-type]
def start_operator(logger: Any, **kwargs: Any) -> None:
    """Create the mirror cache and start its periodic resync.

    A `rbdmirrorcache.exceptions.BootstrapFatalError` from writing the Ceph
    config is re-raised as `kopf.PermanentError`. Kopf does not retry the
    handler and the operator exits.
    """
    if logger is None:
        logger = structlog.getLogger(__name__)

    resolver = CredentialResolver(
        state.allowed_namespaces, create_k8sclient(), logger=logger
    )
    fetcher = StatusFetcher(timeout=state.command_timeout, logger=logger)
    try:
        state.mirror_cache = MirrorCache(
            resolver,
            fetcher,
            config_root=state.ceph_config_root,
            serialize_resync=state.serialize_resync,
            logger=logger,
        )
    except BootstrapFatalError as e:
        raise kopf.PermanentError(str(e)) from e
    logger.info(
        "Collecting rbd mirror status from namespaces "
        f"{', '.join(state.allowed_namespaces)}"
    )

    state.resync_driver = ResyncDriver(
        state.mirror_cache, state.resync_interval, logger=logger
    )
    state.resync_driver.start()


@kopf.on.cleanup()  # type: ignore[arg-type]
def stop_operator(logger: Any, **kwargs: Any) -> None:
    """Stop the periodic resync."""
    if state.resync_driver is not None:
        state.resync_driver.stop()
        state.resync_driver = None
