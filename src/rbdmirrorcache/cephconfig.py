"""Creation of the local Ceph configuration needed by the ``rbd`` CLI."""

__all__ = ("CEPH_CONFIG", "ensure_ceph_config")

from pathlib import Path
from typing import Any

import structlog

from rbdmirrorcache.exceptions import BootstrapFatalError

CEPH_CONFIG = """[global]
auth_cluster_required = cephx
auth_service_required = cephx
auth_client_required = cephx
"""
"""Content of the ``ceph.conf`` written when none exists."""


def ensure_ceph_config(
    config_root: str | Path = "/etc/ceph", logger: Any | None = None
) -> Path:
    """Write a basic ``ceph.conf`` and an empty ``keyring``.

    Existing files are never overwritten, so calling this more than once is
    harmless. The ``keyring`` exists only to stop ``rbd`` from logging an
    error about it; the key itself is always passed on the command line.

    Parameters
    ----------
    config_root : `str` or `pathlib.Path`
        The Ceph configuration directory, usually ``/etc/ceph``.
    logger : `logging.Logger`, optional
        Logger to use for logging messages.

    Returns
    -------
    `pathlib.Path`
        The path of ``ceph.conf``.

    Raises
    ------
    rbdmirrorcache.exceptions.BootstrapFatalError
        Raised if any of the files or directories cannot be created.
    """
    if logger is None:
        logger = structlog.getLogger(__name__)

    root = Path(config_root)
    config_path = root / "ceph.conf"
    keyring_path = root / "keyring"

    try:
        root.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise BootstrapFatalError(str(root), str(e)) from e

    if not config_path.exists():
        try:
            config_path.touch(mode=0o600)
            config_path.write_text(CEPH_CONFIG)
        except OSError as e:
            raise BootstrapFatalError(str(config_path), str(e)) from e
        logger.info(f"Wrote Ceph config to {config_path}")

    try:
        keyring_path.touch(exist_ok=True)
    except OSError as e:
        raise BootstrapFatalError(str(keyring_path), str(e)) from e

    return config_path
