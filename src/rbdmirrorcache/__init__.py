"""A cache of rbd mirror pool status for Rook CephBlockPools."""

from rbdmirrorcache.version import __version__

__all__ = ("__version__",)
