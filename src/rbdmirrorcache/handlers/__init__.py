"""Kopf handlers for the rbd mirror cache."""

__all__ = (
    "handle_pool_event",
    "start_operator",
    "stop_operator",
)

from rbdmirrorcache.handlers.poolwatcher import handle_pool_event
from rbdmirrorcache.startup import start_operator, stop_operator
