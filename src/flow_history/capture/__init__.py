"""Capture/restore driver and the significance test."""

from .controller import (
    DEBOUNCE_TIMER,
    SETTLE_TIMER,
    CaptureController,
    CaptureState,
    PendingTimer,
)
from .significance import is_significant_change, snapshot_digest

__all__ = [
    "CaptureController",
    "CaptureState",
    "DEBOUNCE_TIMER",
    "PendingTimer",
    "SETTLE_TIMER",
    "is_significant_change",
    "snapshot_digest",
]
