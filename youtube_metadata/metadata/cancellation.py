"""Cancellation checks performed before each backend call."""

from __future__ import annotations

import asyncio
from typing import Optional


def raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    """Raise :class:`asyncio.CancelledError` once the caller has set ``cancel_event``."""

    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("metadata request cancelled")


__all__ = ["raise_if_cancelled"]
