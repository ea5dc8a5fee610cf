from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


async def attempt(label: str, aw: Awaitable[T]) -> T | None:
    """Await a best-effort side effect, logging instead of raising."""
    try:
        return await aw
    except Exception:
        log.exception("%s failed", label)
        return None
