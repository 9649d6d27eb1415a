"""Round-trip correlation IDs for structured logging.

Each Prophet round trip gets its own ``req_id`` held in a ContextVar so the
adapter and the merge step can tag their log records with it, even when
several calls run concurrently on one event loop.

Not to be confused with the per-datum correlation keys that pair
``getDataDefinition`` and ``getValue`` responses (see
``src.domain.correlation``).
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Return the current round-trip id, or empty string."""

    return _request_id_var.get()


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind a round-trip id for the duration of the block.

    A random id is generated when none is given. The previous id is restored
    on exit.
    """
    token = _request_id_var.set(request_id or uuid.uuid4().hex)
    try:
        yield _request_id_var.get()
    finally:
        _request_id_var.reset(token)
