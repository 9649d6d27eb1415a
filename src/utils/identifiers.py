"""Identifier generation for datum requests.

Each ``DataEyeClient`` owns its own generator, so default identifiers are
unique per client without any process-wide counter.
"""

from __future__ import annotations

import itertools
import uuid
from typing import Optional


class IdGenerator:
    """Produce unique identifiers of the form ``<prefix><n>``.

    Parameters
    ----------
    prefix: Optional[str]
        Leading text for every identifier. Defaults to a short random token so
        identifiers from different generators do not collide.
    """

    def __init__(self, prefix: Optional[str] = None) -> None:
        self._prefix = prefix if prefix is not None else f"de{uuid.uuid4().hex[:8]}-"
        self._counter = itertools.count(1)

    @property
    def prefix(self) -> str:
        return self._prefix

    def next_id(self) -> str:
        """Return the next identifier."""
        return f"{self._prefix}{next(self._counter)}"
