"""Transport interfaces and adapter registry."""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol


class ProphetTransport(Protocol):
    """Protocol for Prophet transports.

    Implementations deliver a ``ProphetRequest`` XML document to a server and
    return the ``ProphetResponse`` converted to an xml2json mapping.
    """

    async def send(self, payload: str) -> Dict[str, Any]:
        """Perform one round trip; raise ``TransportError`` on failure."""
        raise NotImplementedError


_adapters: Dict[str, ProphetTransport] = {}


def register_adapter(source_id: str, adapter: ProphetTransport) -> None:
    """Register an adapter instance under a logical `source_id`."""
    _adapters[source_id] = adapter


def get_adapter(source_id: str) -> ProphetTransport:
    """Retrieve a registered adapter by `source_id`."""
    return _adapters[source_id]


def get_available_source_ids() -> list[str]:
    """Get list of registered adapter source_ids."""
    return list(_adapters.keys())


def log_adapter_status() -> None:
    """Log information about registered Prophet servers."""
    logger = logging.getLogger(__name__)

    if not _adapters:
        logger.warning(
            "No Prophet servers configured. Add a 'sources' entry to the JSON "
            "config file or point DATAEYE_CONFIG_PATH at one."
        )
        return

    described = []
    for source_id, adapter in _adapters.items():
        endpoint: Any = getattr(adapter, "endpoint", None)
        described.append(f"'{source_id}' ({endpoint or type(adapter).__name__})")
    logger.info("Prophet servers configured: %s", ", ".join(described))


def reset_adapters() -> None:
    """Test-only helper to clear registered adapters."""
    _adapters.clear()
