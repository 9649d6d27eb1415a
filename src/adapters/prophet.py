"""Prophet HTTP transport adapter.

This adapter posts ``ProphetRequest`` XML documents to a Prophet server and
returns the ``ProphetResponse`` converted to the xml2json mapping shape. It
encapsulates transport concerns (base URL, path, headers, timeouts) and turns
every transport-level failure into a ``TransportError``.

Notes
-----
- Requests are sent exactly once; there is no retry or backoff.
- Authentication is not handled here. Extra headers (for example a proxy
  token) may be supplied through ``headers``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional
from xml.etree import ElementTree as ET

import httpx

from ..codec.prophet_xml import RESPONSE_ROOT, xml_to_json
from ..errors import TransportError
from ..schemas.prophet_contract import ErrorCode
from ..utils.correlation import get_request_id

logger = logging.getLogger(__name__)


class ProphetAdapter:
    """Adapter for a Prophet XML endpoint.

    Parameters
    ----------
    endpoint: str
        Base URL of the Prophet server (e.g., "http://webeye.example.com").
    path: str
        Relative path of the Prophet servlet. Defaults to "/prophet".
    timeout: float
        Request timeout in seconds.
    headers: Optional[Mapping[str, str]]
        Additional HTTP headers sent with every request.

    Attributes
    ----------
    _client: httpx.AsyncClient
        Shared async client configured with base URL, timeout, and headers.
    """

    def __init__(
        self,
        endpoint: str,
        path: str = "/prophet",
        timeout: float = 140,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=endpoint, timeout=timeout, headers=self._headers(headers)
        )
        self._endpoint = endpoint
        self._path = path
        self._timeout_seconds = timeout
        logger.info(
            "prophet.adapter.init",
            extra={"endpoint": endpoint, "path": path, "timeout_seconds": timeout},
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def inject_http_client_for_testing(self, client: Any) -> None:
        """Replace underlying HTTP client (testing only).

        This allows unit tests to provide a mock compatible with ``post()``.
        """
        self._client = client

    @staticmethod
    def _headers(extra: Optional[Mapping[str, str]]) -> dict:
        """Build default headers.

        Parameters
        ----------
        extra: Optional[Mapping[str, str]]
            Caller-supplied headers; these override the defaults.

        Returns
        -------
        dict
            A dictionary of HTTP headers suitable for XML requests.
        """
        headers = {"Content-Type": "text/xml", "Accept": "text/xml"}
        if extra:
            headers.update(extra)
        return headers

    async def send(self, payload: str) -> Dict[str, Any]:
        """POST a request document and return the converted ``ProphetResponse``.

        Parameters
        ----------
        payload: str
            ``ProphetRequest`` XML document.

        Returns
        -------
        Dict[str, Any]
            The ``ProphetResponse`` element as an xml2json mapping.

        Raises
        ------
        TransportError
            On timeouts, connection failures, non-2xx responses, or a body
            that is not a well-formed ``ProphetResponse`` document.
        """
        logger.debug(
            "prophet.http.post",
            extra={"req_id": get_request_id(), "path": self._path, "payload": payload},
        )
        try:
            resp = await self._client.post(self._path, content=payload)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.error(
                "prophet.http.timeout",
                extra={
                    "req_id": get_request_id(),
                    "path": self._path,
                    "timeout_seconds": self._timeout_seconds,
                },
            )
            raise TransportError(
                f"Request to {self._path} timed out after {self._timeout_seconds}s",
                code=ErrorCode.TIMEOUT,
            ) from exc
        except httpx.HTTPStatusError as exc:
            # Capture truncated upstream body for diagnostics
            text = exc.response.text or ""
            body_preview = text if len(text) <= 500 else text[:500] + "..."
            logger.error(
                "prophet.http.status_error",
                extra={
                    "req_id": get_request_id(),
                    "path": self._path,
                    "status": exc.response.status_code,
                    "body_preview": body_preview,
                },
            )
            raise TransportError(
                f"Prophet server returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "prophet.http.error",
                extra={"req_id": get_request_id(), "path": self._path, "error": str(exc)},
            )
            raise TransportError(f"Prophet request failed: {exc}") from exc

        logger.debug(
            "prophet.http.response",
            extra={
                "req_id": get_request_id(),
                "path": self._path,
                "status_code": resp.status_code,
            },
        )
        return self._convert(resp.text)

    @staticmethod
    def _convert(body: str) -> Dict[str, Any]:
        try:
            document = xml_to_json(body)
        except ET.ParseError as exc:
            raise TransportError(
                f"Prophet response is not well-formed XML: {exc}",
                code=ErrorCode.MALFORMED_RESPONSE,
            ) from exc
        if RESPONSE_ROOT not in document:
            raise TransportError(
                f"Expected <{RESPONSE_ROOT}> document, got <{next(iter(document))}>",
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        prophet_response = document[RESPONSE_ROOT]
        if prophet_response is None:
            # An empty <ProphetResponse/> carries no method responses
            return {}
        if not isinstance(prophet_response, dict):
            # Bare text in the envelope is a server fault message
            raise TransportError(
                f"Prophet server fault: {str(prophet_response)[:200]}",
                code=ErrorCode.MALFORMED_RESPONSE,
            )
        return prophet_response

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ProphetAdapter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
