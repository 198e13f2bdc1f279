"""
Forwarder - Backend HTTP Calls
==============================

Issues the single outbound request behind each proxied route over a shared
httpx.AsyncClient and judges the outcome with the route's success mode.

No retries, no redirect policy beyond the httpx default. Every failure is
raised as BackendCallError so handlers have exactly one thing to catch.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .route_table import BackendRoute, SuccessMode

logger = logging.getLogger("luis_proxy.proxy.forwarder")


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Non-standard JSON constant: {name}")


class BackendCallError(Exception):
    """
    A backend call failed.

    Covers transport errors, non-2xx statuses on status-checked routes and
    unparseable bodies on blind-parse routes. The message is for operators
    only; callers see ``route.error_message``.
    """

    def __init__(
        self,
        route: BackendRoute,
        detail: str,
        status_code: Optional[int] = None
    ):
        super().__init__(detail)
        self.route = route
        self.detail = detail
        self.status_code = status_code


@dataclass
class BackendResult:
    """Outcome of a successful backend call."""

    status_code: int
    content: bytes
    content_type: Optional[str]
    payload: Any = None


class Forwarder:
    """
    Thin wrapper around httpx.AsyncClient applying the route table's rules.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def forward(
        self,
        route: BackendRoute,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        params: Optional[Dict[str, str]] = None
    ) -> BackendResult:
        """
        Issue one backend request for ``route``.

        Args:
            route: Route table entry being served
            url: Fully built target URL
            headers: Outbound headers
            body: Outbound body, or None to send none
            params: Query string parameters

        Returns:
            BackendResult with the raw body and, for blind-parse routes,
            the decoded JSON payload

        Raises:
            BackendCallError: On any failure
        """
        logger.info(
            "Calling endpoint",
            extra={"route": route.name, "method": route.method, "url": url}
        )

        try:
            response = await self._client.request(
                route.method,
                url,
                headers=headers,
                content=body,
                params=params,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise BackendCallError(
                route, f"{type(e).__name__}: {e}"
            ) from e
        except Exception as e:
            # e.g. UnicodeEncodeError for a non-ASCII subscription key header
            raise BackendCallError(
                route, f"Could not send request: {type(e).__name__}: {e}"
            ) from e

        result = BackendResult(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

        if route.success is SuccessMode.STATUS:
            if not response.is_success:
                raise BackendCallError(
                    route,
                    f"Backend returned {response.status_code} {response.reason_phrase}",
                    status_code=response.status_code,
                )
            return result

        # Blind parse: status is ignored
        try:
            result.payload = json.loads(
                response.content, parse_constant=_reject_constant
            )
        except ValueError as e:
            raise BackendCallError(
                route,
                f"Invalid JSON from backend (status {response.status_code}): {e}",
                status_code=response.status_code,
            ) from e

        return result

    async def aclose(self) -> None:
        await self._client.aclose()
