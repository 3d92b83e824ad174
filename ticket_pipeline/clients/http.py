"""Thin requests wrapper shared by the remote stage clients."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import requests

from ticket_pipeline.core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JsonResponse:
    """Status code plus decoded body; payload is None when the body is not JSON."""

    status_code: int
    payload: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def field(self, name: str) -> Any:
        if not isinstance(self.payload, dict):
            return None
        return self.payload.get(name)


def bearer_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def send_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    json_body: dict[str, Any] | None = None,
) -> JsonResponse:
    """Issue one request and decode its JSON body with exact decimals.

    Network errors and timeouts raise TransportError; HTTP error statuses are
    returned as-is so each stage decides how to report them.
    """

    try:
        response = session.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json_body,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    try:
        payload = response.json(parse_float=Decimal)
    except ValueError:
        payload = None

    if not 200 <= response.status_code < 300:
        logger.warning(
            "http_error_status",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )

    return JsonResponse(status_code=response.status_code, payload=payload)
