"""reCAPTCHA siteverify client.

Wraps the wire contract with the upstream verifier: a form-encoded POST of
``secret``, ``response`` and (v3 only) ``action``, answered with a JSON
object carrying ``success`` and, for v3, ``score`` and ``action``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from config import DEFAULT_RECAPTCHA_ENDPOINT

logger = logging.getLogger(__name__)

VERIFY_URL = DEFAULT_RECAPTCHA_ENDPOINT
USER_AGENT = "recaptcha-validation-api"
DEFAULT_ACTION = "default"


class UpstreamError(Exception):
    """The verifier could not give a usable answer."""


class UpstreamUnreachable(UpstreamError):
    """Transport failure or timeout while calling the verifier."""


class UpstreamProtocolError(UpstreamError):
    """The verifier answered with a non-success status or an unreadable body."""


@dataclass
class VerificationResult:
    """Parsed siteverify response."""

    success: bool
    action: Optional[str] = None
    score: Optional[float] = None
    hostname: Optional[str] = None
    error_codes: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "VerificationResult":
        action = payload.get("action")
        hostname = payload.get("hostname")
        error_codes = payload.get("error-codes") or []
        return cls(
            success=payload.get("success") is True,
            action=action if isinstance(action, str) else None,
            score=_parse_score(payload.get("score")),
            hostname=hostname if isinstance(hostname, str) else None,
            error_codes=[str(code) for code in error_codes] if isinstance(error_codes, list) else [],
        )


def _parse_score(value: Any) -> Optional[float]:
    # bool is an int subclass; a boolean score is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class RecaptchaClient:
    """Sends verification requests over a shared httpx client."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: str = VERIFY_URL,
        timeout: float = 10.0,
    ):
        self.http_client = http_client
        self.endpoint = endpoint or VERIFY_URL
        self.timeout = timeout

    async def verify_v2(self, secret: str, token: str) -> VerificationResult:
        return await self._post({"secret": secret, "response": token})

    async def verify_v3(self, secret: str, token: str, action: Optional[str] = None) -> VerificationResult:
        return await self._post(
            {"secret": secret, "response": token, "action": action or DEFAULT_ACTION}
        )

    async def _post(self, form: dict[str, str]) -> VerificationResult:
        try:
            response = await self.http_client.post(
                self.endpoint,
                data=form,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamUnreachable("reCAPTCHA verification timed out.") from e
        except httpx.HTTPError as e:
            raise UpstreamUnreachable(f"Failed to reach reCAPTCHA service: {e}") from e

        if response.status_code != 200:
            logger.warning(f"reCAPTCHA verify returned {response.status_code}")
            raise UpstreamProtocolError("Failed to validate reCAPTCHA.")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamProtocolError("Invalid response from reCAPTCHA service.") from e

        if not isinstance(payload, dict):
            raise UpstreamProtocolError("Invalid response from reCAPTCHA service.")

        result = VerificationResult.from_payload(payload)
        if not result.success and result.error_codes:
            logger.info(f"reCAPTCHA rejected token: {', '.join(result.error_codes)}")
        return result


def build_http_client(retries: int = 0, timeout: float = 10.0) -> httpx.AsyncClient:
    """Create the shared outbound client used for verification calls."""
    transport = httpx.AsyncHTTPTransport(retries=retries)
    return httpx.AsyncClient(transport=transport, timeout=timeout)
