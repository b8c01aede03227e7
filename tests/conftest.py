import json
import os
from typing import Optional

import httpx
import pytest

# Settings are read once when main is imported; pin them before any test module loads it
os.environ["GATEWAY_CONFIG_FILE"] = os.path.join(os.path.dirname(__file__), "missing-config.json")
os.environ["DOMAINS"] = json.dumps([
    {"name": "example.com", "secretKeyV2": "v2-secret", "secretKeyV3": "v3-secret", "scoreThreshold": 0.5},
])
os.environ["RATE_LIMIT"] = json.dumps({"active": False})

from services.domain_registry import DomainPolicy, DomainRegistry  # noqa: E402
from services.network import AddressPolicy  # noqa: E402
from services.recaptcha import RecaptchaClient, VerificationResult  # noqa: E402

VERIFY_URL = "https://verifier.test/recaptcha/api/siteverify"


class StubRecaptchaClient:
    """Records calls and answers with a fixed result or error."""

    def __init__(self, result: Optional[VerificationResult] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple] = []

    async def verify_v2(self, secret, token):
        return self._answer(("v2", secret, token))

    async def verify_v3(self, secret, token, action=None):
        return self._answer(("v3", secret, token, action))

    def _answer(self, call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.result


class ExplodingRecaptchaClient:
    """Fails the test if the upstream verifier is ever contacted."""

    async def verify_v2(self, secret, token):
        pytest.fail("upstream verifier must not be called")

    async def verify_v3(self, secret, token, action=None):
        pytest.fail("upstream verifier must not be called")


@pytest.fixture
def registry() -> DomainRegistry:
    return DomainRegistry([
        DomainPolicy("example.com", secret_v2="v2-secret", secret_v3="v3-secret", score_threshold=0.5),
        DomainPolicy("v2only.org", secret_v2="v2-only-secret"),
        DomainPolicy("nothreshold.net", secret_v3="v3-secret"),
    ])


@pytest.fixture
def address_policy() -> AddressPolicy:
    return AddressPolicy.create(["203.0.113.7"], auto_validate_local_ip=False)


def mock_verifier(handler) -> RecaptchaClient:
    """RecaptchaClient whose transport is answered by ``handler``."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RecaptchaClient(http_client, endpoint=VERIFY_URL, timeout=1.0)
