"""Challenge token validation for registered domains.

Both challenge versions share the same steps:

    token check -> origin check -> domain lookup -> bypass or upstream call

and differ only in which secret they need, how the verifier is called and
how its answer is judged. Every path ends in a ``VerificationOutcome``;
nothing is raised past ``validate``.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from config import Settings
from services.domain_registry import DomainPolicy, DomainRegistry
from services.network import AddressPolicy
from services.recaptcha import (
    DEFAULT_ACTION,
    RecaptchaClient,
    UpstreamError,
    VerificationResult,
)

logger = logging.getLogger(__name__)

TOKEN_REQUIRED = "Token is required."
ORIGIN_REQUIRED = "Origin is required."
INVALID_DOMAIN = "Invalid domain configuration."
VALIDATION_FAILED = "reCAPTCHA validation failed."


class ChallengeVersion(str, enum.Enum):
    V2 = "v2"
    V3 = "v3"


class OutcomeKind(str, enum.Enum):
    """Why a request ended the way it did."""

    ACCEPTED = "accepted"
    BYPASSED = "bypassed"
    INPUT_ERROR = "input_error"
    CONFIGURATION_ERROR = "configuration_error"
    POLICY_REJECTION = "policy_rejection"
    UPSTREAM_ERROR = "upstream_error"


@dataclass(frozen=True)
class ValidationRequest:
    token: str
    claimed_origin: str
    client_address: str
    action: Optional[str] = None


@dataclass(frozen=True)
class VerificationOutcome:
    accepted: bool
    http_status: int
    message: str
    kind: OutcomeKind

    @classmethod
    def accept(cls, kind: OutcomeKind = OutcomeKind.ACCEPTED) -> "VerificationOutcome":
        return cls(True, 200, "", kind)

    @classmethod
    def reject(cls, message: str, kind: OutcomeKind, http_status: int = 400) -> "VerificationOutcome":
        return cls(False, http_status, message, kind)


class Validator:
    """Shared validation steps; subclasses supply the upstream call."""

    version: ChallengeVersion

    def __init__(self, registry: DomainRegistry, address_policy: AddressPolicy, client: RecaptchaClient):
        self.registry = registry
        self.address_policy = address_policy
        self.client = client

    def supports(self, policy: DomainPolicy) -> bool:
        raise NotImplementedError

    async def check_upstream(self, policy: DomainPolicy, request: ValidationRequest) -> bool:
        raise NotImplementedError

    async def validate(self, request: ValidationRequest) -> VerificationOutcome:
        if not request.token:
            return VerificationOutcome.reject(TOKEN_REQUIRED, OutcomeKind.INPUT_ERROR)

        if not request.claimed_origin:
            return VerificationOutcome.reject(ORIGIN_REQUIRED, OutcomeKind.INPUT_ERROR)

        policy = self.registry.find_policy(request.claimed_origin)
        if policy is None or not self.supports(policy):
            return VerificationOutcome.reject(INVALID_DOMAIN, OutcomeKind.CONFIGURATION_ERROR)

        if self.address_policy.should_bypass(request.client_address):
            logger.info(f"Request from allowed IP: {request.client_address}")
            return VerificationOutcome.accept(OutcomeKind.BYPASSED)

        try:
            is_valid = await self.check_upstream(policy, request)
        except UpstreamError as e:
            logger.error(
                f"Validation error for origin {request.claimed_origin} "
                f"({self.version.value}): {e}"
            )
            return VerificationOutcome.reject(
                str(e) or "reCAPTCHA verification error.",
                OutcomeKind.UPSTREAM_ERROR,
                http_status=500,
            )

        if not is_valid:
            return VerificationOutcome.reject(VALIDATION_FAILED, OutcomeKind.POLICY_REJECTION)
        return VerificationOutcome.accept()


class RecaptchaV2Validator(Validator):
    """Checkbox/invisible challenge: the verifier's pass/fail is final."""

    version = ChallengeVersion.V2

    def supports(self, policy: DomainPolicy) -> bool:
        return policy.supports_v2

    async def check_upstream(self, policy: DomainPolicy, request: ValidationRequest) -> bool:
        result = await self.client.verify_v2(policy.secret_v2, request.token)
        return result.success


class RecaptchaV3Validator(Validator):
    """Score-based challenge: success, matching action and score threshold."""

    version = ChallengeVersion.V3

    def supports(self, policy: DomainPolicy) -> bool:
        return policy.supports_v3

    async def check_upstream(self, policy: DomainPolicy, request: ValidationRequest) -> bool:
        action = request.action or DEFAULT_ACTION
        result = await self.client.verify_v3(policy.secret_v3, request.token, action)
        return self.is_acceptable(result, action, policy.score_threshold)

    @staticmethod
    def is_acceptable(result: VerificationResult, action: str, threshold: float) -> bool:
        if not result.success:
            return False
        if result.action != action:
            logger.info(f"reCAPTCHA action mismatch: expected {action}, got {result.action}")
            return False
        if result.score is None:
            logger.info("reCAPTCHA response carried no score")
            return False
        return result.score >= threshold


@dataclass
class Gateway:
    """Everything the HTTP layer needs, built once from settings."""

    registry: DomainRegistry
    address_policy: AddressPolicy
    client: RecaptchaClient
    v2: RecaptchaV2Validator
    v3: RecaptchaV3Validator

    @classmethod
    def build(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient,
        registry: Optional[DomainRegistry] = None,
    ) -> "Gateway":
        if registry is None:
            registry = DomainRegistry.from_settings(settings)
        address_policy = AddressPolicy.create(settings.allowed_ips, settings.auto_validate_local_ip)
        client = RecaptchaClient(
            http_client,
            endpoint=settings.recaptcha_endpoint,
            timeout=settings.recaptcha_timeout_seconds,
        )
        return cls(
            registry=registry,
            address_policy=address_policy,
            client=client,
            v2=RecaptchaV2Validator(registry, address_policy, client),
            v3=RecaptchaV3Validator(registry, address_policy, client),
        )

    def validator_for(self, version: ChallengeVersion) -> Validator:
        return self.v2 if version is ChallengeVersion.V2 else self.v3
