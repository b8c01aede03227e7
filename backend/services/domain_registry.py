"""Registry of consumer domains and their verification secrets.

Built once at startup from settings and never mutated afterwards, so a
single instance is shared by every request without locking.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from config import Settings

logger = logging.getLogger(__name__)

# Characters allowed to precede a registered name inside an origin
_LABEL_BOUNDARIES = (".", "/")


@dataclass(frozen=True)
class DomainPolicy:
    """Secrets and score threshold for one registered domain."""

    name: str
    secret_v2: Optional[str] = None
    secret_v3: Optional[str] = None
    score_threshold: Optional[float] = None

    @property
    def supports_v2(self) -> bool:
        return bool(self.secret_v2)

    @property
    def supports_v3(self) -> bool:
        return bool(self.secret_v3) and self.score_threshold is not None

    def matches(self, origin: str) -> bool:
        """True if the origin ends with this domain name at a label boundary."""
        if not self.name or not origin.endswith(self.name):
            return False
        prefix = origin[: -len(self.name)]
        return not prefix or prefix.endswith(_LABEL_BOUNDARIES)


class DomainRegistry:
    """Immutable, ordered collection of domain policies."""

    def __init__(self, policies: Iterable[DomainPolicy]):
        self._policies = tuple(policies)

        seen: set[str] = set()
        for policy in self._policies:
            if policy.name in seen:
                logger.warning(
                    f"Domain {policy.name} is registered more than once; "
                    "the first entry takes precedence"
                )
            seen.add(policy.name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DomainRegistry":
        return cls(
            DomainPolicy(
                name=domain.name,
                secret_v2=domain.secret_key_v2,
                secret_v3=domain.secret_key_v3,
                score_threshold=domain.score_threshold,
            )
            for domain in settings.domains
        )

    def __len__(self) -> int:
        return len(self._policies)

    @property
    def names(self) -> list[str]:
        return [policy.name for policy in self._policies]

    def find_policy(self, origin: Optional[str]) -> Optional[DomainPolicy]:
        """Return the first policy whose name is a suffix of the origin."""
        if not origin:
            return None
        for policy in self._policies:
            if policy.matches(origin):
                return policy
        return None

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        """CORS decision: only origins of registered domains are allowed.

        A missing origin is rejected.
        """
        if not origin:
            logger.warning("Origin header is missing or undefined")
            return False
        if self.find_policy(origin) is None:
            logger.warning(f"CORS policy violation by origin: {origin}")
            return False
        return True
