"""CORS middleware whose origin decision comes from the domain registry."""

from fastapi.middleware.cors import CORSMiddleware

from services.domain_registry import DomainRegistry


class DomainCORSMiddleware(CORSMiddleware):
    """Allows exactly the origins that resolve to a registered domain."""

    def __init__(self, app, registry: DomainRegistry):
        super().__init__(
            app,
            allow_methods=["POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )
        self.registry = registry

    def is_allowed_origin(self, origin: str) -> bool:
        return self.registry.is_origin_allowed(origin)
