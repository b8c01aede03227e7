"""Token validation routes - one endpoint per challenge version."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from middleware.client_ip import get_client_ip
from middleware.rate_limit import limiter, validate_limit
from services.validation import ChallengeVersion, Gateway, ValidationRequest

router = APIRouter(tags=["validate"])


# Schemas
class ValidateV2Body(BaseModel):
    token: Optional[str] = None


class ValidateV3Body(ValidateV2Body):
    action: Optional[str] = None


class ValidateResponse(BaseModel):
    success: bool
    message: Optional[str] = None


def get_gateway(request: Request) -> Gateway:
    """The gateway built at startup (see main.lifespan)."""
    return request.app.state.gateway


async def run_validation(
    version: ChallengeVersion,
    request: Request,
    gateway: Gateway,
    token: Optional[str],
    action: Optional[str] = None,
) -> JSONResponse:
    validation_request = ValidationRequest(
        token=token or "",
        claimed_origin=request.headers.get("origin", ""),
        client_address=get_client_ip(request),
        action=action,
    )
    outcome = await gateway.validator_for(version).validate(validation_request)

    content: dict = {"success": outcome.accepted}
    if outcome.message:
        content["message"] = outcome.message
    return JSONResponse(status_code=outcome.http_status, content=content)


# Endpoints
@router.post("/v2/validate", response_model=ValidateResponse)
@limiter.limit(validate_limit)
async def validate_v2(
    request: Request,  # Required for rate limiting - must be named 'request'
    gateway: Annotated[Gateway, Depends(get_gateway)],
    body: Optional[ValidateV2Body] = None,
):
    """Validate a reCAPTCHA v2 token for the calling origin."""
    body = body or ValidateV2Body()
    return await run_validation(ChallengeVersion.V2, request, gateway, body.token)


@router.post("/v3/validate", response_model=ValidateResponse)
@limiter.limit(validate_limit)
async def validate_v3(
    request: Request,  # Required for rate limiting - must be named 'request'
    gateway: Annotated[Gateway, Depends(get_gateway)],
    body: Optional[ValidateV3Body] = None,
):
    """Validate a reCAPTCHA v3 token, its action and score for the calling origin."""
    body = body or ValidateV3Body()
    return await run_validation(ChallengeVersion.V3, request, gateway, body.token, body.action)
