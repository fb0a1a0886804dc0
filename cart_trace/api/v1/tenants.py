"""First-login tenant setup for business owners."""

import logging
import uuid

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from cart_trace.api.deps import Admin, BearerToken
from cart_trace.core.errors import ServiceError
from cart_trace.core.validators import PhoneNumber
from cart_trace.services.provisioning import setup_tenant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tenants"])


class TenantSetupRequest(BaseModel):
    business_name: str = Field(min_length=1, max_length=255)
    full_name: str = Field(default="", max_length=255)
    phone_number: PhoneNumber


class TenantSetupResponse(BaseModel):
    success: bool = True
    tenant_id: uuid.UUID


@router.post(
    "/setup-tenant",
    response_model=TenantSetupResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"description": "Any setup failure"}},
)
async def setup_tenant_route(
    body: TenantSetupRequest,
    token: BearerToken,
    admin: Admin,
) -> TenantSetupResponse | JSONResponse:
    """Create (or reuse) the caller's tenant, profile and admin role."""
    try:
        result = await setup_tenant(
            admin,
            token,
            business_name=body.business_name,
            full_name=body.full_name,
            phone_number=body.phone_number,
        )
    except ServiceError as exc:
        # Every setup failure, including a bad token, is reported as 400
        logger.warning("Error in setup-tenant: %s", exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message},
        )
    return TenantSetupResponse(tenant_id=result.tenant_id)
