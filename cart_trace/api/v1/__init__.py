"""V1 API router aggregation."""

from fastapi import APIRouter

from cart_trace.api.v1.accounts import router as accounts_router
from cart_trace.api.v1.auth import router as auth_router
from cart_trace.api.v1.clients import router as clients_router
from cart_trace.api.v1.tenants import router as tenants_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(tenants_router)
v1_router.include_router(clients_router)
v1_router.include_router(accounts_router)
