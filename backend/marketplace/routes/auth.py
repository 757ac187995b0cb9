"""
RR Nagar Backend — Session Login / Logout Routes
==================================================

What:  Email + password login for customers, suppliers and admins; logout;
       and a "who am I" probe for the frontends.
How:   A successful login clears the session and stores exactly one of
       customerId / supplierId / adminId. Starlette's SessionMiddleware
       signs the cookie; handlers never touch it directly.

Routes:
    POST /api/auth/login            → customer
    POST /api/supplier/auth/login   → supplier
    POST /api/admin/auth/login      → admin
    POST /api/auth/logout
    GET  /api/auth/me
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_db_session
from marketplace.identity import SESSION_KEYS, Identity, get_identity
from marketplace.schemas.auth import AccountResponse, LoginRequest, WhoAmIResponse
from marketplace.schemas.common import ErrorResponse, OkResponse
from marketplace.services.auth_service import auth_service

router = APIRouter(prefix="/api", tags=["Auth"])

_LOGIN_RESPONSES = {401: {"description": "Invalid email or password", "model": ErrorResponse}}


async def _login(request: Request, db: AsyncSession, role: str, body: LoginRequest) -> AccountResponse:
    account = await auth_service.authenticate(db, role, body.email, body.password)

    request.session.clear()
    request.session[SESSION_KEYS[role]] = account.id

    return AccountResponse(id=account.id, name=account.name, email=account.email, role=role)


@router.post("/auth/login", response_model=AccountResponse, responses=_LOGIN_RESPONSES)
async def customer_login(
    body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db_session)
) -> AccountResponse:
    return await _login(request, db, "customer", body)


@router.post("/supplier/auth/login", response_model=AccountResponse, responses=_LOGIN_RESPONSES)
async def supplier_login(
    body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db_session)
) -> AccountResponse:
    return await _login(request, db, "supplier", body)


@router.post("/admin/auth/login", response_model=AccountResponse, responses=_LOGIN_RESPONSES)
async def admin_login(
    body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db_session)
) -> AccountResponse:
    return await _login(request, db, "admin", body)


@router.post("/auth/logout", response_model=OkResponse)
async def logout(request: Request) -> OkResponse:
    request.session.clear()
    return OkResponse()


@router.get("/auth/me", response_model=WhoAmIResponse)
async def whoami(identity: Identity = Depends(get_identity)) -> WhoAmIResponse:
    return WhoAmIResponse(role=identity.role, id=identity.account_id)
