"""Authentication API: staff and storefront customer sign-in, sign-out, current principal."""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from teashop.config import get_settings
from teashop.models.base import get_db
from teashop.models.customer import Customer
from teashop.models.user import User
from teashop.services import auth_service
from teashop.utils.logger import log

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str
    password: str


def _user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role.value,
        "is_active": u.is_active,
        "created_at": u.created_at.isoformat() if u.created_at else None,
        "last_login": u.last_login.isoformat() if u.last_login else None,
    }


def _customer_out(c: Customer) -> dict:
    return {
        "id": c.id,
        "email": c.email,
        "name": c.name,
        "role": "customer",
        "last_login": c.last_login.isoformat() if c.last_login else None,
    }


def _session_response(payload: dict, token: str) -> JSONResponse:
    settings = get_settings()
    response = JSONResponse(content=payload)
    response.set_cookie(
        key="session_token",
        value=token,
        httponly=True,
        secure=settings.environment != "development",
        samesite="lax",
        max_age=60 * 60 * settings.session_duration_hours,
        path="/",
    )
    return response


def _end_session(request: Request, db: Session) -> JSONResponse:
    token = request.cookies.get("session_token")
    if token:
        auth_service.delete_session(db, token)
    response = JSONResponse(content={"success": True})
    response.delete_cookie("session_token", path="/")
    return response


# ── Staff ────────────────────────────────────────────────

@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate a staff member and return a session cookie."""
    user = auth_service.authenticate(db, body.email, body.password)
    if not user:
        log.warning(f"Failed staff login for {body.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = auth_service.create_session(db, user.id, auth_service.STAFF)
    log.info(f"Staff login: {user.email}")
    return _session_response({"success": True, "user": _user_out(user)}, token)


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    """Clear session and cookie."""
    return _end_session(request, db)


@router.get("/me")
async def me(request: Request):
    """Return the signed-in staff member or customer."""
    principal = getattr(request.state, "principal", None)
    if not principal:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {
        "id": principal.id,
        "email": principal.email,
        "name": principal.name,
        "role": principal.role if principal.is_staff else "customer",
        "kind": principal.kind,
    }


# ── Storefront customers ─────────────────────────────────

@router.post("/customer/login")
async def customer_login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate a storefront customer and return a session cookie."""
    customer = auth_service.authenticate_customer(db, body.email, body.password)
    if not customer:
        log.warning(f"Failed customer login for {body.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = auth_service.create_session(db, customer.id, auth_service.CUSTOMER)
    log.info(f"Customer login: {customer.email}")
    return _session_response({"success": True, "user": _customer_out(customer)}, token)


@router.post("/customer/logout")
async def customer_logout(request: Request, db: Session = Depends(get_db)):
    """Clear session and cookie."""
    return _end_session(request, db)
