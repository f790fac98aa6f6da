"""Authentication middleware: resolves the session principal and gates admin and account routes."""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from teashop.models.base import SessionLocal
from teashop.services import auth_service

# Paths that never require authentication
PUBLIC_PREFIXES = (
    "/auth/login",
    "/auth/customer/login",
    "/health",
    "/robots.txt",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/storefront/products",
)

# Any signed-in principal (staff or customer) may use these
SESSION_PATHS = {"/auth/me", "/auth/logout", "/auth/customer/logout"}

# Customer-account routes
CUSTOMER_PREFIXES = ("/storefront/",)


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # Check session cookie
        token = request.cookies.get("session_token")
        principal = None
        if token:
            db = SessionLocal()
            try:
                principal = auth_service.validate_session(db, token)
            finally:
                db.close()
        request.state.principal = principal

        # Allow public paths through
        if path == "/" or any(path.startswith(p) for p in PUBLIC_PREFIXES):
            return await call_next(request)

        if principal is None:
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        if path in SESSION_PATHS:
            return await call_next(request)

        if any(path.startswith(p) for p in CUSTOMER_PREFIXES):
            if not principal.is_customer:
                return JSONResponse(status_code=403, content={"detail": "Customer account required"})
            return await call_next(request)

        # Everything else is the admin back office
        if not principal.is_staff:
            return JSONResponse(status_code=403, content={"detail": "Staff account required"})
        return await call_next(request)
