"""
FastAPI app assembly: logging, middleware, router wiring, identity probe
and health check.
"""
import logging
import os
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from atacado.api.auth import (  # noqa: E402
    get_customer_links,
    get_or_create_user,
    get_user_memberships,
    resolve_identity_from_headers,
)
from atacado.api.bank_accounts import router as bank_accounts_router, transactions_router  # noqa: E402
from atacado.api.boletos import router as boletos_router  # noqa: E402
from atacado.api.business_rules import router as business_rules_router  # noqa: E402
from atacado.api.coupons import router as coupons_router  # noqa: E402
from atacado.api.cron import router as cron_router  # noqa: E402
from atacado.api.customers import router as customers_router  # noqa: E402
from atacado.api.expenses import categories_router, router as expenses_router  # noqa: E402
from atacado.api.hr import payments_router, router as employees_router  # noqa: E402
from atacado.api.investments import router as investments_router  # noqa: E402
from atacado.api.invoices import router as invoices_router  # noqa: E402
from atacado.api.loyalty import (  # noqa: E402
    points_router,
    prizes_router,
    redemptions_router,
    referrals_router,
)
from atacado.api.notifications import router as notifications_router  # noqa: E402
from atacado.api.orders import router as orders_router  # noqa: E402
from atacado.api.orgs import router as orgs_router  # noqa: E402
from atacado.api.products import router as products_router  # noqa: E402
from atacado.api.receivables import card_router, router as receivables_router  # noqa: E402
from atacado.api.reports import router as reports_router  # noqa: E402
from atacado.api.users import router as users_router  # noqa: E402
from atacado.api.whatsapp import router as whatsapp_router  # noqa: E402
from atacado.db.database import get_db  # noqa: E402
from atacado.utils.feature_flags import get_feature_flags  # noqa: E402
from atacado.utils.runtime import dev_mode_active  # noqa: E402

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Atacado Service",
    description="Backend for food wholesale and retail shops: orders, credit, boletos, finance and integrations.",
    version="1.0.0",
    redirect_slashes=False,
)

DEFAULT_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
]


def _cors_origins():
    extra = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
    return DEFAULT_ORIGINS + extra


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

IDENTITY_HEADERS = ("x-auth-request-user", "x-auth-request-email", "x-forwarded-user", "x-forwarded-email")
PUBLIC_WRITE_PREFIXES = ("/business-rules",)


# Middleware: enforce read-only for unauthenticated requests
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        if os.getenv("DEV_MODE", "false").lower() != "true":
            path = request.url.path or ""
            if not path.startswith(PUBLIC_WRITE_PREFIXES):
                if not any(request.headers.get(h) for h in IDENTITY_HEADERS):
                    return JSONResponse(
                        {"detail": "Sign in to perform changes."},
                        status_code=status.HTTP_401_UNAUTHORIZED,
                    )
    return await call_next(request)


@app.get("/user-info")
def get_user_info(
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """
    Return the signed-in user with staff memberships and customer-portal links.
    - Dev mode (DEV_MODE=true): returns the stable dev user and ensures it exists.
    - Normal mode: reads headers set by oauth2-proxy and upserts the user.
    """
    try:
        is_dev_mode = dev_mode_active()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")

    flags = get_feature_flags()
    if is_dev_mode:
        name, email = "Development User", "dev@localhost"
    else:
        name, email = resolve_identity_from_headers(
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
        if not email:
            return {"authenticated": False, "feature_flags": dict(flags)}

    user = get_or_create_user(db, email=email, display_name=name)
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "display_name": user.display_name,
        "is_superadmin": bool(user.is_superadmin),
        "memberships": get_user_memberships(db, user.id),
        "customers": get_customer_links(db, user.id),
        "feature_flags": dict(flags),
    }


app.include_router(users_router)
app.include_router(orgs_router)
app.include_router(notifications_router)
app.include_router(business_rules_router)
app.include_router(customers_router)
app.include_router(products_router)
app.include_router(orders_router)
app.include_router(coupons_router)
app.include_router(boletos_router)
app.include_router(cron_router)
app.include_router(receivables_router)
app.include_router(card_router)
app.include_router(bank_accounts_router)
app.include_router(transactions_router)
app.include_router(categories_router)
app.include_router(expenses_router)
app.include_router(reports_router)
app.include_router(whatsapp_router)
app.include_router(employees_router)
app.include_router(payments_router)
app.include_router(points_router)
app.include_router(prizes_router)
app.include_router(redemptions_router)
app.include_router(referrals_router)
app.include_router(investments_router)
app.include_router(invoices_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "atacado-service"}
