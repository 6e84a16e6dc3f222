"""Screen pairing and activation API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from clubhouse.api.deps import get_current_admin, get_db
from clubhouse.core.config import get_settings
from clubhouse.core.rate_limit import limiter
from clubhouse.models.screen import ScreenStatus
from clubhouse.models.user import User
from clubhouse.schemas.common import MessageResponse, StatusResponse
from clubhouse.schemas.screen import (
    ScreenActivateRequest,
    ScreenOut,
    ScreenPairResponse,
    ScreenStatusResponse,
)
from clubhouse.services.screen import (
    PairingCodeExpired,
    PairingCodeNotFound,
    ScreenAlreadyActivated,
    activate_screen,
    delete_screen,
    get_pairing_status,
    get_screen_by_code,
    list_screens,
    request_pairing,
)

settings = get_settings()

# Public endpoints (no auth) — for kiosk devices
public_router = APIRouter()

# Admin endpoints — for operators in the CMS
admin_router = APIRouter()


# ── Public endpoints ───────────────────────────────────────────────────


@public_router.post("/pair", response_model=ScreenPairResponse)
@limiter.limit(lambda: f"{settings.pair_rate_limit_per_minute}/minute")
def create_pairing(request: Request, db: Session = Depends(get_db)):
    """Issue a new pairing code for a kiosk to display."""
    screen = request_pairing(db)
    return ScreenPairResponse(pairing_code=screen.pairing_code, expires_at=screen.expires_at)


@public_router.get("/status/{pairing_code}", response_model=ScreenStatusResponse)
@limiter.limit(lambda: f"{settings.status_rate_limit_per_minute}/minute")
def get_status(pairing_code: str, request: Request, db: Session = Depends(get_db)):
    """Poll whether a pairing code has been activated."""
    try:
        status = get_pairing_status(db, pairing_code)
    except PairingCodeNotFound:
        raise HTTPException(status_code=404, detail="Pairing code not found")
    return ScreenStatusResponse(activated=status == ScreenStatus.ACTIVATED.value, status=status)


# ── Admin endpoints ────────────────────────────────────────────────────


@admin_router.post("/activate", response_model=MessageResponse)
@limiter.limit("30/minute")
def activate(
    body: ScreenActivateRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """Activate the screen showing the given pairing code."""
    try:
        activate_screen(db, body.pairing_code, current_user.id)
    except PairingCodeNotFound:
        raise HTTPException(status_code=400, detail="Invalid pairing code")
    except (PairingCodeExpired, ScreenAlreadyActivated) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MessageResponse(message="Screen activated successfully")


@admin_router.get("", response_model=list[ScreenOut])
@limiter.limit("60/minute")
def list_all_screens(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """List all pairing sessions, newest first."""
    return list_screens(db)


@admin_router.delete("/{pairing_code}", response_model=StatusResponse)
@limiter.limit("30/minute")
def delete_screen_endpoint(
    pairing_code: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    """Delete a pairing session."""
    screen = get_screen_by_code(db, pairing_code)
    if not screen:
        raise HTTPException(status_code=404, detail="Screen not found")
    delete_screen(db, screen)
    return StatusResponse(status="ok")
