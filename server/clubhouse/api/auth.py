from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from clubhouse.api.deps import get_current_user, get_db
from clubhouse.core.config import get_settings
from clubhouse.core.lockout import lockout_manager
from clubhouse.core.rate_limit import get_client_ip, limiter
from clubhouse.models.user import User
from clubhouse.schemas.auth import Token
from clubhouse.schemas.user import UserOut
from clubhouse.services.auth import authenticate_user, create_access_token

router = APIRouter()
settings = get_settings()


def _locked_out(seconds: int) -> HTTPException:
    mins = seconds // 60 + 1
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many failed attempts. Try again in {mins} minutes.",
        headers={"Retry-After": str(seconds)},
    )


@router.post("/login", response_model=Token)
@limiter.limit(lambda: f"{settings.login_rate_limit_per_minute}/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> Token:
    client_ip = get_client_ip(request)
    username = form_data.username

    if settings.is_lockout_enabled:
        is_locked, seconds_remaining = lockout_manager.is_locked_out(client_ip, username)
        if is_locked:
            raise _locked_out(seconds_remaining)

    user = authenticate_user(db, username, form_data.password)
    if not user:
        if settings.is_lockout_enabled:
            is_locked, lockout_seconds = lockout_manager.record_failure(client_ip, username)
            if is_locked:
                raise _locked_out(lockout_seconds)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if settings.is_lockout_enabled:
        lockout_manager.record_success(client_ip, username)

    return Token(access_token=create_access_token(data={"sub": user.username}))


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user
