from clubhouse.schemas.auth import Token, TokenData
from clubhouse.schemas.screen import (
    ScreenActivateRequest,
    ScreenOut,
    ScreenPairResponse,
    ScreenStatusResponse,
)
from clubhouse.schemas.user import UserOut

__all__ = [
    "Token",
    "TokenData",
    "UserOut",
    "ScreenActivateRequest",
    "ScreenOut",
    "ScreenPairResponse",
    "ScreenStatusResponse",
]
