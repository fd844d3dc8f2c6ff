"""
auth.py — Authentication and Session Handling Endpoints (API Layer)

Purpose:
- Log in with username + PIN and receive an opaque session token.
- Set or change a PIN (first-run setup without a session, afterwards only
  with a valid session).
- Delegates hashing to core/security.py and the credential rules to
  services/credentials.py.

This file should be thin — no hashing or queries here.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from taskflow.api.deps import get_db, session_token
from taskflow.core.config import Settings, get_settings
from taskflow.services.credentials import rotate_credential, verify_credential
from taskflow.services.db_client import TaskFlowDB

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

# -----------------------------------------------------------------------------
# Request / Response Schemas
# -----------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """
    - `username`: optional for single-user installs
    - `pin`: 4-8 digits, string or number
    """
    username: Optional[str] = None
    pin: Any = None


class LoginResponse(BaseModel):
    token: str
    user_id: str
    username: str
    display_name: str


class SetPinRequest(BaseModel):
    """
    - `pin`: the new PIN
    - `current_token`: session token, alternative to the X-Session header
    - `username` / `display_name`: only used by first-run setup
    """
    pin: Any = None
    current_token: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None


class SetPinResponse(BaseModel):
    token: str
    message: str = "PIN set successfully"


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("", response_model=LoginResponse)
@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    POST /auth/login

    - 400 for a malformed PIN
    - 401 "Invalid username or PIN" for unknown user, inactive user or wrong PIN
    """
    result = verify_credential(db, settings, payload.username, payload.pin)
    return LoginResponse(
        token=result.token,
        user_id=result.user_id,
        username=result.username,
        display_name=result.display_name,
    )


@router.post("/set", response_model=SetPinResponse)
def set_pin(
    payload: SetPinRequest,
    header_token: Optional[str] = Depends(session_token),
    db: TaskFlowDB = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    POST /auth/set

    First run (no credential rows): creates the first admin and logs them in.
    Otherwise: requires a live session and changes that user's PIN.
    """
    token = rotate_credential(
        db,
        settings,
        payload.pin,
        token=payload.current_token or header_token,
        username=payload.username,
        display_name=payload.display_name,
    )
    return SetPinResponse(token=token)
