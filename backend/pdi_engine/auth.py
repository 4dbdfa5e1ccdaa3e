# backend/pdi_engine/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt  # PyJWT
from fastapi import Depends, Header, HTTPException, Request

from .config import settings


@dataclass(frozen=True)
class Principal:
    org_slug: str
    user_id: str
    role: str  # technician | supervisor | admin


ROLE_ORDER = {"technician": 1, "supervisor": 2, "manager": 2, "admin": 3}

LOCAL_DEV_PRINCIPAL = Principal(org_slug="local", user_id="local-dev", role="admin")


def _require_role(principal: Principal, min_role: str) -> None:
    if ROLE_ORDER.get(principal.role, 0) < ROLE_ORDER.get(min_role, 999):
        raise HTTPException(status_code=403, detail=f"Requires role >= {min_role}")


# -------------------------
# JWT helpers
# -------------------------
def create_access_token(*, user_id: str, role: str, org_slug: str, minutes: int = 60) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": str(role),
        "org": str(org_slug),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=int(minutes))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _principal_from_claims(claims: dict[str, Any], org_hint: Optional[str]) -> Principal:
    sub = str(claims.get("sub") or "").strip()
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing sub")

    org_slug = str(claims.get("org") or org_hint or "").strip()
    if not org_slug:
        raise HTTPException(status_code=401, detail="Token missing org")
    if org_hint and org_hint.strip() and org_hint.strip() != org_slug:
        raise HTTPException(status_code=403, detail="Token not valid for this org")

    role = str(claims.get("role") or "technician").strip().lower()
    return Principal(org_slug=org_slug, user_id=sub, role=role)


# -------------------------
# get_principal
# -------------------------
def get_principal(
    request: Request,
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes:
      1) Authorization: Bearer <token>   (auth_mode=jwt)
      2) dev header spoofing             (ONLY if settings.auth_mode == "dev")
    """
    mode = (settings.auth_mode or "dev").strip().lower()
    org_hint = request.headers.get(settings.dev_header_org_slug)

    if mode == "jwt":
        if not authorization or not str(authorization).lower().startswith("bearer "):
            raise HTTPException(status_code=401, detail="Missing bearer token")
        token = str(authorization).split(" ", 1)[1].strip()
        return _principal_from_claims(decode_access_token(token), org_hint)

    if mode == "dev":
        user_id = (request.headers.get(settings.dev_header_user_id) or "").strip()
        if not user_id:
            if settings.allow_local_auth_bypass:
                return LOCAL_DEV_PRINCIPAL
            raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_id} for dev auth")

        org_slug = (org_hint or "").strip()
        if not org_slug:
            raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_org_slug} (active org context).")

        role = (request.headers.get(settings.dev_header_user_role) or "technician").strip().lower()
        if role not in ROLE_ORDER:
            raise HTTPException(status_code=401, detail=f"Unknown role: {role}")
        return Principal(org_slug=org_slug, user_id=user_id, role=role)

    raise HTTPException(status_code=401, detail="Not authenticated")


def require_supervisor(p: Principal = Depends(get_principal)) -> Principal:
    _require_role(p, "supervisor")
    return p


def require_admin(p: Principal = Depends(get_principal)) -> Principal:
    _require_role(p, "admin")
    return p
