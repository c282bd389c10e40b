# backend/liftplan/deps.py
from typing import Optional

from fastapi import Header, HTTPException

from liftplan import config


def current_user_id(x_user_id: int = Header(..., alias="X-User-Id", ge=1)) -> int:
    # identity comes from the fronting auth layer
    return x_user_id


def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    secret = config.CRON_SECRET_KEY
    if not secret:
        raise HTTPException(status_code=500, detail="CRON_SECRET_KEY is not configured")
    if authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
