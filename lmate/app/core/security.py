from fastapi import Header, HTTPException, status

from lmate.app.core.config import settings


async def verify_token(authorization: str | None = Header(None)) -> None:
    """Require ``Authorization: Bearer <api_token>`` when a token is configured."""
    if not settings.api_token:
        return
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1]
    if token != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
