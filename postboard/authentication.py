"""
Authentication layer: sits in front of the routers.

- ``JsonLoginMiddleware`` answers ``POST /api/auth/signin`` itself, so the
  route handler registered for that path is only a placeholder.
- ``get_current_user`` resolves HTTP Basic credentials into a User for the
  handlers that require one.
"""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from postboard import database
from postboard.database import get_db
from postboard.models import User
from postboard.services import user_service

logger = logging.getLogger(__name__)

SIGNIN_PATH = "/api/auth/signin"

http_basic = HTTPBasic(auto_error=False)


async def get_current_user(
    credentials: HTTPBasicCredentials | None = Depends(http_basic),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Return the authenticated user, or fail with 401.

    Uses the request's own session so the returned User shares an
    identity map with everything the handler loads afterwards.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    user = await user_service.authenticate(db, credentials.username, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user


class JsonLoginMiddleware:
    """
    Pure ASGI middleware that checks a JSON ``{"email", "password"}`` body
    posted to the sign-in path and answers directly:

    - 200 with the user's id, email and roles on success,
    - 401 on bad credentials,
    - 400 when the body is not a JSON object with string fields.

    Authentication is stateless; clients send HTTP Basic credentials on
    every protected request.
    """

    def __init__(self, app: ASGIApp, login_path: str = SIGNIN_PATH) -> None:
        self.app = app
        self.login_path = login_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] != "POST"
            or scope["path"] != self.login_path
        ):
            await self.app(scope, receive, send)
            return

        response = await self._login(Request(scope, receive))
        await response(scope, receive, send)

    async def _login(self, request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        if (
            not isinstance(payload, dict)
            or not isinstance(payload.get("email"), str)
            or not isinstance(payload.get("password"), str)
        ):
            return JSONResponse(
                {"error": "Invalid login request: email and password are required."},
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        # Resolved at call time so the test suite can swap the factory.
        async with database.async_session() as session:
            user = await user_service.authenticate(session, payload["email"], payload["password"])

        if user is None:
            return JSONResponse(
                {"error": "Invalid credentials."},
                status_code=status.HTTP_401_UNAUTHORIZED,
            )

        logger.info("User %s signed in", user.id)
        return JSONResponse(
            {"user": {"id": user.id, "email": user.email, "roles": sorted(user.get_roles())}}
        )
