import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.database import get_db
from postboard.exceptions import UserAlreadyExists
from postboard.schemas import SignupRequest
from postboard.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", status_code=201)
async def signup(data: SignupRequest, db: AsyncSession = Depends(get_db)):
    try:
        user = await user_service.register_user(db, data)
    except UserAlreadyExists as exc:
        return JSONResponse({"error": exc.message}, status_code=status.HTTP_400_BAD_REQUEST)

    return {
        "message": "User created successfully!",
        "user": {"id": user.id, "email": user.email},
    }


@router.post("/signin")
async def signin():
    # JsonLoginMiddleware answers this path before routing; reaching the
    # handler means the middleware is not installed.
    raise RuntimeError(
        "This endpoint should never be called directly. "
        "Authentication is handled by JsonLoginMiddleware; check that it is "
        "installed on the application."
    )
