import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from postboard.authentication import get_current_user
from postboard.config import settings
from postboard.database import get_db, rollback
from postboard.dependencies import PaginationParams
from postboard.exceptions import (
    PostCreationFailed,
    PostNotFound,
    PostPermissionDenied,
    PostValidationFailed,
)
from postboard.models import User
from postboard.repositories import post_repository
from postboard.schemas import (
    CreatePostRequest,
    PaginatedPostsResponse,
    UpdatePostRequest,
    validation_details,
)
from postboard.services import post_authorization, post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.get("", response_model=PaginatedPostsResponse)
async def list_posts(
    response: Response,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    response.headers["Cache-Control"] = f"public, s-maxage={settings.CACHE_TTL_LIST}"
    return await post_service.get_paginated_posts(
        db, pagination.page, pagination.limit, pagination.search
    )


@router.get("/my")
async def my_posts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    posts = await post_repository.find_by_owner(db, user)
    return {"posts": [post_service.post_to_dict(p) for p in posts]}


@router.get("/{post_id:int}")
async def show_post(post_id: int, db: AsyncSession = Depends(get_db)):
    try:
        post = await post_service.get_post_by_id_or_fail(db, post_id)
    except PostNotFound as exc:
        return _error(exc.message, exc.status_code)
    return post_service.post_to_dict(post)


@router.post("", status_code=201)
async def create_post(
    data: CreatePostRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await post_service.create_post(db, data, user)
        return {"message": "Post created successfully", "post": post_service.post_to_dict(post)}
    except (PostValidationFailed, PostCreationFailed) as exc:
        return _error(exc.message, exc.status_code)
    except Exception:
        logger.exception("Unexpected error creating post for user %s", user.id)
        await rollback(db)
        return _error("Failed to create post", status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.api_route("/update/{post_id:int}", methods=["PUT", "PATCH"])
async def update_post(
    post_id: int,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    # The body is read only after the lookup and the ownership check, so an
    # unknown id is a 404 and a foreign post a 403 whatever the payload.
    try:
        post = await post_service.get_post_by_id_or_fail(db, post_id)
        post_authorization.ensure_user_can_modify_post(post, user)
        data = UpdatePostRequest.model_validate_json(await request.body() or b"{}")
        post = await post_service.update_post(db, post, data)
        return {"message": "Post updated successfully", "post": post_service.post_to_dict(post)}
    except (PostNotFound, PostPermissionDenied, PostValidationFailed) as exc:
        return _error(exc.message, exc.status_code)
    except ValidationError as exc:
        return JSONResponse(
            {"error": "Validation failed", "details": validation_details(exc.errors())},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except Exception:
        logger.exception("Unexpected error updating post %s", post_id)
        await rollback(db)
        return _error("Failed to update post", status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{post_id:int}")
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        post = await post_service.get_post_by_id_or_fail(db, post_id)
        post_authorization.ensure_user_can_modify_post(post, user)
        await post_service.delete_post(db, post)
        return {"message": "Post deleted successfully"}
    except (PostNotFound, PostPermissionDenied) as exc:
        return _error(exc.message, exc.status_code)
    except Exception:
        logger.exception("Unexpected error deleting post %s", post_id)
        await rollback(db)
        return _error("Failed to delete post", status.HTTP_500_INTERNAL_SERVER_ERROR)
