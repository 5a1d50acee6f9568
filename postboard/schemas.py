from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

# Field bounds shared by request validation and the post service.
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
CONTENT_MIN_LENGTH = 10
PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes of a password
PASSWORD_MAX_BYTES = 72


def validation_details(errors) -> dict[str, str]:
    """
    Collapse pydantic errors into ``{field path: first message}``.

    A leading ``body``/``query``/``path`` segment is dropped; an error on
    the payload as a whole is reported under ``body``.
    """
    details: dict[str, str] = {}
    for error in errors:
        parts = [str(part) for part in error["loc"]]
        if len(parts) > 1 and parts[0] in ("body", "query", "path"):
            parts = parts[1:]
        details.setdefault(".".join(parts) or "body", error["msg"])
    return details


def _required(value: str | None, error_type: str, message: str) -> str:
    if value is None or not value.strip():
        raise PydanticCustomError(error_type, message)
    return value


def title_errors(title: str) -> list[str]:
    """Return the length-rule messages a post title breaks (empty when valid)."""
    errors = []
    if len(title) < TITLE_MIN_LENGTH:
        errors.append(f"Title must be at least {TITLE_MIN_LENGTH} characters long")
    if len(title) > TITLE_MAX_LENGTH:
        errors.append(f"Title cannot be longer than {TITLE_MAX_LENGTH} characters")
    return errors


def content_errors(content: str) -> list[str]:
    """Return the length-rule messages post content breaks (empty when valid)."""
    if len(content) < CONTENT_MIN_LENGTH:
        return [f"Content must be at least {CONTENT_MIN_LENGTH} characters long"]
    return []


# --- Auth ---

class SignupRequest(BaseModel):
    email: str | None = Field(None, validate_default=True)
    password: str | None = Field(None, validate_default=True)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str:
        value = _required(value, "email_required", "Email is required")
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email_format", "Invalid email format") from None
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str | None) -> str:
        value = _required(value, "password_required", "Password is required")
        if len(value) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            )
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise PydanticCustomError(
                "password_too_long",
                f"Password cannot be longer than {PASSWORD_MAX_BYTES} bytes",
            )
        return value


# --- Post ---

class CreatePostRequest(BaseModel):
    title: str | None = Field(None, validate_default=True)
    content: str | None = Field(None, validate_default=True)

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str | None) -> str:
        value = _required(value, "title_required", "Title is required")
        errors = title_errors(value)
        if errors:
            raise PydanticCustomError("title_length", errors[0])
        return value

    @field_validator("content")
    @classmethod
    def check_content(cls, value: str | None) -> str:
        value = _required(value, "content_required", "Content is required")
        errors = content_errors(value)
        if errors:
            raise PydanticCustomError("content_length", errors[0])
        return value


class UpdatePostRequest(BaseModel):
    """Full replacement of title and content; length rules live in the service."""

    title: str | None = Field(None, validate_default=True)
    content: str | None = Field(None, validate_default=True)

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str | None) -> str:
        return _required(value, "title_required", "Title is required")

    @field_validator("content")
    @classmethod
    def check_content(cls, value: str | None) -> str:
        return _required(value, "content_required", "Content is required")


# --- Pagination ---

class PaginatedPostsResponse(BaseModel):
    current_page: int
    per_page: int
    total: int
    posts: list[dict]
