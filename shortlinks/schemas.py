from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, AnyUrl, BaseModel, ConfigDict, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from shortlinks import allocator, models

_ANY_URL = TypeAdapter(AnyUrl)

INVALID_URL = "Please enter a valid URL"
CODE_REQUIRED = "Short code is required"
URL_TOO_LONG = f"URL must be {models.MAX_URL_LENGTH} characters or fewer"


# ---------- request bodies ----------
# Loose on purpose: field rules are reported through ActionResult.

class LinkCreate(BaseModel):
    target_url: Any = ""
    code: Any = None

class LinkUpdate(BaseModel):
    target_url: Any = ""
    code: Any = ""


# ---------- validated forms ----------

def _check_target_url(value: str) -> str:
    value = value.strip()
    if len(value) > models.MAX_URL_LENGTH:
        raise PydanticCustomError("url_too_long", URL_TOO_LONG)
    try:
        parsed = _ANY_URL.validate_python(value)
    except PydanticValidationError:
        raise PydanticCustomError("invalid_url", INVALID_URL)
    # AnyUrl quietly turns "http:example.com" into "http://example.com/"
    if not parsed.host or not value.lower().startswith(f"{parsed.scheme}://"):
        raise PydanticCustomError("invalid_url", INVALID_URL)
    # store what the user typed, not pydantic's normalised form
    return value

def _check_code(value: str) -> str:
    error = allocator.code_error(value)
    if error:
        raise PydanticCustomError("invalid_code", error)
    return value

TargetUrl = Annotated[str, AfterValidator(_check_target_url)]
ShortCode = Annotated[str, AfterValidator(_check_code)]


class CreateLinkForm(BaseModel):
    target_url: TargetUrl
    code: ShortCode | None = None

    @field_validator("code", mode="before")
    @classmethod
    def blank_code_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EditLinkForm(BaseModel):
    target_url: TargetUrl
    code: ShortCode

    @field_validator("code", mode="before")
    @classmethod
    def code_is_required(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PydanticCustomError("code_required", CODE_REQUIRED)
        return value


def field_errors(errors: list[dict]) -> dict[str, str]:
    """Flatten pydantic errors into one message per input field.

    Accepts both model errors and FastAPI request errors, whose locations
    start with "body".
    """
    fields = {}
    for err in errors:
        loc = list(err["loc"])
        if loc and loc[0] == "body":
            loc = [part for part in loc[1:] if isinstance(part, str)] or ["body"]
        field = str(loc[0]) if loc else "body"
        fields.setdefault(field, err["msg"])
    return fields


# ---------- responses ----------

class LinkOut(BaseModel):
    id: str
    short_code: str
    target_url: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class PaginatedLinks(BaseModel):
    items: list[LinkOut]
    total: int
    skip: int
    limit: int

class ActionResult(BaseModel):
    success: bool
    data: LinkOut | None = None
    error: str | dict[str, str] | None = None
    kind: str | None = None

class Token(BaseModel):
    access_token: str
    token_type: str

class MessageOut(BaseModel):
    ok: bool
    detail: str
