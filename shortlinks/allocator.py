"""Short code allocation.

A requested code is validated and checked against the store; otherwise a
random code is drawn from a 62-character alphabet. With six characters the
namespace holds 62**6 (about 5.7e10) codes, so at a million stored links a
single draw collides with probability ~1.8e-5 and ten collisions in a row
only happen when the namespace is close to full or the generator is broken.

Allocation only reads the store. The caller inserts the row and must treat a
unique-constraint failure on insert as the authoritative collision.
"""
import logging
import re
import secrets
import string
from typing import Callable

from sqlalchemy.orm import Session

from shortlinks import crud
from shortlinks.errors import AllocationExhaustedError, CodeTakenError, ValidationError

logger = logging.getLogger("shortlinks.allocator")

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 6
MAX_ATTEMPTS = 10
MAX_CODE_LENGTH = 50
CODE_RE = re.compile(r"[A-Za-z0-9_-]+")


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

def code_error(code: str) -> str | None:
    """Return a user-facing message if ``code`` breaks the short code rules."""
    if len(code) > MAX_CODE_LENGTH:
        return f"Short code must be {MAX_CODE_LENGTH} characters or fewer"
    if not CODE_RE.fullmatch(code):
        return "Short code may only contain letters, numbers, hyphens, and underscores"
    return None

def allocate(
    db: Session,
    requested_code: str | None = None,
    *,
    generator: Callable[[], str] | None = None,
    attempts: int = MAX_ATTEMPTS,
) -> str:
    if requested_code:
        error = code_error(requested_code)
        if error:
            raise ValidationError({"code": error})
        if crud.is_code_taken(db, requested_code):
            raise CodeTakenError()
        return requested_code

    generator = generator or generate_code
    for attempt in range(1, attempts + 1):
        code = generator()
        if not crud.is_code_taken(db, code):
            return code
        logger.debug("Generated code %s already taken (attempt %d/%d)", code, attempt, attempts)

    logger.warning("Short code allocation exhausted after %d attempts", attempts)
    raise AllocationExhaustedError()
