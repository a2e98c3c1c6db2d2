import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shortlinks import allocator, crud
from shortlinks.errors import OperationFailedError

logger = logging.getLogger("shortlinks.resolver")


def resolve(db: Session, code: str) -> str | None:
    """Return the destination URL for ``code``, or None when nothing matches."""
    if allocator.code_error(code):
        return None
    try:
        link = crud.get_link_by_code(db, code)
    except SQLAlchemyError:
        logger.exception("Failed to resolve code=%s", code)
        raise OperationFailedError("The link could not be opened. Please try again.")
    return link.target_url if link else None
