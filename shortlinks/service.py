"""Create, edit and delete operations for the dashboard.

Every public function returns an ``ActionResult``; nothing raised inside
escapes to the caller. Missing and foreign links share one ``NotFoundError``
so that other users' codes cannot be probed through edit/delete.
"""
import functools
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shortlinks import allocator, crud, models, schemas
from shortlinks.errors import (
    CodeTakenError,
    LinkError,
    NotFoundError,
    OperationFailedError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger("shortlinks.service")


def _success(link: models.Link | None = None) -> schemas.ActionResult:
    data = schemas.LinkOut.model_validate(link) if link is not None else None
    return schemas.ActionResult(success=True, data=data)

def _failure(exc: LinkError) -> schemas.ActionResult:
    return schemas.ActionResult(success=False, error=exc.detail, kind=exc.kind)

def _action(verb: str):
    def decorate(func):
        @functools.wraps(func)
        def wrapper(db: Session, user_id: str | None, *args, **kwargs) -> schemas.ActionResult:
            try:
                return func(db, user_id, *args, **kwargs)
            except LinkError as exc:
                return _failure(exc)
            except Exception:
                db.rollback()
                logger.exception("Failed to %s link for user=%s", verb, user_id)
                return _failure(OperationFailedError(f"Failed to {verb} link. Please try again."))
        return wrapper
    return decorate

def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise UnauthorizedError()
    return user_id

def _owned_link(db: Session, user_id: str, link_id: str) -> models.Link:
    link = crud.get_link(db, link_id)
    if link is None or link.owner_id != user_id:
        raise NotFoundError()
    return link

def _validate(form_cls, **fields):
    try:
        return form_cls.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError(schemas.field_errors(exc.errors()))


@_action("create")
def create_link(db: Session, user_id: str | None, target_url: str, code: str | None = None) -> schemas.ActionResult:
    user_id = _require_user(user_id)
    form = _validate(schemas.CreateLinkForm, target_url=target_url, code=code)

    short_code = allocator.allocate(db, form.code)
    try:
        link = crud.insert_link(db, user_id, short_code, form.target_url)
    except IntegrityError:
        # another request claimed the code between the check and the insert
        db.rollback()
        logger.info("Insert lost race for code=%s by=%s", short_code, user_id)
        raise CodeTakenError()

    logger.info("Created link %s -> %s by=%s", link.short_code, link.target_url, user_id)
    return _success(link)


@_action("update")
def edit_link(db: Session, user_id: str | None, link_id: str, target_url: str, code: str) -> schemas.ActionResult:
    user_id = _require_user(user_id)
    link = _owned_link(db, user_id, link_id)
    form = _validate(schemas.EditLinkForm, target_url=target_url, code=code)

    if form.code != link.short_code and crud.is_code_taken_excluding(db, form.code, link.id):
        raise CodeTakenError()
    try:
        link = crud.update_link(db, link, form.target_url, form.code)
    except IntegrityError:
        db.rollback()
        logger.info("Update lost race for code=%s by=%s", form.code, user_id)
        raise CodeTakenError()

    logger.info("Updated link %s -> %s by=%s", link.short_code, link.target_url, user_id)
    return _success(link)


@_action("delete")
def delete_link(db: Session, user_id: str | None, link_id: str) -> schemas.ActionResult:
    user_id = _require_user(user_id)
    link = _owned_link(db, user_id, link_id)
    code = link.short_code
    crud.delete_link(db, link)
    logger.info("Deleted link %s by=%s", code, user_id)
    return _success()
