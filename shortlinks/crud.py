from sqlalchemy.orm import Session

from shortlinks import models


def insert_link(db: Session, owner_id: str, short_code: str, target_url: str) -> models.Link:
    link = models.Link(owner_id=owner_id, short_code=short_code, target_url=target_url)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link

def is_code_taken(db: Session, short_code: str) -> bool:
    return db.query(models.Link.id).filter_by(short_code=short_code).first() is not None

def is_code_taken_excluding(db: Session, short_code: str, exclude_id: str) -> bool:
    query = (
        db.query(models.Link.id)
        .filter(models.Link.short_code == short_code, models.Link.id != exclude_id)
    )
    return query.first() is not None

def get_link(db: Session, link_id: str) -> models.Link | None:
    return db.get(models.Link, link_id)

def get_link_by_code(db: Session, short_code: str) -> models.Link | None:
    return db.query(models.Link).filter_by(short_code=short_code).first()

def update_link(db: Session, link: models.Link, target_url: str, short_code: str) -> models.Link:
    link.target_url = target_url
    link.short_code = short_code
    # set explicitly: no UPDATE (and no onupdate) is emitted when nothing else changed
    link.updated_at = models.utcnow()
    db.commit()
    db.refresh(link)
    return link

def delete_link(db: Session, link: models.Link) -> None:
    db.delete(link)
    db.commit()

def get_links_by_owner(db: Session, owner_id: str, skip: int = 0, limit: int = 100) -> list[models.Link]:
    return (
        db.query(models.Link)
        .filter_by(owner_id=owner_id)
        .order_by(models.Link.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def count_links_by_owner(db: Session, owner_id: str) -> int:
    return db.query(models.Link).filter_by(owner_id=owner_id).count()
