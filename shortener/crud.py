from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shortener import models


class DuplicateCodeError(Exception):
    """The unique constraint on ``links.code`` rejected an insert."""

    def __init__(self, code: str):
        super().__init__(f"Code '{code}' already exists")
        self.code = code


def insert_link(db: Session, code: str, original_url: str) -> models.Link:
    link = models.Link(code=code, original_url=original_url, clicks=0)
    db.add(link)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateCodeError(code) from exc
    db.refresh(link)
    return link


def list_links(db: Session) -> list[models.Link]:
    return list(
        db.scalars(
            select(models.Link)
            .order_by(models.Link.created_at.desc(), models.Link.id.desc())
            .execution_options(populate_existing=True)
        )
    )


def get_link(db: Session, code: str) -> models.Link | None:
    # Always reload from the row; clicks change underneath cached instances
    return db.scalars(
        select(models.Link).filter_by(code=code).execution_options(populate_existing=True)
    ).first()


def code_exists(db: Session, code: str) -> bool:
    return db.scalar(select(exists().where(models.Link.code == code)))


def delete_link(db: Session, code: str) -> models.Link | None:
    link = get_link(db, code)
    if not link:
        return None
    result = db.execute(
        delete(models.Link)
        .where(models.Link.id == link.id)
        .execution_options(synchronize_session=False)
    )
    # Keep the loaded attributes readable once the commit expires the session
    db.expunge(link)
    db.commit()
    # A concurrent delete may have removed the row between the read and the delete
    if result.rowcount == 0:
        return None
    return link


def increment_click(db: Session, code: str) -> str | None:
    """Count one click and return the target URL in a single UPDATE ... RETURNING."""
    original_url = db.execute(
        update(models.Link)
        .where(models.Link.code == code)
        .values(clicks=models.Link.clicks + 1, last_clicked=models.utcnow())
        .returning(models.Link.original_url)
        .execution_options(synchronize_session=False)
    ).scalar_one_or_none()
    db.commit()
    return original_url
