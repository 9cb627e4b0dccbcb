"""Link orchestration: code allocation, persistence and error translation."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from shortener import codes, crud, models, schemas, validators
from shortener.errors import (
    CodeConflictError,
    InvalidInputError,
    NotFoundError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)


class LinkService:
    """Create, inspect, delete and resolve short links.

    The service owns no connection state of its own: it works through the
    ``Session`` it is handed, and every correctness guarantee (unique codes,
    counted clicks) comes from the database.
    """

    def __init__(
        self,
        db: Session,
        base_url: str = "",
        code_generator: Optional[Callable[[], str]] = None,
        max_collision_retries: int = 5,
    ):
        """
        Args:
            db: Session used for every store call
            base_url: Prefix for ``shortUrl`` in create responses
            code_generator: Source of random codes (defaults to ``codes.generate_code``)
            max_collision_retries: Fresh codes to try when a generated code is taken
        """
        self.db = db
        self.base_url = base_url.rstrip("/")
        self.generate_code = code_generator or codes.generate_code
        self.max_collision_retries = max_collision_retries

    @contextmanager
    def _storage(self) -> Iterator[None]:
        try:
            yield
        except DBAPIError as exc:
            logger.exception("Storage failure")
            raise StorageUnavailableError(
                "Storage is temporarily unavailable", details=str(exc.orig)
            ) from exc

    def short_url(self, code: str) -> str:
        return f"{self.base_url}/{code}"

    def create_link(self, original_url: str, custom_code: Optional[str] = None) -> schemas.LinkCreated:
        ok, error = validators.is_valid_url(original_url)
        if not ok:
            raise InvalidInputError(f"Invalid URL: {error}")

        if custom_code is not None:
            ok, error = validators.is_valid_code(custom_code)
            if not ok:
                raise InvalidInputError(error)
            link = self._insert_custom(original_url, custom_code)
        else:
            link = self._insert_generated(original_url)

        logger.info("Created link %s -> %s", link.code, link.original_url)
        out = schemas.LinkOut.model_validate(link)
        return schemas.LinkCreated(**out.model_dump(), short_url=self.short_url(link.code))

    def _insert_custom(self, original_url: str, code: str) -> models.Link:
        with self._storage():
            # Advisory only; the unique constraint decides under concurrent writers
            if crud.code_exists(self.db, code):
                logger.warning("Custom code %s already taken", code)
                raise CodeConflictError(f"Custom code '{code}' already exists")
            try:
                return crud.insert_link(self.db, code, original_url)
            except crud.DuplicateCodeError:
                logger.warning("Custom code %s taken concurrently", code)
                raise CodeConflictError(f"Custom code '{code}' already exists")

    def _insert_generated(self, original_url: str) -> models.Link:
        attempts = 1 + self.max_collision_retries
        with self._storage():
            for attempt in range(1, attempts + 1):
                code = self.generate_code()
                try:
                    return crud.insert_link(self.db, code, original_url)
                except crud.DuplicateCodeError:
                    logger.warning("Generated code %s collided (attempt %d/%d)", code, attempt, attempts)
        raise CodeConflictError(f"Could not allocate a unique code after {attempts} attempts")

    def get_all_links(self) -> list[schemas.LinkOut]:
        with self._storage():
            links = crud.list_links(self.db)
        return [schemas.LinkOut.model_validate(link) for link in links]

    def get_link_stats(self, code: str) -> schemas.LinkOut:
        with self._storage():
            link = crud.get_link(self.db, code)
        if not link:
            raise NotFoundError("Link not found")
        return schemas.LinkOut.model_validate(link)

    def delete_link(self, code: str) -> schemas.LinkOut:
        with self._storage():
            link = crud.delete_link(self.db, code)
        if not link:
            raise NotFoundError("Link not found")
        logger.info("Deleted link %s", code)
        return schemas.LinkOut.model_validate(link)

    def resolve_redirect(self, code: str) -> str:
        with self._storage():
            original_url = crud.increment_click(self.db, code)
        if original_url is None:
            raise NotFoundError("Link not found")
        logger.debug("Redirecting %s -> %s", code, original_url)
        return original_url
