"""Helpers shared by the service classes."""

import json
import logging
import re
import unicodedata
from datetime import date, datetime, time, timezone

from pydantic import ValidationError

from ..errors import BusinessRuleError, NotFoundError

logger = logging.getLogger("campusdesk.services")


def log_event(event: str, **payload) -> None:
    """Log a structured `<event> <json>` line on the services logger."""
    logger.info("%s %s", event, json.dumps(payload, ensure_ascii=True, default=str))


def slugify(text: str) -> str:
    text = unicodedata.normalize('NFKD', text or '').encode('ascii', 'ignore').decode('ascii')
    text = re.sub(r'[^a-zA-Z0-9]+', '-', text).strip('-').lower()
    return text or 'item'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_datetime(day: date) -> datetime:
    """Midday UTC on `day`, for datetime columns filled from a plain date."""
    return datetime.combine(day, time(12, 0), tzinfo=timezone.utc)


def validated(schema, row: dict) -> dict:
    """`row` checked by a request schema, as the API checks a single record.

    Validation failures surface as `BusinessRuleError` naming the first
    offending field, so bulk imports can report them per row.
    """
    try:
        return schema.model_validate(row).model_dump(exclude_none=True)
    except ValidationError as e:
        err = e.errors()[0]
        field = '.'.join(str(p) for p in err['loc'])
        raise BusinessRuleError(f"{field}: {err['msg']}" if field else err['msg'])


class BaseService:
    """Session holder with the small CRUD steps every service repeats."""

    def __init__(self, session):
        self.session = session

    def _require(self, repo, pk: int, label: str):
        obj = repo.get(pk)
        if obj is None:
            raise NotFoundError(label, pk)
        return obj

    def _apply(self, obj, data: dict):
        for key, value in data.items():
            setattr(obj, key, value)
        if hasattr(obj, 'updated_at'):
            obj.updated_at = utcnow()
        return obj

    def _unique_slug(self, repo, text: str, exclude_id=None) -> str:
        """Slug of `text`, suffixed with -2, -3... until unused in `repo`."""
        base = slugify(text)
        slug, n = base, 2
        while True:
            found = repo.first_where(slug=slug)
            if found is None or found.id == exclude_id:
                return slug
            slug = f'{base}-{n}'
            n += 1

    def _link_all(self, repo, ids, label: str):
        """Load every id from `repo` or raise NotFoundError on the first miss."""
        rows = []
        for pk in dict.fromkeys(ids or []):
            rows.append(self._require(repo, pk, label))
        return rows
