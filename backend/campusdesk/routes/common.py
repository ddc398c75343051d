"""Response envelope and query helpers shared by the route modules."""

from typing import Callable, Iterable, List, Optional

from fastapi import HTTPException, Query, UploadFile

from ..config import settings
from ..polymorphic import OwnerRef
from ..repositories import last_page


def ok(data=None, message: str = 'OK') -> dict:
    return {'success': True, 'message': message, 'data': data}


def paginated(rows: Iterable, total: int, page: 'Page', fn: Callable, message: str = 'OK', **kwargs) -> dict:
    """List envelope with `meta` describing the page."""
    return {
        'success': True,
        'message': message,
        'data': [fn(r, **kwargs) for r in rows],
        'meta': {
            'total': total,
            'per_page': page.per_page,
            'current_page': page.page,
            'last_page': last_page(total, page.per_page),
        },
    }


class Page:
    """`?page=&per_page=` dependency; per_page is clamped to MAX_PER_PAGE."""

    def __init__(self, page: int = Query(1, ge=1), per_page: Optional[int] = Query(None, ge=1)):
        self.page = page
        self.per_page = min(per_page or settings.PER_PAGE, settings.MAX_PER_PAGE)


def owner_ref(kind, owner_id: int) -> OwnerRef:
    try:
        return OwnerRef.of(kind, owner_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def include_set(include: Optional[str]) -> set:
    """`?include=batch,program` -> {'batch', 'program'}."""
    return {p.strip() for p in (include or '').split(',') if p.strip()}


def read_upload(file: UploadFile, parser: Callable[[bytes, str], List[dict]]) -> List[dict]:
    """Read an uploaded CSV/JSON file and turn it into rows with `parser`."""
    if not file.filename:
        raise HTTPException(status_code=400, detail='no file')
    content = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail='file too large')
    try:
        return parser(content, file.filename)
    except (ValueError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f'could not parse file: {e}')
