"""Notice board endpoints. Listing notices does not require a token."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from .common import Page, include_set, ok, owner_ref, paginated

router = APIRouter(tags=["notices"])


@router.get('/notices')
def list_notices(status: Optional[str] = None, search: Optional[str] = None, category_id: Optional[int] = None,
                 faculty_id: Optional[int] = None, program_id: Optional[int] = None, include: Optional[str] = None,
                 page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.NoticeService(db).list(status=status, search=search, category_id=category_id,
                                                  faculty_id=faculty_id, program_id=program_id,
                                                  page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.notice_resource, session=db, include=include_set(include))


@router.get('/notice-categories')
def list_categories(status: Optional[str] = None, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    rows = services.NoticeService(db).list_categories(status=status)
    return ok(resources.collection(resources.notice_category_resource, rows))


@router.post('/notice-categories', status_code=201)
def create_category(payload: schemas.NoticeCategoryIn, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    row = services.NoticeService(db).create_category(payload.model_dump())
    return ok(resources.notice_category_resource(row), 'Notice category created successfully')


@router.post('/notices', status_code=201)
def create_notice(payload: schemas.NoticeIn, db: Session = Depends(get_session),
                  user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).create(payload.model_dump(), user_id=user.id)
    return ok(resources.notice_resource(notice, session=db, include={'category', 'audience'}),
              'Notice created successfully')


@router.post('/notices/publish-due')
def publish_due(on: Optional[date] = None, dry_run: bool = False, db: Session = Depends(get_session),
                user: models.User = Depends(get_current_user)):
    """Publish drafts whose notice date has arrived; `dry_run` only lists them."""
    rows = services.NoticeService(db).publish_due(on=on, dry_run=dry_run)
    return ok(resources.collection(resources.notice_resource, rows),
              f'{len(rows)} notice(s) {"due" if dry_run else "published"}')


@router.get('/notices/{pk}')
def get_notice(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).get(pk)
    return ok(resources.notice_resource(notice, session=db, include={'category', 'audience'}))


@router.put('/notices/{pk}')
def update_notice(pk: int, payload: schemas.NoticeUpdate, db: Session = Depends(get_session),
                  user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).update(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.notice_resource(notice, session=db), 'Notice updated successfully')


@router.delete('/notices/{pk}')
def delete_notice(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.NoticeService(db).delete(pk)
    return ok(None, 'Notice deleted successfully')


@router.post('/notices/{pk}/publish')
def publish(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).publish(pk)
    return ok(resources.notice_resource(notice, session=db), 'Notice published')


@router.post('/notices/{pk}/unpublish')
def unpublish(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).unpublish(pk)
    return ok(resources.notice_resource(notice, session=db), 'Notice unpublished')


@router.post('/notices/{pk}/audience')
def attach_audience(pk: int, payload: List[schemas.OwnerIn], db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    refs = [owner_ref(o.owner_kind, o.owner_id) for o in payload]
    notice = services.NoticeService(db).attach_audience(pk, refs)
    return ok(resources.notice_resource(notice, session=db, include={'audience'}), 'Audience updated')


@router.delete('/notices/{pk}/audience/{owner_kind}/{owner_id}')
def detach_audience(pk: int, owner_kind: str, owner_id: int, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    notice = services.NoticeService(db).detach_audience(pk, owner_ref(owner_kind, owner_id))
    return ok(resources.notice_resource(notice, session=db, include={'audience'}), 'Audience updated')


@router.get('/owners/{owner_kind}/{owner_id}/notices')
def owner_notices(owner_kind: str, owner_id: int, db: Session = Depends(get_session),
                  user: models.User = Depends(get_current_user)):
    """Published notices addressed to one student, staff member or outside user."""
    rows = services.NoticeService(db).for_owner(owner_ref(owner_kind, owner_id))
    return ok(resources.collection(resources.notice_resource, rows))
