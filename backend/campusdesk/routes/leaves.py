"""Staff leave types, applications and reviews; student leaves."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from .common import Page, ok, paginated

router = APIRouter(tags=["leaves"], dependencies=[Depends(get_current_user)])


@router.get('/leave-types')
def list_types(status: Optional[bool] = None, search: Optional[str] = None, db: Session = Depends(get_session)):
    rows = services.LeaveService(db).list_types(status=status, search=search)
    return ok(resources.collection(resources.leave_type_resource, rows))


@router.post('/leave-types', status_code=201)
def create_type(payload: schemas.LeaveTypeIn, db: Session = Depends(get_session)):
    row = services.LeaveService(db).create_type(payload.model_dump())
    return ok(resources.leave_type_resource(row), 'Leave type created successfully')


@router.put('/leave-types/{pk}')
def update_type(pk: int, payload: schemas.LeaveTypeUpdate, db: Session = Depends(get_session)):
    row = services.LeaveService(db).update_type(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.leave_type_resource(row), 'Leave type updated successfully')


@router.delete('/leave-types/{pk}')
def delete_type(pk: int, db: Session = Depends(get_session)):
    services.LeaveService(db).delete_type(pk)
    return ok(None, 'Leave type deleted successfully')


@router.get('/leaves')
def list_leaves(user_id: Optional[int] = None, type_id: Optional[int] = None,
                status: Optional[str] = Query(None, pattern='^(pending|approved|rejected)$'),
                page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.LeaveService(db).list(user_id=user_id, type_id=type_id, status=status,
                                                 page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.leave_resource, include={'user'})


@router.get('/leaves/summary')
def month_summary(user_id: int, year: int = Query(..., ge=1900), month: int = Query(..., ge=1, le=12),
                  db: Session = Depends(get_session)):
    """Approved paid and unpaid leave days of a user in one month."""
    return ok(services.LeaveService(db).month_summary(user_id, year, month))


@router.post('/leaves', status_code=201)
def apply(payload: schemas.LeaveIn, db: Session = Depends(get_session),
          user: models.User = Depends(get_current_user)):
    leave = services.LeaveService(db).apply(payload.model_dump(), user_id=user.id)
    return ok(resources.leave_resource(leave), 'Leave applied successfully')


@router.get('/leaves/{pk}')
def get_leave(pk: int, db: Session = Depends(get_session)):
    return ok(resources.leave_resource(services.LeaveService(db).get(pk), include={'user'}))


@router.post('/leaves/{pk}/review')
def review(pk: int, payload: schemas.ReviewIn, db: Session = Depends(get_session),
           user: models.User = Depends(get_current_user)):
    leave = services.LeaveService(db).review(pk, payload.approved, user.id, note=payload.note)
    return ok(resources.leave_resource(leave), 'Leave approved' if payload.approved else 'Leave rejected')


@router.delete('/leaves/{pk}')
def delete_leave(pk: int, db: Session = Depends(get_session)):
    services.LeaveService(db).delete(pk)
    return ok(None, 'Leave deleted successfully')


@router.get('/student-leaves')
def list_student_leaves(student_id: Optional[int] = None, status: Optional[str] = None, page: Page = Depends(),
                        db: Session = Depends(get_session)):
    rows, total = services.LeaveService(db).list_student_leaves(student_id=student_id, status=status,
                                                                page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.student_leave_resource)


@router.post('/student-leaves', status_code=201)
def create_student_leave(payload: schemas.StudentLeaveIn, db: Session = Depends(get_session)):
    row = services.LeaveService(db).create_student_leave(payload.model_dump())
    return ok(resources.student_leave_resource(row), 'Student leave created successfully')


@router.post('/student-leaves/{pk}/review')
def review_student_leave(pk: int, payload: schemas.StudentLeaveReviewIn, db: Session = Depends(get_session)):
    row = services.LeaveService(db).review_student_leave(pk, payload.status)
    return ok(resources.student_leave_resource(row), 'Student leave updated')
