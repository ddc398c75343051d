"""Fee categories, discounts, fines, fee masters, fees and payments."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..enums import OwnerKind
from .common import Page, include_set, ok, owner_ref, paginated

router = APIRouter(tags=["fees"], dependencies=[Depends(get_current_user)])


# -- setup ----------------------------------------------------------------

@router.get('/fees-categories')
def list_categories(status: Optional[str] = None, search: Optional[str] = None,
                    db: Session = Depends(get_session)):
    rows = services.FeeService(db).list_categories(status=status, search=search)
    return ok(resources.collection(resources.fees_category_resource, rows))


@router.post('/fees-categories', status_code=201)
def create_category(payload: schemas.FeesCategoryIn, db: Session = Depends(get_session)):
    row = services.FeeService(db).create_category(payload.model_dump())
    return ok(resources.fees_category_resource(row), 'Fees category created successfully')


@router.put('/fees-categories/{pk}')
def update_category(pk: int, payload: schemas.FeesCategoryIn, db: Session = Depends(get_session)):
    row = services.FeeService(db).update_category(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.fees_category_resource(row), 'Fees category updated successfully')


@router.get('/fees-discounts')
def list_discounts(status: Optional[bool] = None, search: Optional[str] = None,
                   db: Session = Depends(get_session)):
    rows = services.FeeService(db).list_discounts(status=status, search=search)
    return ok(resources.collection(resources.discount_resource, rows))


@router.post('/fees-discounts', status_code=201)
def create_discount(payload: schemas.FeesDiscountIn, db: Session = Depends(get_session)):
    row = services.FeeService(db).create_discount(payload.model_dump())
    return ok(resources.discount_resource(row), 'Fees discount created successfully')


@router.put('/fees-discounts/{pk}/status')
def set_discount_status(pk: int, active: bool, db: Session = Depends(get_session)):
    row = services.FeeService(db).set_discount_status(pk, active)
    return ok(resources.discount_resource(row), 'Discount status updated')


@router.get('/fees-fines')
def list_fines(status: Optional[bool] = None, db: Session = Depends(get_session)):
    rows = services.FeeService(db).list_fines(status=status)
    return ok(resources.collection(resources.fine_resource, rows))


@router.post('/fees-fines', status_code=201)
def create_fine(payload: schemas.FeesFineIn, db: Session = Depends(get_session)):
    row = services.FeeService(db).create_fine(payload.model_dump())
    return ok(resources.fine_resource(row), 'Fees fine created successfully')


@router.put('/fees-fines/{pk}/status')
def set_fine_status(pk: int, active: bool, db: Session = Depends(get_session)):
    row = services.FeeService(db).set_fine_status(pk, active)
    return ok(resources.fine_resource(row), 'Fine status updated')


@router.get('/fees-masters')
def list_masters(page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.FeeService(db).list_masters(page.page, page.per_page)
    return paginated(rows, total, page, resources.fees_master_resource)


@router.post('/fees-masters', status_code=201)
def create_master(payload: schemas.FeesMasterIn, db: Session = Depends(get_session),
                  user: models.User = Depends(get_current_user)):
    row = services.FeeService(db).create_master(payload.model_dump(), user_id=user.id)
    return ok(resources.fees_master_resource(row), 'Fees master created successfully')


@router.post('/fees-masters/{pk}/assign')
def assign_master(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    result = services.FeeService(db).assign_master(pk, user_id=user.id)
    return ok(result, f"{result['created']} fees assigned")


# -- fees -----------------------------------------------------------------

@router.get('/fees')
def list_fees(status: Optional[str] = None, category_id: Optional[int] = None,
              student_enroll_id: Optional[int] = None, student_id: Optional[int] = None,
              start_date: Optional[date] = None, end_date: Optional[date] = None, include: Optional[str] = None,
              paid: Optional[bool] = None, page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.FeeService(db).list_fees(
        status=status, category_id=category_id, student_enroll_id=student_enroll_id, student_id=student_id,
        start_date=start_date, end_date=end_date, paid=paid, page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.fee_resource, include=include_set(include))


@router.get('/fees/statistics')
def statistics(db: Session = Depends(get_session)):
    return ok(services.FeeService(db).statistics())


@router.get('/fees/overdue')
def overdue(min_days: Optional[int] = Query(None, ge=1), page: Page = Depends(),
            db: Session = Depends(get_session)):
    rows, total = services.FeeService(db).overdue(min_days=min_days, page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.fee_resource, include={'category', 'student_enroll'})


@router.get('/fees/upcoming')
def upcoming(days: int = Query(7, ge=1, le=365), db: Session = Depends(get_session)):
    rows = services.FeeService(db).upcoming(days)
    return ok(resources.collection(resources.fee_resource, rows, include={'category', 'student_enroll'}))


@router.post('/fees', status_code=201)
def create_fee(payload: schemas.FeeIn, db: Session = Depends(get_session),
               user: models.User = Depends(get_current_user)):
    fee = services.FeeService(db).create_fee(payload.model_dump(), user_id=user.id)
    return ok(resources.fee_resource(fee), 'Fee created successfully')


@router.get('/fees/{pk}')
def get_fee(pk: int, db: Session = Depends(get_session)):
    fee = services.FeeService(db).get_fee(pk)
    return ok(resources.fee_resource(fee, include={'category', 'student_enroll'}))


@router.put('/fees/{pk}')
def update_fee(pk: int, payload: schemas.FeeUpdate, db: Session = Depends(get_session),
               user: models.User = Depends(get_current_user)):
    fee = services.FeeService(db).update_fee(pk, payload.model_dump(exclude_unset=True), user_id=user.id)
    return ok(resources.fee_resource(fee), 'Fee updated successfully')


@router.delete('/fees/{pk}')
def delete_fee(pk: int, db: Session = Depends(get_session)):
    services.FeeService(db).delete_fee(pk)
    return ok(None, 'Fee deleted successfully')


@router.post('/fees/{pk}/pay')
def pay(pk: int, payload: schemas.PayIn, db: Session = Depends(get_session),
        user: models.User = Depends(get_current_user)):
    fee = services.FeeService(db).pay(pk, payload.payment_method, amount=payload.amount,
                                      pay_date=payload.pay_date, reference=payload.reference,
                                      note=payload.note, user_id=user.id)
    return ok(resources.fee_resource(fee), 'Payment recorded successfully')


@router.get('/students/{student_id}/fees')
def student_fees(student_id: int, db: Session = Depends(get_session)):
    rows = services.FeeService(db).student_fees(student_id)
    return ok(resources.collection(resources.fee_resource, rows, include={'category'}))


@router.get('/students/{student_id}/discounts')
def student_discounts(student_id: int, db: Session = Depends(get_session)):
    rows = services.FeeService(db).active_discounts_for_student(student_id)
    return ok(resources.collection(resources.discount_resource, rows))


# -- transactions ---------------------------------------------------------

@router.get('/transactions')
def list_transactions(owner_kind: Optional[OwnerKind] = None, owner_id: Optional[int] = None,
                      search: Optional[str] = None, page: Page = Depends(), db: Session = Depends(get_session)):
    owner = owner_ref(owner_kind, owner_id) if owner_kind and owner_id else None
    rows, total = services.FeeService(db).list_transactions(owner=owner, search=search, page=page.page,
                                                            per_page=page.per_page)
    return paginated(rows, total, page, resources.transaction_resource, session=db)
