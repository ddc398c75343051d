"""Admission application endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..utils.exporters import applications_csv
from ..utils.parsers import parse_file_to_applications
from .common import Page, include_set, ok, paginated, read_upload

router = APIRouter(prefix="/applications", tags=["admissions"], dependencies=[Depends(get_current_user)])


@router.get('')
def list_applications(status: Optional[str] = None, search: Optional[str] = None, batch_id: Optional[int] = None,
                      program_id: Optional[int] = None, pay_status: Optional[bool] = None,
                      start_date: Optional[date] = None, end_date: Optional[date] = None,
                      include: Optional[str] = None, page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.AdmissionService(db).list(
        status=status, search=search, batch_id=batch_id, program_id=program_id, pay_status=pay_status,
        start_date=start_date, end_date=end_date, page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.application_resource, include=include_set(include))


@router.get('/statistics')
def statistics(db: Session = Depends(get_session)):
    return ok(services.AdmissionService(db).statistics())


@router.get('/ready')
def ready_for_admission(page: Page = Depends(), db: Session = Depends(get_session)):
    """Approved applications waiting to be converted into students."""
    rows, total = services.AdmissionService(db).ready_for_admission(page.page, page.per_page)
    return paginated(rows, total, page, resources.application_resource, include={'program', 'batch'})


@router.get('/export')
def export(status: Optional[str] = None, program_id: Optional[int] = None, db: Session = Depends(get_session)):
    svc = services.AdmissionService(db)
    rows = svc.apps.all(svc.apps.listing(status=status, program_id=program_id))
    return Response(content=applications_csv(rows), media_type='text/csv',
                    headers={'Content-Disposition': 'attachment; filename="applications.csv"'})


@router.post('/bulk-status')
def bulk_status(payload: schemas.BulkStatusIn, db: Session = Depends(get_session)):
    updated = services.AdmissionService(db).bulk_update_status(payload.ids, payload.status)
    return ok({'updated': updated}, f'{updated} applications updated')


@router.post('/import')
def import_applications(file: UploadFile = File(...), dry_run: bool = False, db: Session = Depends(get_session),
                        user: models.User = Depends(get_current_user)):
    """Upload a CSV or JSON list of applications; rows name their batch and program."""
    rows = read_upload(file, parse_file_to_applications)
    result = services.AdmissionService(db).import_applications(rows, dry_run=dry_run, user_id=user.id)
    return ok(result, f"{result['created']} applications imported")


@router.post('', status_code=201)
def create_application(payload: schemas.ApplicationIn, db: Session = Depends(get_session),
                       user: models.User = Depends(get_current_user)):
    app = services.AdmissionService(db).create(payload.model_dump(exclude_none=True), user_id=user.id)
    return ok(resources.application_resource(app), 'Application submitted successfully')


@router.get('/{pk}')
def get_application(pk: int, include: Optional[str] = None, db: Session = Depends(get_session)):
    app = services.AdmissionService(db).get(pk)
    return ok(resources.application_resource(app, include=include_set(include) or {'batch', 'program'}))


@router.put('/{pk}')
def update_application(pk: int, payload: schemas.ApplicationUpdate, db: Session = Depends(get_session),
                       user: models.User = Depends(get_current_user)):
    app = services.AdmissionService(db).update(pk, payload.model_dump(exclude_unset=True), user_id=user.id)
    return ok(resources.application_resource(app), 'Application updated successfully')


@router.delete('/{pk}')
def delete_application(pk: int, db: Session = Depends(get_session)):
    services.AdmissionService(db).delete(pk)
    return ok(None, 'Application deleted successfully')


@router.post('/{pk}/approve')
def approve(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    app = services.AdmissionService(db).approve(pk, user_id=user.id)
    return ok(resources.application_resource(app), 'Application approved successfully')


@router.post('/{pk}/reject')
def reject(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    app = services.AdmissionService(db).reject(pk, user_id=user.id)
    return ok(resources.application_resource(app), 'Application rejected successfully')


@router.post('/{pk}/convert', status_code=201)
def convert(pk: int, payload: schemas.ConvertIn, db: Session = Depends(get_session),
            user: models.User = Depends(get_current_user)):
    """Admit an approved applicant. The generated password is only returned here."""
    student, password = services.AdmissionService(db).convert(
        pk, payload.session_id, payload.semester_id, payload.section_id,
        admission_date=payload.admission_date, user_id=user.id)
    data = resources.student_resource(student, include={'enrolls'})
    data['password'] = password
    return ok(data, 'Student admitted successfully')
