"""Student records, enrolment, status types and outside users."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Path, UploadFile
from fastapi.responses import Response
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..utils.exporters import students_csv
from ..utils.parsers import parse_file_to_students
from .common import Page, include_set, ok, paginated, read_upload

router = APIRouter(tags=["students"], dependencies=[Depends(get_current_user)])


@router.get('/students')
def list_students(status: Optional[str] = None, search: Optional[str] = None, batch_id: Optional[int] = None,
                  program_id: Optional[int] = None, include: Optional[str] = None, page: Page = Depends(),
                  db: Session = Depends(get_session)):
    rows, total = services.StudentService(db).list(status=status, search=search, batch_id=batch_id,
                                                   program_id=program_id, page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.student_resource, include=include_set(include))


@router.get('/students/statistics')
def statistics(db: Session = Depends(get_session)):
    return ok(services.StudentService(db).statistics())


@router.get('/students/export')
def export(status: Optional[str] = None, program_id: Optional[int] = None, db: Session = Depends(get_session)):
    svc = services.StudentService(db)
    rows = svc.students.all(svc.students.listing(status=status, program_id=program_id))
    return Response(content=students_csv(rows), media_type='text/csv',
                    headers={'Content-Disposition': 'attachment; filename="students.csv"'})


@router.post('/students', status_code=201)
def create_student(payload: schemas.StudentIn, db: Session = Depends(get_session),
                   user: models.User = Depends(get_current_user)):
    student = services.StudentService(db).create(payload.model_dump(exclude_none=True), user_id=user.id)
    return ok(resources.student_resource(student), 'Student created successfully')


@router.post('/students/import')
def import_students(file: UploadFile = File(...), dry_run: bool = False, db: Session = Depends(get_session),
                    user: models.User = Depends(get_current_user)):
    """Upload a CSV or JSON list of students; each gets a generated student id."""
    rows = read_upload(file, parse_file_to_students)
    result = services.StudentService(db).import_students(rows, dry_run=dry_run, user_id=user.id)
    return ok(result, f"{result['created']} students imported")


@router.get('/students/{pk}')
def get_student(pk: int, include: Optional[str] = None, db: Session = Depends(get_session)):
    student = services.StudentService(db).get(pk)
    return ok(resources.student_resource(student, include=include_set(include)))


@router.put('/students/{pk}')
def update_student(pk: int, payload: schemas.StudentUpdate, db: Session = Depends(get_session),
                   user: models.User = Depends(get_current_user)):
    student = services.StudentService(db).update(pk, payload.model_dump(exclude_unset=True), user_id=user.id)
    return ok(resources.student_resource(student), 'Student updated successfully')


@router.delete('/students/{pk}')
def delete_student(pk: int, db: Session = Depends(get_session)):
    services.StudentService(db).delete(pk)
    return ok(None, 'Student deleted successfully')


@router.post('/students/{pk}/activate')
def activate(pk: int, db: Session = Depends(get_session)):
    return ok(resources.student_resource(services.StudentService(db).activate(pk)), 'Student activated')


@router.post('/students/{pk}/deactivate')
def deactivate(pk: int, db: Session = Depends(get_session)):
    return ok(resources.student_resource(services.StudentService(db).deactivate(pk)), 'Student deactivated')


@router.post('/students/{pk}/enroll', status_code=201)
def enroll(pk: int, payload: schemas.EnrollIn, db: Session = Depends(get_session)):
    row = services.StudentService(db).enroll(pk, payload.program_id, payload.session_id, payload.semester_id,
                                             section_id=payload.section_id, subject_ids=payload.subject_ids)
    return ok(resources.enroll_resource(row, include={'subjects'}), 'Student enrolled successfully')


@router.get('/students/{pk}/enrolls')
def enroll_history(pk: int, db: Session = Depends(get_session)):
    rows = services.StudentService(db).enroll_history(pk)
    return ok(resources.collection(resources.enroll_resource, rows, include={'subjects'}))


@router.get('/students/{pk}/enrolls/{which}')
def enroll_at(pk: int, which: str = Path(..., pattern='^(current|first|last)$'), db: Session = Depends(get_session)):
    row = services.StudentService(db).enroll_at(pk, which)
    return ok(resources.enroll_resource(row, include={'subjects'}) if row else None)


@router.post('/students/{pk}/transfer')
def transfer(pk: int, payload: schemas.TransferIn, db: Session = Depends(get_session)):
    student = services.StudentService(db).transfer_program(pk, payload.program_id, batch_id=payload.batch_id)
    return ok(resources.student_resource(student, include={'program'}), 'Student transferred successfully')


@router.put('/students/{pk}/status-types')
def set_status_types(pk: int, payload: schemas.IdsIn, db: Session = Depends(get_session)):
    student = services.StudentService(db).set_status_types(pk, payload.ids)
    return ok(resources.student_resource(student, include={'status_types'}), 'Status types updated')


@router.get('/status-types')
def list_status_types(db: Session = Depends(get_session)):
    rows = services.StudentService(db).list_status_types()
    return ok(resources.collection(resources.status_type_resource, rows))


@router.post('/status-types', status_code=201)
def create_status_type(payload: schemas.StatusTypeIn, db: Session = Depends(get_session)):
    row = services.StudentService(db).create_status_type(payload.model_dump())
    return ok(resources.status_type_resource(row), 'Status type created successfully')


@router.get('/outside-users')
def list_outside_users(status: Optional[str] = None, search: Optional[str] = None, page: Page = Depends(),
                       db: Session = Depends(get_session)):
    rows, total = services.StudentService(db).list_outside_users(status=status, search=search, page=page.page,
                                                                 per_page=page.per_page)
    return paginated(rows, total, page, resources.outside_user_resource)


@router.post('/outside-users', status_code=201)
def create_outside_user(payload: schemas.OutsideUserIn, db: Session = Depends(get_session)):
    row = services.StudentService(db).create_outside_user(payload.model_dump())
    return ok(resources.outside_user_resource(row), 'Outside user created successfully')
