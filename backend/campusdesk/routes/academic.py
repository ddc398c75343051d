"""Academic structure endpoints.

Faculties, programs, batches, sessions, semesters, sections and subjects
share one set of handlers keyed by `kind`; only the catalogue kinds
(faculties, programs, batches) can be read without a token.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from .common import Page, include_set, ok, paginated

router = APIRouter(tags=["academic"])

# kind -> (create schema, update schema, resource)
KIND_SCHEMAS = {
    'faculties': (schemas.FacultyIn, schemas.FacultyUpdate, resources.faculty_resource),
    'programs': (schemas.ProgramIn, schemas.ProgramUpdate, resources.program_resource),
    'batches': (schemas.BatchIn, schemas.BatchUpdate, resources.batch_resource),
    'sessions': (schemas.AcademicSessionIn, schemas.AcademicSessionUpdate, resources.session_resource),
    'semesters': (schemas.SemesterIn, schemas.SemesterUpdate, resources.semester_resource),
    'sections': (schemas.SectionIn, schemas.SectionUpdate, resources.section_resource),
    'subjects': (schemas.SubjectIn, schemas.SubjectUpdate, resources.subject_resource),
}
PUBLIC_KINDS = ('faculties', 'programs', 'batches')


@router.get('/academic/statistics')
def statistics(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return ok(services.AcademicService(db).statistics())


@router.get('/academic/current')
def current(db: Session = Depends(get_session)):
    svc = services.AcademicService(db)
    session, semester = svc.current_session(), svc.current_semester()
    return ok({
        'session': resources.session_resource(session) if session else None,
        'semester': resources.semester_resource(semester) if semester else None,
    })


@router.get('/allocations')
def list_allocations(program_id: Optional[int] = None, semester_id: Optional[int] = None,
                     db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    rows = services.AcademicService(db).list_allocations(program_id=program_id, semester_id=semester_id)
    return ok(resources.collection(resources.allocation_resource, rows))


@router.post('/allocations', status_code=201)
def allocate_section(payload: schemas.AllocationIn, db: Session = Depends(get_session),
                     user: models.User = Depends(get_current_user)):
    row = services.AcademicService(db).allocate_section(payload.program_id, payload.semester_id, payload.section_id)
    return ok(resources.allocation_resource(row), 'Section allocated successfully')


@router.delete('/allocations/{pk}')
def remove_allocation(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.AcademicService(db).remove_allocation(pk)
    return ok(None, 'Allocation removed successfully')


@router.post('/programs/{pk}/{relation}/attach')
def attach(pk: int, relation: str, payload: schemas.IdsIn, db: Session = Depends(get_session),
           user: models.User = Depends(get_current_user)):
    program = services.AcademicService(db).attach(pk, relation, payload.ids)
    return ok(resources.program_resource(program, include={relation}), f'{relation.title()} attached successfully')


@router.post('/programs/{pk}/{relation}/detach')
def detach(pk: int, relation: str, payload: schemas.IdsIn, db: Session = Depends(get_session),
           user: models.User = Depends(get_current_user)):
    program = services.AcademicService(db).detach(pk, relation, payload.ids)
    return ok(resources.program_resource(program, include={relation}), f'{relation.title()} detached successfully')


@router.post('/sessions/{pk}/current')
def set_current_session(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    row = services.AcademicService(db).set_current_session(pk)
    return ok(resources.session_resource(row), 'Current session updated')


@router.post('/semesters/{pk}/current')
def set_current_semester(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    row = services.AcademicService(db).set_current_semester(pk)
    return ok(resources.semester_resource(row), 'Current semester updated')


def _list(kind: str):
    model, resource = services.academic.KINDS[kind][1], KIND_SCHEMAS[kind][2]

    def handler(status: Optional[str] = None, search: Optional[str] = None, faculty_id: Optional[int] = None,
                program_id: Optional[int] = None, batch_id: Optional[int] = None, include: Optional[str] = None,
                registration_open: bool = False, page: Page = Depends(), db: Session = Depends(get_session)):
        given = {'faculty_id': faculty_id, 'program_id': program_id, 'batch_id': batch_id}
        # only filter on columns the table has
        filters = {k: v for k, v in given.items() if v is not None and hasattr(model, k)}
        rows, total = services.AcademicService(db).list(kind, status=status, search=search, page=page.page,
                                                        per_page=page.per_page, registration_open=registration_open,
                                                        **filters)
        return paginated(rows, total, page, resource, include=include_set(include))
    return handler


def _get(kind: str):
    resource = KIND_SCHEMAS[kind][2]

    def handler(pk: int, include: Optional[str] = None, db: Session = Depends(get_session)):
        obj = services.AcademicService(db).get(kind, pk)
        return ok(resource(obj, include=include_set(include)))
    return handler


def _create(kind: str):
    create_schema, _, resource = KIND_SCHEMAS[kind]

    def handler(payload: create_schema, db: Session = Depends(get_session),
                user: models.User = Depends(get_current_user)):
        obj = services.AcademicService(db).create(kind, payload.model_dump())
        return ok(resource(obj), f'{services.academic.KINDS[kind][2]} created successfully')
    return handler


def _update(kind: str):
    _, update_schema, resource = KIND_SCHEMAS[kind]

    def handler(pk: int, payload: update_schema, db: Session = Depends(get_session),
                user: models.User = Depends(get_current_user)):
        obj = services.AcademicService(db).update(kind, pk, payload.model_dump(exclude_unset=True))
        return ok(resource(obj), f'{services.academic.KINDS[kind][2]} updated successfully')
    return handler


def _delete(kind: str):
    def handler(pk: int, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
        services.AcademicService(db).delete(kind, pk)
        return ok(None, f'{services.academic.KINDS[kind][2]} deleted successfully')
    return handler


def _bulk_status(kind: str):
    def handler(payload: schemas.StatusBulkIn, db: Session = Depends(get_session),
                user: models.User = Depends(get_current_user)):
        updated = services.AcademicService(db).bulk_update_status(kind, payload.ids, payload.status)
        return ok({'updated': updated}, f'{updated} records updated')
    return handler


AUTH = [Depends(get_current_user)]

for _kind in KIND_SCHEMAS:
    _read_deps = [] if _kind in PUBLIC_KINDS else AUTH
    router.add_api_route(f'/{_kind}', _list(_kind), methods=['GET'], dependencies=_read_deps)
    router.add_api_route(f'/{_kind}', _create(_kind), methods=['POST'], status_code=201)
    router.add_api_route(f'/{_kind}/bulk-status', _bulk_status(_kind), methods=['POST'])
    router.add_api_route(f'/{_kind}/{{pk}}', _get(_kind), methods=['GET'], dependencies=_read_deps)
    router.add_api_route(f'/{_kind}/{{pk}}', _update(_kind), methods=['PUT'])
    router.add_api_route(f'/{_kind}/{{pk}}', _delete(_kind), methods=['DELETE'])
