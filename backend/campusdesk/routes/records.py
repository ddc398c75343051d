"""Notes, documents and transport memberships for students, staff and
outside users."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models, resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..enums import OwnerKind
from .common import Page, ok, owner_ref, paginated

router = APIRouter(tags=["records"], dependencies=[Depends(get_current_user)])


def _optional_owner(owner_kind: Optional[OwnerKind], owner_id: Optional[int]):
    return owner_ref(owner_kind, owner_id) if owner_kind and owner_id else None


@router.get('/owners/{owner_kind}/{owner_id}/records')
def owner_records(owner_kind: str, owner_id: int, db: Session = Depends(get_session)):
    """Counts of every record attached to one owner."""
    return ok(services.RecordService(db).for_owner(owner_ref(owner_kind, owner_id)))


# -- notes ------------------------------------------------------------------

@router.get('/notes')
def list_notes(owner_kind: Optional[OwnerKind] = None, owner_id: Optional[int] = None, search: Optional[str] = None,
               page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.RecordService(db).list_notes(_optional_owner(owner_kind, owner_id), search=search,
                                                        page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.note_resource, session=db)


@router.post('/notes', status_code=201)
def create_note(payload: schemas.NoteIn, db: Session = Depends(get_session),
                user: models.User = Depends(get_current_user)):
    note = services.RecordService(db).create_note(owner_ref(payload.owner_kind, payload.owner_id),
                                                  {'title': payload.title, 'content': payload.content},
                                                  user_id=user.id)
    return ok(resources.note_resource(note, session=db), 'Note created successfully')


@router.put('/notes/{pk}')
def update_note(pk: int, payload: schemas.NoteUpdate, db: Session = Depends(get_session)):
    note = services.RecordService(db).update_note(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.note_resource(note, session=db), 'Note updated successfully')


@router.delete('/notes/{pk}')
def delete_note(pk: int, db: Session = Depends(get_session)):
    services.RecordService(db).delete_note(pk)
    return ok(None, 'Note deleted successfully')


# -- documents ----------------------------------------------------------------

@router.get('/documents')
def list_documents(owner_kind: Optional[OwnerKind] = None, owner_id: Optional[int] = None,
                   search: Optional[str] = None, page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.RecordService(db).list_documents(_optional_owner(owner_kind, owner_id), search=search,
                                                            page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.document_resource, session=db)


@router.post('/documents', status_code=201)
def create_document(payload: schemas.DocumentIn, db: Session = Depends(get_session)):
    owners = [owner_ref(o.owner_kind, o.owner_id) for o in payload.owners]
    document = services.RecordService(db).create_document({'title': payload.title, 'file_path': payload.file_path},
                                                          owners)
    return ok(resources.document_resource(document, session=db), 'Document created successfully')


@router.post('/documents/{pk}/owners')
def attach_document(pk: int, payload: List[schemas.OwnerIn], db: Session = Depends(get_session)):
    refs = [owner_ref(o.owner_kind, o.owner_id) for o in payload]
    document = services.RecordService(db).attach_document(pk, refs)
    return ok(resources.document_resource(document, session=db), 'Document owners updated')


@router.delete('/documents/{pk}/owners/{owner_kind}/{owner_id}')
def detach_document(pk: int, owner_kind: str, owner_id: int, db: Session = Depends(get_session)):
    document = services.RecordService(db).detach_document(pk, owner_ref(owner_kind, owner_id))
    return ok(resources.document_resource(document, session=db), 'Document owners updated')


@router.delete('/documents/{pk}')
def delete_document(pk: int, db: Session = Depends(get_session)):
    services.RecordService(db).delete_document(pk)
    return ok(None, 'Document deleted successfully')


# -- transport ----------------------------------------------------------------

@router.get('/transport-routes')
def list_routes(status: Optional[str] = None, search: Optional[str] = None, db: Session = Depends(get_session)):
    rows = services.RecordService(db).list_routes(status=status, search=search)
    return ok(resources.collection(resources.transport_route_resource, rows))


@router.post('/transport-routes', status_code=201)
def create_route(payload: schemas.TransportRouteIn, db: Session = Depends(get_session)):
    row = services.RecordService(db).create_route(payload.model_dump())
    return ok(resources.transport_route_resource(row), 'Transport route created successfully')


@router.put('/transport-routes/{pk}')
def update_route(pk: int, payload: schemas.TransportRouteUpdate, db: Session = Depends(get_session)):
    row = services.RecordService(db).update_route(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.transport_route_resource(row), 'Transport route updated successfully')


@router.delete('/transport-routes/{pk}')
def delete_route(pk: int, db: Session = Depends(get_session)):
    services.RecordService(db).delete_route(pk)
    return ok(None, 'Transport route deleted successfully')


@router.get('/transport-members')
def list_transport_members(route_id: Optional[int] = None, status: Optional[str] = None, page: Page = Depends(),
                           db: Session = Depends(get_session)):
    rows, total = services.RecordService(db).list_transport_members(route_id=route_id, status=status,
                                                                    page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.transport_member_resource, session=db)


@router.post('/transport-members', status_code=201)
def assign_transport(payload: schemas.TransportMemberIn, db: Session = Depends(get_session)):
    member = services.RecordService(db).assign_transport(owner_ref(payload.owner_kind, payload.owner_id),
                                                         payload.route_id, start_date=payload.start_date,
                                                         end_date=payload.end_date)
    return ok(resources.transport_member_resource(member, session=db), 'Transport member assigned successfully')


@router.post('/transport-members/{pk}/end')
def end_transport(pk: int, end_date: Optional[date] = None, db: Session = Depends(get_session)):
    member = services.RecordService(db).end_transport(pk, end_date=end_date)
    return ok(resources.transport_member_resource(member, session=db), 'Transport membership ended')
