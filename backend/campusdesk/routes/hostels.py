"""Hostel, room type, room and member allocation endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from .common import Page, include_set, ok, owner_ref, paginated

router = APIRouter(tags=["hostels"], dependencies=[Depends(get_current_user)])


@router.get('/hostels')
def list_hostels(status: Optional[str] = None, search: Optional[str] = None, type: Optional[str] = None,
                 include: Optional[str] = None, page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.HostelService(db).list_hostels(status=status, search=search, type=type,
                                                          page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.hostel_resource, include=include_set(include))


@router.post('/hostels', status_code=201)
def create_hostel(payload: schemas.HostelIn, db: Session = Depends(get_session)):
    hostel = services.HostelService(db).create_hostel(payload.model_dump())
    return ok(resources.hostel_resource(hostel), 'Hostel created successfully')


@router.get('/hostels/{pk}')
def get_hostel(pk: int, db: Session = Depends(get_session)):
    hostel = services.HostelService(db).get_hostel(pk)
    return ok(resources.hostel_resource(hostel, include={'rooms'}))


@router.put('/hostels/{pk}')
def update_hostel(pk: int, payload: schemas.HostelIn, db: Session = Depends(get_session)):
    hostel = services.HostelService(db).update_hostel(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.hostel_resource(hostel), 'Hostel updated successfully')


@router.delete('/hostels/{pk}')
def delete_hostel(pk: int, db: Session = Depends(get_session)):
    services.HostelService(db).delete_hostel(pk)
    return ok(None, 'Hostel deleted successfully')


@router.get('/hostels/{pk}/occupancy')
def occupancy(pk: int, db: Session = Depends(get_session)):
    return ok(services.HostelService(db).occupancy(pk))


@router.get('/hostels/{pk}/rooms')
def list_rooms(pk: int, status: Optional[str] = None, db: Session = Depends(get_session)):
    rows = services.HostelService(db).list_rooms(pk, status=status)
    return ok(resources.collection(resources.room_resource, rows, include={'room_type'}))


@router.post('/hostels/{pk}/rooms', status_code=201)
def create_room(pk: int, payload: schemas.HostelRoomIn, db: Session = Depends(get_session)):
    room = services.HostelService(db).create_room(pk, payload.model_dump())
    return ok(resources.room_resource(room), 'Room created successfully')


@router.put('/hostel-rooms/{pk}')
def update_room(pk: int, payload: schemas.HostelRoomIn, db: Session = Depends(get_session)):
    room = services.HostelService(db).update_room(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.room_resource(room), 'Room updated successfully')


@router.get('/hostel-room-types')
def list_room_types(db: Session = Depends(get_session)):
    rows = services.HostelService(db).list_room_types()
    return ok(resources.collection(resources.room_type_resource, rows))


@router.post('/hostel-room-types', status_code=201)
def create_room_type(payload: schemas.HostelRoomTypeIn, db: Session = Depends(get_session)):
    row = services.HostelService(db).create_room_type(payload.model_dump())
    return ok(resources.room_type_resource(row), 'Room type created successfully')


@router.get('/hostel-members')
def list_members(hostel_id: Optional[int] = None, room_id: Optional[int] = None, status: Optional[str] = None,
                 page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.HostelService(db).list_members(hostel_id=hostel_id, room_id=room_id, status=status,
                                                          page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.hostel_member_resource, session=db)


@router.post('/hostel-members', status_code=201)
def allocate(payload: schemas.HostelMemberIn, db: Session = Depends(get_session)):
    ref = owner_ref(payload.owner_kind, payload.owner_id)
    member = services.HostelService(db).allocate(ref, payload.hostel_id, payload.room_id,
                                                 join_date=payload.join_date, note=payload.note)
    return ok(resources.hostel_member_resource(member, session=db), 'Hostel member allocated successfully')


@router.post('/hostel-members/{pk}/vacate')
def vacate(pk: int, payload: schemas.VacateIn, db: Session = Depends(get_session)):
    member = services.HostelService(db).vacate(pk, leave_date=payload.leave_date)
    return ok(resources.hostel_member_resource(member, session=db), 'Hostel member vacated')
