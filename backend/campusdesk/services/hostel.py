"""Hostels, room types, rooms and bed allocation."""

from datetime import date
from typing import List, Optional

from sqlmodel import Session

from .. import models, repositories, rules
from ..enums import Status
from ..errors import BusinessRuleError
from ..polymorphic import OwnerRef, resolve_owner
from .base import BaseService, log_event


class HostelService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.hostels = repositories.HostelRepository(session)
        self.room_types = repositories.HostelRoomTypeRepository(session)
        self.rooms = repositories.HostelRoomRepository(session)
        self.members = repositories.HostelMemberRepository(session)

    # -- hostels / room types ------------------------------------------

    def list_hostels(self, status=None, search=None, type=None, page: int = 1, per_page: int = 15):
        return self.hostels.paginate(self.hostels.listing(status=status, search=search, type=type), page, per_page)

    def get_hostel(self, pk: int) -> models.Hostel:
        return self._require(self.hostels, pk, 'Hostel')

    def create_hostel(self, data: dict) -> models.Hostel:
        hostel = self.hostels.save(models.Hostel(**data))
        log_event("hostel_created", id=hostel.id)
        return hostel

    def update_hostel(self, pk: int, data: dict) -> models.Hostel:
        return self.hostels.save(self._apply(self.get_hostel(pk), data))

    def delete_hostel(self, pk: int) -> None:
        hostel = self.get_hostel(pk)
        if self.members.exists(hostel_id=hostel.id, status=Status.ACTIVE.value):
            raise BusinessRuleError('Cannot delete hostel with active members')
        for room in hostel.rooms:
            for member in room.members:
                self.session.delete(member)
            self.session.delete(room)
        self.hostels.delete(hostel)
        log_event("hostel_deleted", id=pk)

    def list_room_types(self) -> List[models.HostelRoomType]:
        return self.room_types.all()

    def create_room_type(self, data: dict) -> models.HostelRoomType:
        if self.room_types.exists(title=data['title']):
            raise BusinessRuleError('Room type already exists')
        return self.room_types.save(models.HostelRoomType(**data))

    # -- rooms -----------------------------------------------------------

    def list_rooms(self, hostel_id: int, status=None) -> List[models.HostelRoom]:
        self.get_hostel(hostel_id)
        return self.rooms.all(self.rooms.listing(status=status, hostel_id=hostel_id))

    def get_room(self, pk: int) -> models.HostelRoom:
        return self._require(self.rooms, pk, 'Hostel room')

    def create_room(self, hostel_id: int, data: dict) -> models.HostelRoom:
        hostel = self.get_hostel(hostel_id)
        if data.get('room_type_id'):
            self._require(self.room_types, data['room_type_id'], 'Room type')
        if self.rooms.exists(hostel_id=hostel.id, room_no=data['room_no']):
            raise BusinessRuleError(f"Room {data['room_no']} already exists in this hostel")
        room = self.rooms.save(models.HostelRoom(**data, hostel_id=hostel.id))
        log_event("hostel_room_created", id=room.id, hostel_id=hostel.id)
        return room

    def update_room(self, pk: int, data: dict) -> models.HostelRoom:
        room = self.get_room(pk)
        if 'capacity' in data and data['capacity'] < self.members.active_in_room(room.id):
            raise BusinessRuleError('Room capacity cannot be lower than its current occupancy')
        return self.rooms.save(self._apply(room, data))

    # -- members ---------------------------------------------------------

    def allocate(self, ref: OwnerRef, hostel_id: int, room_id: int, join_date: Optional[date] = None,
                 note: Optional[str] = None) -> models.HostelMember:
        """Give an owner a bed in a room, respecting room capacity."""
        resolve_owner(self.session, ref)
        hostel = self.get_hostel(hostel_id)
        room = self.get_room(room_id)
        if room.hostel_id != hostel.id:
            raise BusinessRuleError('Room does not belong to this hostel')
        if hostel.status != Status.ACTIVE.value or room.status != Status.ACTIVE.value:
            raise BusinessRuleError('Hostel or room is not active')
        if self.members.active_for_owner(ref.kind.value, ref.id):
            raise BusinessRuleError('Owner already has an active hostel allocation')
        if self.members.active_in_room(room.id) >= room.capacity:
            raise BusinessRuleError('Room is full')
        member = models.HostelMember(**ref.columns(), hostel_id=hostel.id, room_id=room.id,
                                     join_date=join_date or date.today(), note=note)
        member = self.members.save(member)
        log_event("hostel_allocated", member_id=member.id, room_id=room.id, owner_kind=ref.kind.value,
                  owner_id=ref.id)
        return member

    def vacate(self, member_id: int, leave_date: Optional[date] = None) -> models.HostelMember:
        member = self._require(self.members, member_id, 'Hostel member')
        if member.status != Status.ACTIVE.value:
            raise BusinessRuleError('Hostel member has already left')
        leave_date = leave_date or date.today()
        if leave_date < member.join_date:
            raise BusinessRuleError('Leave date cannot be before join date')
        member.leave_date = leave_date
        member.status = Status.INACTIVE.value
        member = self.members.save(member)
        log_event("hostel_vacated", member_id=member.id, room_id=member.room_id)
        return member

    def list_members(self, hostel_id: Optional[int] = None, room_id: Optional[int] = None, status=None,
                     page: int = 1, per_page: int = 15):
        stmt = self.members.listing(status=status, hostel_id=hostel_id, room_id=room_id)
        return self.members.paginate(stmt, page, per_page)

    def occupancy(self, hostel_id: int) -> dict:
        hostel = self.get_hostel(hostel_id)
        rooms = []
        beds = occupied = 0
        for room in hostel.rooms:
            used = self.members.active_in_room(room.id)
            beds += room.capacity
            occupied += used
            rooms.append({'room_id': room.id, 'room_no': room.room_no, 'capacity': room.capacity,
                          'occupied_beds': used, 'available_beds': max(0, room.capacity - used)})
        return {
            'hostel_id': hostel.id,
            'name': hostel.name,
            'total_rooms': len(rooms),
            'total_beds': beds,
            'occupied_beds': occupied,
            'available_beds': max(0, beds - occupied),
            'occupancy_rate': rules.rate(occupied, beds),
            'rooms': rooms,
        }
