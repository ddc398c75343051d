"""Notes, documents and transport memberships attached to any owner."""

from datetime import date
from typing import Iterable, List, Optional

from sqlmodel import Session

from .. import models, repositories
from ..enums import Status
from ..errors import BusinessRuleError
from ..polymorphic import OwnerRef, owned_by, resolve_owner
from .base import BaseService, log_event


class RecordService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.notes = repositories.NoteRepository(session)
        self.documents = repositories.DocumentRepository(session)
        self.attachments = repositories.DocumentAttachmentRepository(session)
        self.routes = repositories.TransportRouteRepository(session)
        self.transport = repositories.TransportMemberRepository(session)

    # -- notes -------------------------------------------------------------

    def list_notes(self, ref: Optional[OwnerRef] = None, search=None, page: int = 1, per_page: int = 15):
        cols = ref.columns() if ref else {}
        stmt = self.notes.listing(search=search, **cols)
        return self.notes.paginate(stmt.order_by(None).order_by(models.Note.id.desc()), page, per_page)

    def get_note(self, pk: int) -> models.Note:
        return self._require(self.notes, pk, 'Note')

    def create_note(self, ref: OwnerRef, data: dict, user_id: Optional[int] = None) -> models.Note:
        resolve_owner(self.session, ref)
        note = self.notes.save(models.Note(**data, **ref.columns(), created_by=user_id))
        log_event("note_created", id=note.id, owner_kind=ref.kind.value, owner_id=ref.id)
        return note

    def update_note(self, pk: int, data: dict) -> models.Note:
        return self.notes.save(self._apply(self.get_note(pk), data))

    def delete_note(self, pk: int) -> None:
        self.notes.delete(self.get_note(pk))

    # -- documents -----------------------------------------------------------

    def list_documents(self, ref: Optional[OwnerRef] = None, search=None, page: int = 1, per_page: int = 15):
        stmt = self.documents.listing(search=search)
        if ref is not None:
            stmt = stmt.join(models.DocumentAttachment,
                             models.DocumentAttachment.document_id == models.Document.id).where(
                models.DocumentAttachment.owner_kind == ref.kind.value,
                models.DocumentAttachment.owner_id == ref.id)
        return self.documents.paginate(stmt, page, per_page)

    def get_document(self, pk: int) -> models.Document:
        return self._require(self.documents, pk, 'Document')

    def create_document(self, data: dict, owners: Iterable[OwnerRef] = ()) -> models.Document:
        owners = list(owners)
        for ref in owners:
            resolve_owner(self.session, ref)
        document = self.documents.save(models.Document(**data))
        if owners:
            document = self.attach_document(document.id, owners)
        log_event("document_created", id=document.id, owners=len(owners))
        return document

    def attach_document(self, pk: int, refs: Iterable[OwnerRef]) -> models.Document:
        document = self.get_document(pk)
        have = {(a.owner_kind, a.owner_id) for a in document.attachments}
        for ref in refs:
            resolve_owner(self.session, ref)
            if (ref.kind.value, ref.id) in have:
                continue
            self.session.add(models.DocumentAttachment(document_id=document.id, **ref.columns()))
            have.add((ref.kind.value, ref.id))
        self.session.commit()
        self.session.refresh(document)
        return document

    def detach_document(self, pk: int, ref: OwnerRef) -> models.Document:
        document = self.get_document(pk)
        for row in document.attachments:
            if row.owner_kind == ref.kind.value and row.owner_id == ref.id:
                self.session.delete(row)
        self.session.commit()
        self.session.refresh(document)
        return document

    def delete_document(self, pk: int) -> None:
        document = self.get_document(pk)
        for row in document.attachments:
            self.session.delete(row)
        self.documents.delete(document)
        log_event("document_deleted", id=pk)

    # -- transport -----------------------------------------------------------

    def list_routes(self, status=None, search=None) -> List[models.TransportRoute]:
        return self.routes.all(self.routes.listing(status=status, search=search))

    def get_route(self, pk: int) -> models.TransportRoute:
        return self._require(self.routes, pk, 'Transport route')

    def create_route(self, data: dict) -> models.TransportRoute:
        if self.routes.exists(title=data['title']):
            raise BusinessRuleError('Transport route already exists')
        return self.routes.save(models.TransportRoute(**data))

    def update_route(self, pk: int, data: dict) -> models.TransportRoute:
        return self.routes.save(self._apply(self.get_route(pk), data))

    def delete_route(self, pk: int) -> None:
        route = self.get_route(pk)
        if self.transport.exists(route_id=route.id, status=Status.ACTIVE.value):
            raise BusinessRuleError('Cannot delete a route with active members')
        self.routes.delete(route)

    def list_transport_members(self, route_id: Optional[int] = None, status=None, page: int = 1,
                               per_page: int = 15):
        stmt = self.transport.listing(status=status, route_id=route_id)
        return self.transport.paginate(stmt, page, per_page)

    def assign_transport(self, ref: OwnerRef, route_id: int, start_date: Optional[date] = None,
                         end_date: Optional[date] = None) -> models.TransportMember:
        """Put an owner on a route; an owner rides one route at a time."""
        resolve_owner(self.session, ref)
        route = self.get_route(route_id)
        if route.status != Status.ACTIVE.value:
            raise BusinessRuleError('Transport route is not active')
        if self.transport.exists(**ref.columns(), status=Status.ACTIVE.value):
            raise BusinessRuleError('Owner already has an active transport membership')
        start_date = start_date or date.today()
        if end_date and end_date < start_date:
            raise BusinessRuleError('end_date must be on or after start_date')
        member = models.TransportMember(**ref.columns(), route_id=route.id, start_date=start_date,
                                        end_date=end_date)
        member = self.transport.save(member)
        log_event("transport_assigned", id=member.id, route_id=route.id, owner_kind=ref.kind.value,
                  owner_id=ref.id)
        return member

    def end_transport(self, member_id: int, end_date: Optional[date] = None) -> models.TransportMember:
        member = self._require(self.transport, member_id, 'Transport member')
        if member.status != Status.ACTIVE.value:
            raise BusinessRuleError('Transport membership has already ended')
        end_date = end_date or date.today()
        if end_date < member.start_date:
            raise BusinessRuleError('end_date must be on or after start_date')
        member.end_date = end_date
        member.status = Status.INACTIVE.value
        return self.transport.save(member)

    # -- owner overview ----------------------------------------------------------

    def for_owner(self, ref: OwnerRef) -> dict:
        """Counts of every record attached to an owner."""
        resolve_owner(self.session, ref)
        rows = owned_by(self.session, ref)
        return {key: len(items) for key, items in rows.items()}
