"""Owner references for records that may belong to several kinds of rows.

Notes, transactions, documents, notice audiences and library, hostel and
transport memberships all point at "an owner" which is either a student,
a staff user or an outside user. Instead of storing a class name the
tables keep an `owner_kind` column holding an `OwnerKind` value and an
`owner_id` column.
"""

from dataclasses import dataclass
from typing import Dict, List, Union

from sqlmodel import Session, select

from . import models
from .enums import OwnerKind
from .errors import NotFoundError

Owner = Union[models.Student, models.User, models.OutsideUser]

# Tables carrying owner_kind/owner_id columns, keyed by the name used in
# `owned_by` results.
OWNED_TABLES = {
    'notes': models.Note,
    'documents': models.DocumentAttachment,
    'transactions': models.Transaction,
    'library_members': models.LibraryMember,
    'hostel_members': models.HostelMember,
    'transport_members': models.TransportMember,
    'notices': models.NoticeAudience,
}


@dataclass(frozen=True)
class OwnerRef:
    kind: OwnerKind
    id: int

    @classmethod
    def of(cls, kind, owner_id: int) -> 'OwnerRef':
        """Build a reference from a raw kind value (as stored or posted)."""
        try:
            return cls(OwnerKind(kind), int(owner_id))
        except ValueError:
            raise ValueError(f'unknown owner kind: {kind}')

    @classmethod
    def for_row(cls, row) -> 'OwnerRef':
        """Reference stored on a row with owner_kind/owner_id columns."""
        return cls.of(row.owner_kind, row.owner_id)

    @classmethod
    def for_owner(cls, owner: Owner) -> 'OwnerRef':
        if isinstance(owner, models.Student):
            return cls(OwnerKind.STUDENT, owner.id)
        if isinstance(owner, models.User):
            return cls(OwnerKind.USER, owner.id)
        if isinstance(owner, models.OutsideUser):
            return cls(OwnerKind.OUTSIDE_USER, owner.id)
        raise TypeError(f'{type(owner).__name__} cannot own records')

    def columns(self) -> Dict[str, object]:
        """Column values to assign to an owned row."""
        return {'owner_kind': self.kind.value, 'owner_id': self.id}


def resolve_owner(session: Session, ref: OwnerRef) -> Owner:
    """Load the row a reference points at or raise `NotFoundError`."""
    if ref.kind is OwnerKind.STUDENT:
        owner = session.get(models.Student, ref.id)
    elif ref.kind is OwnerKind.USER:
        owner = session.get(models.User, ref.id)
    elif ref.kind is OwnerKind.OUTSIDE_USER:
        owner = session.get(models.OutsideUser, ref.id)
    else:
        raise ValueError(f'unknown owner kind: {ref.kind}')
    if owner is None:
        raise NotFoundError(ref.kind.label(), ref.id)
    return owner


def owner_name(owner: Owner) -> str:
    if isinstance(owner, models.User):
        name = ' '.join(p for p in (owner.first_name, owner.last_name) if p)
        return name or owner.username
    return ' '.join(p for p in (owner.first_name, owner.last_name) if p)


def owner_display(owner: Owner) -> dict:
    """Short summary used when nesting an owner inside another resource."""
    ref = OwnerRef.for_owner(owner)
    data = {
        'kind': ref.kind.value,
        'kind_text': ref.kind.label(),
        'id': ref.id,
        'name': owner_name(owner),
    }
    if isinstance(owner, models.Student):
        data['student_id'] = owner.student_id
    return data


def owner_summary(session: Session, row) -> dict:
    """Owner summary for a row with owner columns; tolerates dangling ids."""
    ref = OwnerRef.for_row(row)
    try:
        return owner_display(resolve_owner(session, ref))
    except NotFoundError:
        return {'kind': ref.kind.value, 'kind_text': ref.kind.label(), 'id': ref.id, 'name': None}


def owned_by(session: Session, ref: OwnerRef) -> Dict[str, List]:
    """Every polymorphic row attached to `ref`, grouped by table.

    Owners are not deleted in cascade; callers use this to check or clean
    up dependants before removing a student or user.
    """
    out = {}
    for key, table in OWNED_TABLES.items():
        stmt = select(table).where(table.owner_kind == ref.kind.value, table.owner_id == ref.id)
        out[key] = session.exec(stmt).all()
    return out
