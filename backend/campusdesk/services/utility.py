"""Record counts across the system for the admin dashboard."""

from sqlalchemy import func
from sqlmodel import select

from .. import models
from ..enums import ApplicationStatus, FeeStatus, IssueStatus, Status
from .base import BaseService

# dashboard key -> table
COUNTED_TABLES = {
    'users': models.User,
    'faculties': models.Faculty,
    'programs': models.Program,
    'students': models.Student,
    'applications': models.Application,
    'books': models.Book,
    'library_members': models.LibraryMember,
    'hostels': models.Hostel,
    'fees': models.Fee,
    'notices': models.Notice,
}


class UtilityService(BaseService):
    def database_stats(self) -> dict:
        stats = {key: self._count(select(table)) for key, table in COUNTED_TABLES.items()}
        stats['active_students'] = self._count(
            select(models.Student).where(models.Student.status == Status.ACTIVE.value))
        stats['pending_applications'] = self._count(
            select(models.Application).where(models.Application.status == ApplicationStatus.PENDING.value))
        stats['issued_books'] = self._count(
            select(models.IssueReturn).where(models.IssueReturn.status == IssueStatus.ISSUED.value))
        stats['unpaid_fees'] = self._count(
            select(models.Fee).where(models.Fee.status != FeeStatus.PAID.value))
        return stats

    def _count(self, stmt) -> int:
        return self.session.exec(select(func.count()).select_from(stmt.subquery())).one()
