"""Staff leave types, applications and reviews; student leaves."""

from datetime import date
from typing import List, Optional

from sqlmodel import Session

from .. import models, repositories, rules
from ..enums import ApplicationStatus, PayType
from ..errors import BusinessRuleError
from .base import BaseService, log_event


class LeaveService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.types = repositories.LeaveTypeRepository(session)
        self.leaves = repositories.LeaveRepository(session)
        self.student_leaves = repositories.StudentLeaveRepository(session)
        self.users = repositories.UserRepository(session)
        self.students = repositories.StudentRepository(session)

    # -- leave types ------------------------------------------------------

    def list_types(self, status: Optional[bool] = None, search=None) -> List[models.LeaveType]:
        stmt = self.types.search(self.types.query(), search)
        if status is not None:
            stmt = stmt.where(models.LeaveType.status == status)
        return self.types.all(self.types.ordered(stmt))

    def get_type(self, pk: int) -> models.LeaveType:
        return self._require(self.types, pk, 'Leave type')

    def create_type(self, data: dict) -> models.LeaveType:
        leave_type = models.LeaveType(**data, slug=self._unique_slug(self.types, data['title']))
        leave_type = self.types.save(leave_type)
        log_event("leave_type_created", id=leave_type.id, slug=leave_type.slug)
        return leave_type

    def update_type(self, pk: int, data: dict) -> models.LeaveType:
        leave_type = self.get_type(pk)
        if data.get('title') and data['title'] != leave_type.title:
            data = dict(data, slug=self._unique_slug(self.types, data['title'], exclude_id=leave_type.id))
        return self.types.save(self._apply(leave_type, data))

    def delete_type(self, pk: int) -> None:
        leave_type = self.get_type(pk)
        if leave_type.leaves:
            raise BusinessRuleError('Cannot delete a leave type that has leave applications')
        self.types.delete(leave_type)

    # -- staff leave -----------------------------------------------------

    def list(self, user_id: Optional[int] = None, type_id: Optional[int] = None, status: Optional[str] = None,
             page: int = 1, per_page: int = 15):
        """List leaves; `status` is one of pending, approved or rejected."""
        stmt = self.leaves.filter_by(self.leaves.query(), user_id=user_id, type_id=type_id)
        if status == 'pending':
            stmt = stmt.where(models.Leave.status.is_(None))
        elif status == 'approved':
            stmt = stmt.where(models.Leave.status == True)  # noqa: E712
        elif status == 'rejected':
            stmt = stmt.where(models.Leave.status == False)  # noqa: E712
        stmt = stmt.order_by(models.Leave.from_date.desc(), models.Leave.id.desc())
        return self.leaves.paginate(stmt, page, per_page)

    def get(self, pk: int) -> models.Leave:
        return self._require(self.leaves, pk, 'Leave')

    def used_days(self, user_id: int, type_id: int, exclude_id: Optional[int] = None) -> int:
        stmt = self.leaves.for_user(user_id).where(models.Leave.type_id == type_id,
                                                   models.Leave.status == True)  # noqa: E712
        return sum(rules.leave_days(l.from_date, l.to_date)
                   for l in self.leaves.all(stmt) if l.id != exclude_id)

    def apply(self, data: dict, user_id: int) -> models.Leave:
        """File a pending leave for `data['user_id']` or the calling user."""
        data = dict(data)
        owner_id = data.pop('user_id', None) or user_id
        self._require(self.users, owner_id, 'User')
        leave_type = self.get_type(data['type_id'])
        if not leave_type.status:
            raise BusinessRuleError('Leave type is not active')
        if data['to_date'] < data['from_date']:
            raise BusinessRuleError('to_date must be on or after from_date')
        days = rules.leave_days(data['from_date'], data['to_date'])
        if leave_type.limit and self.used_days(owner_id, leave_type.id) + days > leave_type.limit:
            raise BusinessRuleError(f'Leave limit of {leave_type.limit} days exceeded for {leave_type.title}')
        clash = self.leaves.overlapping(data['from_date'], data['to_date'], self.leaves.for_user(owner_id))
        clash = clash.where(_not_rejected())
        if self.leaves.first(clash) is not None:
            raise BusinessRuleError('Leave overlaps an existing application')
        leave = self.leaves.save(models.Leave(**data, user_id=owner_id, apply_date=date.today()))
        log_event("leave_applied", id=leave.id, user_id=owner_id, days=days)
        return leave

    def review(self, pk: int, approved: bool, reviewer_id: int, note: Optional[str] = None) -> models.Leave:
        leave = self.get(pk)
        if leave.status is not None:
            raise BusinessRuleError('Leave has already been reviewed')
        if approved and leave.leave_type.limit:
            days = rules.leave_days(leave.from_date, leave.to_date)
            if self.used_days(leave.user_id, leave.type_id, exclude_id=leave.id) + days > leave.leave_type.limit:
                raise BusinessRuleError('Approving this leave would exceed the leave type limit')
        leave.status = approved
        leave.review_by = reviewer_id
        if note is not None:
            leave.note = note
        leave = self.leaves.save(leave)
        log_event("leave_reviewed", id=leave.id, approved=approved, review_by=reviewer_id)
        return leave

    def delete(self, pk: int) -> None:
        leave = self.get(pk)
        if leave.status is True:
            raise BusinessRuleError('Approved leave cannot be deleted')
        self.leaves.delete(leave)

    def paid_leave(self, user_id: int, year: int, month: int) -> int:
        return self._month_days(user_id, year, month, PayType.PAID)

    def unpaid_leave(self, user_id: int, year: int, month: int) -> int:
        return self._month_days(user_id, year, month, PayType.UNPAID)

    def _month_days(self, user_id: int, year: int, month: int, pay_type: PayType) -> int:
        if not 1 <= month <= 12:
            raise BusinessRuleError('month must be between 1 and 12')
        first, last = date(year, month, 1), rules.month_end(year, month)
        stmt = self.leaves.overlapping(first, last, self.leaves.for_user(user_id))
        return rules.leave_days_in_month(self.leaves.all(stmt), year, month, pay_type.value)

    def month_summary(self, user_id: int, year: int, month: int) -> dict:
        self._require(self.users, user_id, 'User')
        paid = self.paid_leave(user_id, year, month)
        unpaid = self.unpaid_leave(user_id, year, month)
        return {'user_id': user_id, 'year': year, 'month': month,
                'paid_leave': paid, 'unpaid_leave': unpaid, 'total': paid + unpaid}

    # -- student leave ---------------------------------------------------

    def list_student_leaves(self, student_id: Optional[int] = None, status=None, page: int = 1, per_page: int = 15):
        stmt = self.student_leaves.listing(status=status, student_id=student_id)
        return self.student_leaves.paginate(stmt, page, per_page)

    def create_student_leave(self, data: dict) -> models.StudentLeave:
        self._require(self.students, data['student_id'], 'Student')
        if data['end_date'] < data['start_date']:
            raise BusinessRuleError('end_date must be on or after start_date')
        row = self.student_leaves.save(models.StudentLeave(**data))
        log_event("student_leave_created", id=row.id, student_id=row.student_id)
        return row

    def review_student_leave(self, pk: int, status) -> models.StudentLeave:
        row = self._require(self.student_leaves, pk, 'Student leave')
        status = ApplicationStatus(status)
        if status is ApplicationStatus.ADMITTED:
            raise BusinessRuleError('Invalid student leave status')
        row.status = status.value
        row = self.student_leaves.save(row)
        log_event("student_leave_reviewed", id=row.id, status=row.status)
        return row


def _not_rejected():
    """Pending or approved leaves; rejected ones never block new applications."""
    return (models.Leave.status.is_(None)) | (models.Leave.status == True)  # noqa: E712
