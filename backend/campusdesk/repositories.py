"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table. Repositories
return SQLModel objects and perform commits/refreshes where appropriate.

Query scopes (`filter_by_status`, `search`, `ordered`, ...) take and
return a `select()` statement so services can chain them before calling
`paginate` or `all`.
"""

import math
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, select

from . import models
from .enums import FeeStatus, IssueStatus, Status


class Repository:
    """Generic CRUD and query scopes for one table.

    Subclasses set `model`, `search_fields` (columns matched by
    `search`) and `order_fields` (default ordering).
    """
    model = None
    search_fields: Sequence[str] = ()
    order_fields: Sequence[str] = ('id',)

    def __init__(self, session: Session):
        self.session = session

    # -- persistence ---------------------------------------------------

    def get(self, pk: int):
        return self.session.get(self.model, pk)

    def save(self, obj):
        """Add or update `obj`, commit and return the refreshed instance."""
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    create = save

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.commit()

    # -- scopes ----------------------------------------------------------

    def query(self):
        return select(self.model)

    def filter_by_status(self, stmt, status):
        if status is None or status == '':
            return stmt
        return stmt.where(self.model.status == getattr(status, 'value', status))

    def filter_by(self, stmt, **columns):
        """Equality filters; `None` values are ignored."""
        for name, value in columns.items():
            if value is None:
                continue
            stmt = stmt.where(getattr(self.model, name) == value)
        return stmt

    def search(self, stmt, term: Optional[str]):
        """Case-insensitive substring match over `search_fields`."""
        if not term or not self.search_fields:
            return stmt
        pattern = f'%{term.strip()}%'
        return stmt.where(or_(*[getattr(self.model, f).ilike(pattern) for f in self.search_fields]))

    def ordered(self, stmt):
        return stmt.order_by(*[getattr(self.model, f) for f in self.order_fields])

    # -- reads -------------------------------------------------------------

    def all(self, stmt=None) -> List:
        return self.session.exec(stmt if stmt is not None else self.ordered(self.query())).all()

    def first(self, stmt):
        return self.session.exec(stmt).first()

    def first_where(self, **columns):
        return self.first(self.filter_by(self.query(), **columns))

    def exists(self, **columns) -> bool:
        return self.first_where(**columns) is not None

    def count(self, stmt=None) -> int:
        stmt = stmt if stmt is not None else self.query()
        return self.session.exec(select(func.count()).select_from(stmt.subquery())).one()

    def paginate(self, stmt, page: int = 1, per_page: int = 15) -> Tuple[List, int]:
        """Return one page of rows and the total row count of `stmt`."""
        page = max(1, int(page))
        per_page = max(1, int(per_page))
        total = self.count(stmt)
        rows = self.session.exec(stmt.offset((page - 1) * per_page).limit(per_page)).all()
        return rows, total

    def listing(self, status=None, search: Optional[str] = None, **filters):
        """The usual status + search + column filters, ordered."""
        stmt = self.filter_by_status(self.query(), status)
        stmt = self.filter_by(stmt, **filters)
        stmt = self.search(stmt, search)
        return self.ordered(stmt)

    def count_by_status(self) -> dict:
        stmt = select(self.model.status, func.count()).group_by(self.model.status)
        return {str(k): v for k, v in self.session.exec(stmt).all()}

    def last_code(self, column: str, prefix: str) -> Optional[str]:
        """Highest code in `column` starting with `prefix`."""
        col = getattr(self.model, column)
        stmt = select(col).where(col.like(f'{prefix}%')).order_by(col.desc())
        return self.session.exec(stmt).first()


def last_page(total: int, per_page: int) -> int:
    return max(1, math.ceil(total / per_page)) if per_page else 1


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserRepository(Repository):
    model = models.User
    search_fields = ('username', 'first_name', 'last_name', 'email')

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()


class OutsideUserRepository(Repository):
    model = models.OutsideUser
    search_fields = ('first_name', 'last_name', 'email', 'phone')


# ---------------------------------------------------------------------------
# Academic
# ---------------------------------------------------------------------------

class FacultyRepository(Repository):
    model = models.Faculty
    search_fields = ('name', 'code', 'dean_name')
    order_fields = ('name',)


class ProgramRepository(Repository):
    model = models.Program
    search_fields = ('title', 'shortcode')
    order_fields = ('title',)

    def registration_open(self, stmt):
        return stmt.where(models.Program.registration == True)  # noqa: E712


class BatchRepository(Repository):
    model = models.Batch
    search_fields = ('name', 'code')
    order_fields = ('sort_order', 'name')


class AcademicSessionRepository(Repository):
    model = models.AcademicSession
    search_fields = ('name',)
    order_fields = ('start_date', 'id')

    def current(self) -> Optional[models.AcademicSession]:
        stmt = select(models.AcademicSession).where(models.AcademicSession.is_current == True)  # noqa: E712
        return self.session.exec(stmt).first()


class SemesterRepository(Repository):
    model = models.Semester
    search_fields = ('name', 'code')
    order_fields = ('academic_year', 'name')

    def current(self) -> Optional[models.Semester]:
        stmt = select(models.Semester).where(models.Semester.is_current == True)  # noqa: E712
        return self.session.exec(stmt).first()


class SectionRepository(Repository):
    model = models.Section
    search_fields = ('name', 'code')
    order_fields = ('sort_order', 'name')


class SubjectRepository(Repository):
    model = models.Subject
    search_fields = ('title', 'code')
    order_fields = ('code',)


class ProgramSemesterSectionRepository(Repository):
    model = models.ProgramSemesterSection


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------

class ApplicationRepository(Repository):
    model = models.Application
    search_fields = ('registration_no', 'first_name', 'last_name', 'email', 'phone')
    order_fields = ('id',)

    def apply_date_between(self, stmt, start: Optional[date], end: Optional[date]):
        if start:
            stmt = stmt.where(models.Application.apply_date >= start)
        if end:
            stmt = stmt.where(models.Application.apply_date <= end)
        return stmt

    def count_paid(self, paid: bool) -> int:
        return self.count(select(models.Application).where(models.Application.pay_status == paid))


class StudentRepository(Repository):
    model = models.Student
    search_fields = ('student_id', 'registration_no', 'first_name', 'last_name', 'email', 'phone')


class StatusTypeRepository(Repository):
    model = models.StatusType
    search_fields = ('title',)
    order_fields = ('title',)


class StudentEnrollRepository(Repository):
    model = models.StudentEnroll

    def for_student(self, student_id: int):
        return select(models.StudentEnroll).where(models.StudentEnroll.student_id == student_id)

    def current(self, student_id: int) -> Optional[models.StudentEnroll]:
        """Latest active enrolment of a student."""
        stmt = self.for_student(student_id).where(models.StudentEnroll.status == Status.ACTIVE.value)
        return self.session.exec(stmt.order_by(models.StudentEnroll.id.desc())).first()

    def first_enroll(self, student_id: int) -> Optional[models.StudentEnroll]:
        return self.session.exec(self.for_student(student_id).order_by(models.StudentEnroll.id)).first()

    def last_enroll(self, student_id: int) -> Optional[models.StudentEnroll]:
        return self.session.exec(self.for_student(student_id).order_by(models.StudentEnroll.id.desc())).first()

    def matching(self, program_id=None, session_id=None, semester_id=None, section_id=None,
                 active_only: bool = True) -> List[models.StudentEnroll]:
        stmt = self.filter_by(self.query(), program_id=program_id, session_id=session_id,
                              semester_id=semester_id, section_id=section_id)
        if active_only:
            stmt = stmt.where(models.StudentEnroll.status == Status.ACTIVE.value)
        return self.session.exec(stmt.order_by(models.StudentEnroll.id)).all()


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

class BookCategoryRepository(Repository):
    model = models.BookCategory
    search_fields = ('title', 'code', 'description')
    order_fields = ('title',)


class BookRepository(Repository):
    model = models.Book
    search_fields = ('title', 'author', 'isbn', 'accession_number', 'publisher')
    order_fields = ('title',)

    def available(self, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Book.quantity > 0, models.Book.status == Status.ACTIVE.value)

    def filter_by_availability(self, stmt, available: Optional[bool]):
        if available is None:
            return stmt
        if available:
            return self.available(stmt)
        return stmt.where(models.Book.quantity <= 0)


class LibraryMemberRepository(Repository):
    model = models.LibraryMember
    search_fields = ('library_id',)

    def for_owner(self, owner_kind: str, owner_id: int) -> Optional[models.LibraryMember]:
        return self.first_where(owner_kind=owner_kind, owner_id=owner_id)


class IssueReturnRepository(Repository):
    model = models.IssueReturn
    order_fields = ('id',)

    def overdue(self, on: date, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.IssueReturn.due_date < on,
                          models.IssueReturn.status == IssueStatus.ISSUED.value)

    def active_issue(self, book_id: int, member_id: int) -> Optional[models.IssueReturn]:
        return self.first_where(book_id=book_id, member_id=member_id, status=IssueStatus.ISSUED.value)

    def active_count_for_member(self, member_id: int) -> int:
        stmt = select(models.IssueReturn).where(models.IssueReturn.member_id == member_id,
                                                models.IssueReturn.status == IssueStatus.ISSUED.value)
        return self.count(stmt)

    def active_count_for_book(self, book_id: int) -> int:
        stmt = select(models.IssueReturn).where(models.IssueReturn.book_id == book_id,
                                                models.IssueReturn.status == IssueStatus.ISSUED.value)
        return self.count(stmt)


class BookRequestRepository(Repository):
    model = models.BookRequest
    search_fields = ('title', 'author', 'isbn', 'request_by')


class LibrarySettingRepository(Repository):
    model = models.LibrarySetting

    def active(self) -> Optional[models.LibrarySetting]:
        stmt = select(models.LibrarySetting).where(models.LibrarySetting.status == Status.ACTIVE.value)
        return self.session.exec(stmt.order_by(models.LibrarySetting.id.desc())).first()


# ---------------------------------------------------------------------------
# Hostel
# ---------------------------------------------------------------------------

class HostelRepository(Repository):
    model = models.Hostel
    search_fields = ('name', 'warden_name', 'address')
    order_fields = ('name',)


class HostelRoomTypeRepository(Repository):
    model = models.HostelRoomType
    search_fields = ('title',)
    order_fields = ('title',)


class HostelRoomRepository(Repository):
    model = models.HostelRoom
    search_fields = ('room_no',)
    order_fields = ('hostel_id', 'room_no')


class HostelMemberRepository(Repository):
    model = models.HostelMember

    def active_in_room(self, room_id: int) -> int:
        stmt = select(models.HostelMember).where(models.HostelMember.room_id == room_id,
                                                 models.HostelMember.status == Status.ACTIVE.value)
        return self.count(stmt)

    def active_for_owner(self, owner_kind: str, owner_id: int) -> Optional[models.HostelMember]:
        return self.first_where(owner_kind=owner_kind, owner_id=owner_id, status=Status.ACTIVE.value)


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

class FeesCategoryRepository(Repository):
    model = models.FeesCategory
    search_fields = ('title',)
    order_fields = ('title',)


class FeesDiscountRepository(Repository):
    model = models.FeesDiscount
    search_fields = ('title',)

    def for_category(self, category_id: int) -> List[models.FeesDiscount]:
        stmt = (select(models.FeesDiscount)
                .join(models.DiscountCategoryLink,
                      models.DiscountCategoryLink.fees_discount_id == models.FeesDiscount.id)
                .where(models.DiscountCategoryLink.fees_category_id == category_id,
                       models.FeesDiscount.status == True))  # noqa: E712
        return self.session.exec(stmt).all()


class FeesFineRepository(Repository):
    model = models.FeesFine
    order_fields = ('start_day',)

    def for_category(self, category_id: int) -> List[models.FeesFine]:
        stmt = (select(models.FeesFine)
                .join(models.FineCategoryLink, models.FineCategoryLink.fees_fine_id == models.FeesFine.id)
                .where(models.FineCategoryLink.fees_category_id == category_id,
                       models.FeesFine.status == True))  # noqa: E712
        return self.session.exec(stmt).all()


class FeesMasterRepository(Repository):
    model = models.FeesMaster


class FeeRepository(Repository):
    model = models.Fee
    order_fields = ('due_date', 'id')

    def overdue(self, on: date, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Fee.due_date < on, models.Fee.status != FeeStatus.PAID.value)

    def upcoming(self, start: date, end: date, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Fee.due_date >= start, models.Fee.due_date <= end,
                          models.Fee.status != FeeStatus.PAID.value)

    def paid(self, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Fee.status == FeeStatus.PAID.value)

    def unpaid(self, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Fee.status == FeeStatus.UNPAID.value)

    def for_enrolls(self, enroll_ids: Iterable[int], stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Fee.student_enroll_id.in_(list(enroll_ids)))

    def exists_for(self, enroll_id: int, category_id: int, due_date: date) -> bool:
        return self.exists(student_enroll_id=enroll_id, category_id=category_id, due_date=due_date)

    def totals(self) -> dict:
        stmt = select(func.coalesce(func.sum(models.Fee.fee_amount), 0),
                      func.coalesce(func.sum(models.Fee.paid_amount), 0),
                      func.coalesce(func.sum(models.Fee.fine_amount), 0),
                      func.coalesce(func.sum(models.Fee.discount_amount), 0))
        fee, paid, fine, discount = self.session.exec(stmt).one()
        return {'fee_amount': float(fee), 'paid_amount': float(paid),
                'fine_amount': float(fine), 'discount_amount': float(discount)}


class TransactionRepository(Repository):
    model = models.Transaction
    search_fields = ('transaction_no', 'reference', 'description')
    order_fields = ('id',)


# ---------------------------------------------------------------------------
# Notices / leave / records
# ---------------------------------------------------------------------------

class NoticeCategoryRepository(Repository):
    model = models.NoticeCategory
    search_fields = ('title',)
    order_fields = ('title',)


class NoticeRepository(Repository):
    model = models.Notice
    search_fields = ('notice_no', 'title', 'description')

    def ordered(self, stmt):
        return stmt.order_by(models.Notice.notice_date.desc(), models.Notice.id.desc())


class NoticeAudienceRepository(Repository):
    model = models.NoticeAudience


class LeaveTypeRepository(Repository):
    model = models.LeaveType
    search_fields = ('title', 'slug')
    order_fields = ('title',)


class LeaveRepository(Repository):
    model = models.Leave
    order_fields = ('from_date', 'id')

    def for_user(self, user_id: int, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Leave.user_id == user_id)

    def overlapping(self, start: date, end: date, stmt=None):
        stmt = stmt if stmt is not None else self.query()
        return stmt.where(models.Leave.from_date <= end, models.Leave.to_date >= start)


class StudentLeaveRepository(Repository):
    model = models.StudentLeave
    order_fields = ('start_date', 'id')


class NoteRepository(Repository):
    model = models.Note
    search_fields = ('title', 'content')


class DocumentRepository(Repository):
    model = models.Document
    search_fields = ('title',)


class DocumentAttachmentRepository(Repository):
    model = models.DocumentAttachment


class TransportRouteRepository(Repository):
    model = models.TransportRoute
    search_fields = ('title',)
    order_fields = ('title',)


class TransportMemberRepository(Repository):
    model = models.TransportMember
