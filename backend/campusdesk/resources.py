"""Response transformers turning table rows into JSON-ready dicts.

Each `*_resource` function returns the row's columns (dates formatted
as `YYYY-MM-DD`, timestamps as `YYYY-MM-DD HH:MM:SS`) plus computed
display fields. Related rows are nested only when their name is in the
`include` set, so list endpoints stay flat unless a client asks for more.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlmodel import Session

from . import models, rules
from .enums import (
    ApplicationStatus, BloodGroup, BookRequestStatus, ClassType, DegreeType, FeeStatus,
    Gender, IssueStatus, MaritalStatus, PayType, PaymentMethod, Religion, Status,
    SubjectType, TransactionType, AmountType, MemberType,
)
from .polymorphic import owner_summary

DATE_FMT = '%Y-%m-%d'
DATETIME_FMT = '%Y-%m-%d %H:%M:%S'


def fmt_date(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DATE_FMT)


def fmt_datetime(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FMT)
    return value.strftime(DATE_FMT)


def columns(row, exclude: Iterable[str] = ()) -> dict:
    """Plain column values of `row` with dates formatted."""
    skip = set(exclude)
    out = {}
    for key, value in row.model_dump().items():
        if key in skip:
            continue
        if isinstance(value, datetime):
            value = fmt_datetime(value)
        elif isinstance(value, date):
            value = fmt_date(value)
        out[key] = value
    return out


def _wants(include, name: str) -> bool:
    return bool(include) and name in include


def collection(fn, rows, **kwargs) -> List[dict]:
    return [fn(r, **kwargs) for r in rows]


def _status_text(row) -> str:
    return Status.label_for(row.status)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def user_resource(user: models.User, include=None) -> dict:
    data = columns(user, exclude=('password_hash',))
    data['full_name'] = rules.full_name(user.first_name, user.last_name) or user.username
    data['status_text'] = _status_text(user)
    return data


def outside_user_resource(person: models.OutsideUser, include=None) -> dict:
    data = columns(person)
    data['full_name'] = rules.full_name(person.first_name, person.last_name)
    data['status_text'] = _status_text(person)
    return data


# ---------------------------------------------------------------------------
# Academic
# ---------------------------------------------------------------------------

def faculty_resource(faculty: models.Faculty, include=None) -> dict:
    data = columns(faculty)
    data['status_text'] = _status_text(faculty)
    if _wants(include, 'programs'):
        data['programs'] = collection(program_resource, faculty.programs)
    return data


def program_resource(program: models.Program, include=None) -> dict:
    data = columns(program)
    data['status_text'] = _status_text(program)
    data['degree_type_text'] = DegreeType.label_for(program.degree_type)
    if program.degree_type in DegreeType.values():
        degree = DegreeType(program.degree_type)
        data['is_graduate_program'] = degree.is_graduate_program()
        data['typical_duration'] = degree.typical_duration()
    if _wants(include, 'faculty'):
        data['faculty'] = faculty_resource(program.faculty) if program.faculty else None
    if _wants(include, 'batches'):
        data['batches'] = collection(batch_resource, program.batches)
    if _wants(include, 'semesters'):
        data['semesters'] = collection(semester_resource, program.semesters)
    if _wants(include, 'sessions'):
        data['sessions'] = collection(session_resource, program.sessions)
    if _wants(include, 'subjects'):
        data['subjects'] = collection(subject_resource, program.subjects)
    return data


def batch_resource(batch: models.Batch, include=None) -> dict:
    data = columns(batch)
    data['status_text'] = _status_text(batch)
    if _wants(include, 'programs'):
        data['programs'] = collection(program_resource, batch.programs)
    return data


def session_resource(session: models.AcademicSession, include=None) -> dict:
    data = columns(session)
    data['status_text'] = _status_text(session)
    return data


def semester_resource(semester: models.Semester, include=None) -> dict:
    data = columns(semester)
    data['status_text'] = _status_text(semester)
    return data


def section_resource(section: models.Section, include=None) -> dict:
    data = columns(section)
    data['status_text'] = _status_text(section)
    return data


def subject_resource(subject: models.Subject, include=None) -> dict:
    data = columns(subject)
    data['status_text'] = _status_text(subject)
    data['subject_type_text'] = SubjectType.label_for(subject.subject_type)
    data['class_type_text'] = ClassType.label_for(subject.class_type)
    if subject.subject_type in SubjectType.values():
        data['is_required'] = SubjectType(subject.subject_type).is_required()
    if subject.class_type in ClassType.values():
        kind = ClassType(subject.class_type)
        data['includes_theory'] = kind.includes_theory()
        data['includes_practical'] = kind.includes_practical()
    return data


def allocation_resource(row: models.ProgramSemesterSection, include=None) -> dict:
    data = columns(row)
    data['program'] = row.program.title if row.program else None
    data['semester'] = row.semester.name if row.semester else None
    data['section'] = row.section.name if row.section else None
    return data


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------

def _person_fields(person, on: date) -> dict:
    return {
        'full_name': rules.full_name(person.first_name, person.last_name),
        'age': rules.age_on(person.dob, on),
        'gender_text': Gender.label_for(person.gender),
        'blood_group_text': BloodGroup.label_for(person.blood_group),
        'marital_status_text': MaritalStatus.label_for(person.marital_status),
        'religion_text': Religion.label_for(person.religion),
        'has_photo': bool(person.photo),
        'has_signature': bool(person.signature),
    }


def application_resource(app: models.Application, include=None, on: Optional[date] = None) -> dict:
    data = columns(app)
    data.update(_person_fields(app, on or date.today()))
    data['status_label'] = ApplicationStatus.label_for(app.status)
    data['payment_method_text'] = PaymentMethod.label_for(app.payment_method)
    data['pay_status_text'] = 'Paid' if app.pay_status else 'Unpaid'
    if _wants(include, 'batch'):
        data['batch'] = batch_resource(app.batch) if app.batch else None
    if _wants(include, 'program'):
        data['program'] = program_resource(app.program) if app.program else None
    return data


def student_resource(student: models.Student, include=None, on: Optional[date] = None) -> dict:
    data = columns(student, exclude=('password_hash',))
    data.update(_person_fields(student, on or date.today()))
    data['status_text'] = _status_text(student)
    if _wants(include, 'batch'):
        data['batch'] = batch_resource(student.batch) if student.batch else None
    if _wants(include, 'program'):
        data['program'] = program_resource(student.program) if student.program else None
    if _wants(include, 'enrolls'):
        data['enrolls'] = collection(enroll_resource, student.enrolls, include={'subjects'})
    if _wants(include, 'status_types'):
        data['status_types'] = collection(status_type_resource, student.status_types)
    if _wants(include, 'leaves'):
        data['leaves'] = collection(student_leave_resource, student.leaves)
    return data


def enroll_resource(enroll: models.StudentEnroll, include=None) -> dict:
    data = columns(enroll)
    data['status_text'] = _status_text(enroll)
    data['program'] = enroll.program.title if enroll.program else None
    data['session'] = enroll.session.name if enroll.session else None
    data['semester'] = enroll.semester.name if enroll.semester else None
    data['section'] = enroll.section.name if enroll.section else None
    if _wants(include, 'subjects'):
        data['subjects'] = collection(subject_resource, enroll.subjects)
    if _wants(include, 'student') and enroll.student:
        data['student'] = {
            'id': enroll.student.id,
            'student_id': enroll.student.student_id,
            'full_name': rules.full_name(enroll.student.first_name, enroll.student.last_name),
        }
    return data


def status_type_resource(row: models.StatusType, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

def book_category_resource(category: models.BookCategory, include=None) -> dict:
    data = columns(category)
    data['status_text'] = _status_text(category)
    if _wants(include, 'books'):
        data['books'] = collection(book_resource, category.books)
    return data


def book_resource(book: models.Book, include=None) -> dict:
    data = columns(book)
    data['status_text'] = _status_text(book)
    data['is_available'] = book.quantity > 0 and book.status == Status.ACTIVE.value
    if _wants(include, 'category'):
        data['category'] = book_category_resource(book.category) if book.category else None
    if _wants(include, 'issues'):
        data['issues'] = collection(issue_resource, book.issues)
    return data


def library_member_resource(member: models.LibraryMember, session: Optional[Session] = None,
                            include=None) -> dict:
    data = columns(member)
    data['status_text'] = _status_text(member)
    if session is not None:
        data['owner'] = owner_summary(session, member)
    return data


def issue_resource(issue: models.IssueReturn, include=None, on: Optional[date] = None) -> dict:
    on = on or date.today()
    data = columns(issue)
    data['status_text'] = IssueStatus.label_for(issue.status)
    data['member_type_text'] = MemberType.label_for(issue.member_type)
    open_issue = issue.status == IssueStatus.ISSUED.value
    data['is_overdue'] = open_issue and rules.days_overdue(issue.due_date, on) > 0
    data['days_overdue'] = rules.days_overdue(issue.due_date, on) if open_issue else 0
    if _wants(include, 'book') and issue.book:
        data['book'] = {
            'id': issue.book.id,
            'title': issue.book.title,
            'isbn': issue.book.isbn,
            'author': issue.book.author,
            'status': issue.book.status,
        }
    if _wants(include, 'member') and issue.member:
        data['member'] = columns(issue.member)
    return data


def book_request_resource(row: models.BookRequest, include=None) -> dict:
    data = columns(row)
    data['status_text'] = BookRequestStatus.label_for(row.status)
    if _wants(include, 'category'):
        data['category'] = book_category_resource(row.category) if row.category else None
    return data


def library_setting_resource(row: models.LibrarySetting, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


# ---------------------------------------------------------------------------
# Hostel
# ---------------------------------------------------------------------------

def hostel_resource(hostel: models.Hostel, include=None) -> dict:
    data = columns(hostel)
    data['status_text'] = _status_text(hostel)
    if _wants(include, 'rooms'):
        data['rooms'] = collection(room_resource, hostel.rooms)
    return data


def room_type_resource(row: models.HostelRoomType, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


def room_resource(room: models.HostelRoom, include=None) -> dict:
    data = columns(room)
    data['status_text'] = _status_text(room)
    occupied = sum(1 for m in room.members if m.status == Status.ACTIVE.value)
    data['occupied_beds'] = occupied
    data['available_beds'] = max(0, room.capacity - occupied)
    data['occupancy_rate'] = rules.rate(occupied, room.capacity)
    if _wants(include, 'hostel'):
        data['hostel'] = hostel_resource(room.hostel) if room.hostel else None
    if _wants(include, 'room_type'):
        data['room_type'] = room_type_resource(room.room_type) if room.room_type else None
    return data


def hostel_member_resource(member: models.HostelMember, session: Optional[Session] = None,
                           include=None) -> dict:
    data = columns(member)
    data['status_text'] = _status_text(member)
    data['hostel'] = member.hostel.name if member.hostel else None
    data['room_no'] = member.room.room_no if member.room else None
    if session is not None:
        data['owner'] = owner_summary(session, member)
    return data


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

def fees_category_resource(row: models.FeesCategory, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


def discount_resource(row: models.FeesDiscount, include=None) -> dict:
    data = columns(row)
    data['type_text'] = AmountType.label_for(row.type)
    data['status_text'] = 'Active' if row.status else 'Inactive'
    data['categories'] = [c.id for c in row.categories]
    data['status_types'] = [s.id for s in row.status_types]
    return data


def fine_resource(row: models.FeesFine, include=None) -> dict:
    data = columns(row)
    data['type_text'] = AmountType.label_for(row.type)
    data['status_text'] = 'Active' if row.status else 'Inactive'
    data['categories'] = [c.id for c in row.categories]
    return data


def fees_master_resource(row: models.FeesMaster, include=None) -> dict:
    data = columns(row)
    data['category'] = row.category.title if row.category else None
    data['type_text'] = AmountType.label_for(row.type)
    data['student_enrolls'] = [e.id for e in row.student_enrolls]
    return data


def fee_resource(fee: models.Fee, include=None, on: Optional[date] = None) -> dict:
    on = on or date.today()
    data = columns(fee)
    payable = rules.fee_payable(fee.fee_amount, fee.fine_amount, fee.discount_amount)
    overdue_days = rules.days_overdue(fee.due_date, on)
    data['status_text'] = FeeStatus.label_for(fee.status)
    data['payment_method_text'] = PaymentMethod.label_for(fee.payment_method)
    data['net_amount'] = payable
    data['remaining_amount'] = round(max(0.0, payable - float(fee.paid_amount or 0)), 2)
    data['is_overdue'] = overdue_days > 0 and fee.status != FeeStatus.PAID.value
    data['days_overdue'] = overdue_days
    data['payment_percentage'] = rules.payment_percentage(fee.paid_amount or 0, payable)
    if _wants(include, 'category'):
        data['category'] = fees_category_resource(fee.category) if fee.category else None
    if _wants(include, 'student_enroll') and fee.student_enroll:
        data['student_enroll'] = enroll_resource(fee.student_enroll, include={'student'})
    return data


def transaction_resource(row: models.Transaction, session: Optional[Session] = None,
                         include=None) -> dict:
    data = columns(row)
    data['type_text'] = TransactionType.label_for(row.type)
    data['payment_method_text'] = PaymentMethod.label_for(row.payment_method)
    if session is not None:
        data['owner'] = owner_summary(session, row)
    return data


# ---------------------------------------------------------------------------
# Notices
# ---------------------------------------------------------------------------

def notice_category_resource(row: models.NoticeCategory, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


def notice_resource(notice: models.Notice, session: Optional[Session] = None, include=None) -> dict:
    data = columns(notice)
    data['status_text'] = _status_text(notice)
    data['is_published'] = notice.status == Status.ACTIVE.value
    if _wants(include, 'category'):
        data['category'] = notice_category_resource(notice.category) if notice.category else None
    if _wants(include, 'audience') and session is not None:
        data['audience'] = [owner_summary(session, a) for a in notice.audience]
    return data


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------

def leave_type_resource(row: models.LeaveType, include=None) -> dict:
    data = columns(row)
    data['status_text'] = 'Active' if row.status else 'Inactive'
    return data


def leave_resource(leave: models.Leave, include=None) -> dict:
    data = columns(leave)
    data['leave_days'] = rules.leave_days(leave.from_date, leave.to_date)
    data['pay_type_text'] = PayType(leave.pay_type).label() if leave.pay_type in (1, 2) else str(leave.pay_type)
    if leave.status is None:
        data['status_text'] = 'Pending'
    else:
        data['status_text'] = 'Approved' if leave.status else 'Rejected'
    data['leave_type'] = leave.leave_type.title if leave.leave_type else None
    if _wants(include, 'user') and leave.user:
        data['user'] = user_resource(leave.user)
    return data


def student_leave_resource(row: models.StudentLeave, include=None) -> dict:
    data = columns(row)
    data['leave_days'] = rules.leave_days(row.start_date, row.end_date)
    data['status_text'] = ApplicationStatus.label_for(row.status)
    return data


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def note_resource(row: models.Note, session: Optional[Session] = None, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    if session is not None:
        data['owner'] = owner_summary(session, row)
    return data


def document_resource(row: models.Document, session: Optional[Session] = None, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    if session is not None:
        data['owners'] = [owner_summary(session, a) for a in row.attachments]
    return data


def transport_route_resource(row: models.TransportRoute, include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    return data


def transport_member_resource(row: models.TransportMember, session: Optional[Session] = None,
                              include=None) -> dict:
    data = columns(row)
    data['status_text'] = _status_text(row)
    data['route'] = row.route.title if row.route else None
    if session is not None:
        data['owner'] = owner_summary(session, row)
    return data
