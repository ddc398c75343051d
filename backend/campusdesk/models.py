"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.

Enum-valued columns are plain strings holding the enum value (see
`enums`); boolean "status" columns are kept where the record is simply
on/off (discounts, fines, leave types, leaves).

Polymorphic ownership (notes, transactions, library/hostel/transport
memberships, document and notice attachments) is stored as an
`owner_kind` + `owner_id` pair, see `polymorphic.OwnerRef`.
"""

from typing import Optional, List
from datetime import datetime, date, timezone
from sqlmodel import SQLModel, Field, Relationship

from .enums import (
    Status, ApplicationStatus, BookRequestStatus, IssueStatus, FeeStatus,
    AmountType, PayType, TransactionType, SubjectType, ClassType,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Link tables
# ---------------------------------------------------------------------------

class BatchProgramLink(SQLModel, table=True):
    batch_id: Optional[int] = Field(default=None, foreign_key='batch.id', primary_key=True)
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', primary_key=True)


class ProgramSemesterLink(SQLModel, table=True):
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', primary_key=True)
    semester_id: Optional[int] = Field(default=None, foreign_key='semester.id', primary_key=True)


class ProgramSessionLink(SQLModel, table=True):
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', primary_key=True)
    session_id: Optional[int] = Field(default=None, foreign_key='academicsession.id', primary_key=True)


class ProgramSubjectLink(SQLModel, table=True):
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', primary_key=True)
    subject_id: Optional[int] = Field(default=None, foreign_key='subject.id', primary_key=True)


class EnrollSubjectLink(SQLModel, table=True):
    student_enroll_id: Optional[int] = Field(default=None, foreign_key='studentenroll.id', primary_key=True)
    subject_id: Optional[int] = Field(default=None, foreign_key='subject.id', primary_key=True)


class StudentStatusTypeLink(SQLModel, table=True):
    student_id: Optional[int] = Field(default=None, foreign_key='student.id', primary_key=True)
    status_type_id: Optional[int] = Field(default=None, foreign_key='statustype.id', primary_key=True)


class DiscountCategoryLink(SQLModel, table=True):
    fees_discount_id: Optional[int] = Field(default=None, foreign_key='feesdiscount.id', primary_key=True)
    fees_category_id: Optional[int] = Field(default=None, foreign_key='feescategory.id', primary_key=True)


class DiscountStatusTypeLink(SQLModel, table=True):
    fees_discount_id: Optional[int] = Field(default=None, foreign_key='feesdiscount.id', primary_key=True)
    status_type_id: Optional[int] = Field(default=None, foreign_key='statustype.id', primary_key=True)


class FineCategoryLink(SQLModel, table=True):
    fees_fine_id: Optional[int] = Field(default=None, foreign_key='feesfine.id', primary_key=True)
    fees_category_id: Optional[int] = Field(default=None, foreign_key='feescategory.id', primary_key=True)


class FeesMasterEnrollLink(SQLModel, table=True):
    fees_master_id: Optional[int] = Field(default=None, foreign_key='feesmaster.id', primary_key=True)
    student_enroll_id: Optional[int] = Field(default=None, foreign_key='studentenroll.id', primary_key=True)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class User(SQLModel, table=True):
    """A staff account able to log in to the API.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None
    role: str = 'staff'
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)


class OutsideUser(SQLModel, table=True):
    """A person outside the institution (guest reader, hostel guest)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Academic structure
# ---------------------------------------------------------------------------

class Faculty(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    code: Optional[str] = Field(default=None, index=True)
    description: Optional[str] = None
    dean_name: Optional[str] = None
    dean_email: Optional[str] = None
    dean_phone: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    programs: List['Program'] = Relationship(back_populates='faculty')


class Program(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    faculty_id: Optional[int] = Field(default=None, foreign_key='faculty.id', index=True)
    title: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    shortcode: Optional[str] = Field(default=None, index=True)
    degree_type: Optional[str] = None
    registration: bool = True
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    faculty: Optional[Faculty] = Relationship(back_populates='programs')
    batches: List['Batch'] = Relationship(back_populates='programs', link_model=BatchProgramLink)
    semesters: List['Semester'] = Relationship(back_populates='programs', link_model=ProgramSemesterLink)
    sessions: List['AcademicSession'] = Relationship(back_populates='programs', link_model=ProgramSessionLink)
    subjects: List['Subject'] = Relationship(back_populates='programs', link_model=ProgramSubjectLink)


class Batch(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', index=True)
    name: str = Field(index=True)
    code: Optional[str] = None
    academic_year: Optional[int] = Field(default=None, index=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_students: Optional[int] = None
    description: Optional[str] = None
    sort_order: int = 0
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    programs: List[Program] = Relationship(back_populates='batches', link_model=BatchProgramLink)


class AcademicSession(SQLModel, table=True):
    """An academic year/session (e.g. 2025-2026)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    programs: List[Program] = Relationship(back_populates='sessions', link_model=ProgramSessionLink)


class Semester(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    code: Optional[str] = None
    academic_year: Optional[int] = Field(default=None, index=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    programs: List[Program] = Relationship(back_populates='semesters', link_model=ProgramSemesterLink)


class Section(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    batch_id: Optional[int] = Field(default=None, foreign_key='batch.id', index=True)
    name: str = Field(index=True)
    code: Optional[str] = None
    seat: Optional[int] = None
    description: Optional[str] = None
    sort_order: int = 0
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Subject(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    code: str = Field(index=True, unique=True)
    credit_hour: float = 0
    subject_type: str = SubjectType.COMPULSORY.value
    class_type: str = ClassType.THEORY.value
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    programs: List[Program] = Relationship(back_populates='subjects', link_model=ProgramSubjectLink)


class ProgramSemesterSection(SQLModel, table=True):
    """Allocation of a section to a program in a given semester."""
    id: Optional[int] = Field(default=None, primary_key=True)
    program_id: int = Field(foreign_key='program.id', index=True)
    semester_id: int = Field(foreign_key='semester.id', index=True)
    section_id: int = Field(foreign_key='section.id', index=True)
    program: Optional[Program] = Relationship()
    semester: Optional[Semester] = Relationship()
    section: Optional[Section] = Relationship()


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------

class PersonBase(SQLModel):
    """Personal, contact, address and prior-education fields.

    Shared by `Application` and `Student` so an approved application can
    be copied field by field into a new student record.
    """
    first_name: str
    last_name: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    father_occupation: Optional[str] = None
    mother_occupation: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None
    emergency_phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    religion: Optional[str] = None
    caste: Optional[str] = None
    mother_tongue: Optional[str] = None
    marital_status: Optional[str] = None
    blood_group: Optional[str] = None
    nationality: Optional[str] = None
    national_id: Optional[str] = None
    passport_no: Optional[str] = None
    country: Optional[str] = None
    present_province: Optional[str] = None
    present_district: Optional[str] = None
    present_village: Optional[str] = None
    present_address: Optional[str] = None
    permanent_province: Optional[str] = None
    permanent_district: Optional[str] = None
    permanent_village: Optional[str] = None
    permanent_address: Optional[str] = None
    school_name: Optional[str] = None
    school_exam_id: Optional[str] = None
    school_graduation_field: Optional[str] = None
    school_graduation_year: Optional[int] = None
    school_graduation_point: Optional[float] = None
    college_name: Optional[str] = None
    college_exam_id: Optional[str] = None
    college_graduation_field: Optional[str] = None
    college_graduation_year: Optional[int] = None
    college_graduation_point: Optional[float] = None
    photo: Optional[str] = None
    signature: Optional[str] = None


class Application(PersonBase, table=True):
    """An admission application submitted before a student exists."""
    id: Optional[int] = Field(default=None, primary_key=True)
    registration_no: str = Field(index=True, unique=True)
    batch_id: Optional[int] = Field(default=None, foreign_key='batch.id', index=True)
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', index=True)
    apply_date: date = Field(default_factory=date.today)
    fee_amount: float = 0
    pay_status: bool = False
    payment_method: Optional[str] = None
    status: str = Field(default=ApplicationStatus.PENDING.value, index=True)
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    batch: Optional[Batch] = Relationship()
    program: Optional[Program] = Relationship()


class StatusType(SQLModel, table=True):
    """A student circumstance (orphan, sibling, staff child...) used by discounts."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, unique=True)
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    students: List['Student'] = Relationship(back_populates='status_types', link_model=StudentStatusTypeLink)


class Student(PersonBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: str = Field(index=True, unique=True)
    registration_no: Optional[str] = Field(default=None, index=True)
    batch_id: Optional[int] = Field(default=None, foreign_key='batch.id', index=True)
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', index=True)
    admission_date: Optional[date] = None
    password_hash: Optional[str] = None
    login: bool = True
    is_transfer: bool = False
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    batch: Optional[Batch] = Relationship()
    program: Optional[Program] = Relationship()
    enrolls: List['StudentEnroll'] = Relationship(back_populates='student')
    status_types: List[StatusType] = Relationship(back_populates='students', link_model=StudentStatusTypeLink)
    leaves: List['StudentLeave'] = Relationship(back_populates='student')


class StudentEnroll(SQLModel, table=True):
    """One enrolment of a student in a program/session/semester/section."""
    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key='student.id', index=True)
    program_id: int = Field(foreign_key='program.id', index=True)
    session_id: int = Field(foreign_key='academicsession.id', index=True)
    semester_id: int = Field(foreign_key='semester.id', index=True)
    section_id: Optional[int] = Field(default=None, foreign_key='section.id', index=True)
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    student: Optional[Student] = Relationship(back_populates='enrolls')
    program: Optional[Program] = Relationship()
    session: Optional[AcademicSession] = Relationship()
    semester: Optional[Semester] = Relationship()
    section: Optional[Section] = Relationship()
    subjects: List[Subject] = Relationship(link_model=EnrollSubjectLink)
    fees: List['Fee'] = Relationship(back_populates='student_enroll')


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

class BookCategory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    code: Optional[str] = Field(default=None, index=True)
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    books: List['Book'] = Relationship(back_populates='category')


class Book(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    book_category_id: Optional[int] = Field(default=None, foreign_key='bookcategory.id', index=True)
    title: str = Field(index=True)
    isbn: str = Field(index=True, unique=True)
    accession_number: Optional[str] = Field(default=None, index=True)
    author: str = Field(index=True)
    publisher: Optional[str] = None
    edition: Optional[str] = None
    publication_year: Optional[int] = None
    language: Optional[str] = None
    price: Optional[float] = None
    quantity: int = 0
    shelf_location: Optional[str] = None
    shelf_column: Optional[str] = None
    shelf_row: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    category: Optional[BookCategory] = Relationship(back_populates='books')
    issues: List['IssueReturn'] = Relationship(back_populates='book')


class LibraryMember(SQLModel, table=True):
    """Library card held by a student, staff member or outside user."""
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    library_id: str = Field(index=True, unique=True)
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    issues: List['IssueReturn'] = Relationship(back_populates='member')


class IssueReturn(SQLModel, table=True):
    """A single book loan, open until returned or marked lost."""
    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key='book.id', index=True)
    member_id: int = Field(foreign_key='librarymember.id', index=True)
    member_type: str
    issue_date: datetime = Field(default_factory=utcnow)
    due_date: date
    return_date: Optional[datetime] = None
    fine_amount: Optional[float] = None
    status: str = Field(default=IssueStatus.ISSUED.value, index=True)
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    book: Optional[Book] = Relationship(back_populates='issues')
    member: Optional[LibraryMember] = Relationship(back_populates='issues')


class BookRequest(SQLModel, table=True):
    """A request to acquire a title the library does not hold."""
    id: Optional[int] = Field(default=None, primary_key=True)
    book_category_id: Optional[int] = Field(default=None, foreign_key='bookcategory.id', index=True)
    title: str = Field(index=True)
    author: Optional[str] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    edition: Optional[str] = None
    request_by: str
    email: Optional[str] = None
    phone: Optional[str] = None
    note: Optional[str] = None
    status: str = Field(default=BookRequestStatus.PENDING.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    category: Optional[BookCategory] = Relationship()


class LibrarySetting(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    library_name: str
    library_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    fine_per_day: float = 10
    max_books_per_member: int = 3
    max_borrow_days: int = 14
    auto_approve_requests: bool = False
    status: str = Field(default=Status.ACTIVE.value, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Hostel
# ---------------------------------------------------------------------------

class Hostel(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    type: Optional[str] = Field(default=None, index=True)
    capacity: int = 0
    warden_name: Optional[str] = None
    warden_contact: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    rooms: List['HostelRoom'] = Relationship(back_populates='hostel')


class HostelRoomType(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, unique=True)
    fee: float = 0
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)


class HostelRoom(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    hostel_id: int = Field(foreign_key='hostel.id', index=True)
    room_type_id: Optional[int] = Field(default=None, foreign_key='hostelroomtype.id', index=True)
    room_no: str = Field(index=True)
    capacity: int = 1
    rent: float = 0
    note: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    hostel: Optional[Hostel] = Relationship(back_populates='rooms')
    room_type: Optional[HostelRoomType] = Relationship()
    members: List['HostelMember'] = Relationship(back_populates='room')


class HostelMember(SQLModel, table=True):
    """Bed allocation for a student, staff member or outside user."""
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    hostel_id: int = Field(foreign_key='hostel.id', index=True)
    room_id: int = Field(foreign_key='hostelroom.id', index=True)
    join_date: date = Field(default_factory=date.today)
    leave_date: Optional[date] = None
    note: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    hostel: Optional[Hostel] = Relationship()
    room: Optional[HostelRoom] = Relationship(back_populates='members')


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

class FeesCategory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, unique=True)
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    discounts: List['FeesDiscount'] = Relationship(back_populates='categories', link_model=DiscountCategoryLink)
    fines: List['FeesFine'] = Relationship(back_populates='categories', link_model=FineCategoryLink)


class FeesDiscount(SQLModel, table=True):
    """A discount for students carrying any of the linked status types."""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: float = 0
    type: str = AmountType.FIXED.value
    status: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    categories: List[FeesCategory] = Relationship(back_populates='discounts', link_model=DiscountCategoryLink)
    status_types: List[StatusType] = Relationship(link_model=DiscountStatusTypeLink)


class FeesFine(SQLModel, table=True):
    """A late fine applying between `start_day` and `end_day` days past due."""
    id: Optional[int] = Field(default=None, primary_key=True)
    start_day: int
    end_day: int
    amount: float = 0
    type: str = AmountType.FIXED.value
    status: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    categories: List[FeesCategory] = Relationship(back_populates='fines', link_model=FineCategoryLink)


class FeesMaster(SQLModel, table=True):
    """A fee amount assigned to an academic target and its enrolments."""
    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key='feescategory.id', index=True)
    faculty_id: Optional[int] = Field(default=None, foreign_key='faculty.id')
    program_id: Optional[int] = Field(default=None, foreign_key='program.id')
    session_id: Optional[int] = Field(default=None, foreign_key='academicsession.id')
    semester_id: Optional[int] = Field(default=None, foreign_key='semester.id')
    section_id: Optional[int] = Field(default=None, foreign_key='section.id')
    amount: float
    type: str = AmountType.FIXED.value
    assign_date: date = Field(default_factory=date.today)
    due_date: date
    status: bool = True
    created_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    category: Optional[FeesCategory] = Relationship()
    student_enrolls: List[StudentEnroll] = Relationship(link_model=FeesMasterEnrollLink)


class Fee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    student_enroll_id: int = Field(foreign_key='studentenroll.id', index=True)
    category_id: int = Field(foreign_key='feescategory.id', index=True)
    fee_amount: float
    fine_amount: float = 0
    discount_amount: float = 0
    paid_amount: float = 0
    assign_date: date = Field(default_factory=date.today)
    due_date: date
    pay_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    note: Optional[str] = None
    status: str = Field(default=FeeStatus.UNPAID.value, index=True)
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    student_enroll: Optional[StudentEnroll] = Relationship(back_populates='fees')
    category: Optional[FeesCategory] = Relationship()


class Transaction(SQLModel, table=True):
    """A money movement recorded against any owner (student fee payments...)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    transaction_no: str = Field(index=True, unique=True)
    type: str = TransactionType.CREDIT.value
    amount: float
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Notices
# ---------------------------------------------------------------------------

class NoticeCategory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, unique=True)
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)


class Notice(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: Optional[int] = Field(default=None, foreign_key='noticecategory.id', index=True)
    faculty_id: Optional[int] = Field(default=None, foreign_key='faculty.id', index=True)
    program_id: Optional[int] = Field(default=None, foreign_key='program.id', index=True)
    session_id: Optional[int] = Field(default=None, foreign_key='academicsession.id')
    semester_id: Optional[int] = Field(default=None, foreign_key='semester.id')
    section_id: Optional[int] = Field(default=None, foreign_key='section.id')
    notice_no: str = Field(index=True, unique=True)
    title: str = Field(index=True)
    description: Optional[str] = None
    notice_date: date = Field(default_factory=date.today, index=True)
    attach: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    category: Optional[NoticeCategory] = Relationship()
    audience: List['NoticeAudience'] = Relationship(back_populates='notice')


class NoticeAudience(SQLModel, table=True):
    """Explicit recipient of a notice (noticeable)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    notice_id: int = Field(foreign_key='notice.id', index=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    notice: Optional[Notice] = Relationship(back_populates='audience')


# ---------------------------------------------------------------------------
# Leave
# ---------------------------------------------------------------------------

class LeaveType(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    limit: int = 0
    description: Optional[str] = None
    status: bool = True
    leaves: List['Leave'] = Relationship(back_populates='leave_type')


class Leave(SQLModel, table=True):
    """A staff leave application.

    `status` is True once approved; `pay_type` is a `PayType` code.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    type_id: int = Field(foreign_key='leavetype.id', index=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    review_by: Optional[int] = Field(default=None, foreign_key='user.id')
    apply_date: date = Field(default_factory=date.today)
    from_date: date = Field(index=True)
    to_date: date = Field(index=True)
    reason: Optional[str] = None
    attach: Optional[str] = None
    note: Optional[str] = None
    pay_type: int = PayType.PAID.value
    status: Optional[bool] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    leave_type: Optional[LeaveType] = Relationship(back_populates='leaves')
    user: Optional[User] = Relationship(sa_relationship_kwargs={'foreign_keys': '[Leave.user_id]'})
    reviewer: Optional[User] = Relationship(sa_relationship_kwargs={'foreign_keys': '[Leave.review_by]'})


class StudentLeave(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key='student.id', index=True)
    reason: Optional[str] = None
    start_date: date
    end_date: date
    status: str = Field(default=ApplicationStatus.PENDING.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    student: Optional[Student] = Relationship(back_populates='leaves')


# ---------------------------------------------------------------------------
# Records attached to any owner
# ---------------------------------------------------------------------------

class Note(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    title: str
    content: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_by: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)


class Document(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    file_path: str
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    attachments: List['DocumentAttachment'] = Relationship(back_populates='document')


class DocumentAttachment(SQLModel, table=True):
    """Links a document to an owner (docable)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    document_id: int = Field(foreign_key='document.id', index=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    document: Optional[Document] = Relationship(back_populates='attachments')


class TransportRoute(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True, unique=True)
    fare: float = 0
    description: Optional[str] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)


class TransportMember(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_kind: str = Field(index=True)
    owner_id: int = Field(index=True)
    route_id: int = Field(foreign_key='transportroute.id', index=True)
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    status: str = Field(default=Status.ACTIVE.value, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    route: Optional[TransportRoute] = Relationship()
