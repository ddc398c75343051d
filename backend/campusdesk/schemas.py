"""Pydantic request schemas used by the API.

Schemas keep API input shapes stable and provide validation for the
route handlers and tests. Enum fields are validated against the enums
in `enums` and stored as their plain values (`use_enum_values`).

`*In` schemas are used for creation; `*Update` schemas make every field
optional and services apply only the fields a client actually sent
(`model_dump(exclude_unset=True)`).
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import (
    AmountType, ApplicationStatus, BloodGroup, BookRequestStatus, ClassType, DegreeType,
    Gender, MaritalStatus, OwnerKind, PayType, PaymentMethod, Religion, Status, SubjectType,
)


class Schema(BaseModel):
    model_config = ConfigDict(use_enum_values=True)


class RegisterIn(BaseModel):
    """Payload for user registration/login endpoints."""
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class LoginIn(BaseModel):
    username: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str
    token_type: str = 'bearer'


class OwnerIn(Schema):
    """Polymorphic owner reference posted by clients."""
    owner_kind: OwnerKind
    owner_id: int


def _check_range(start, end, label='end_date'):
    if start and end and end < start:
        raise ValueError(f'{label} must be on or after the start date')


# ---------------------------------------------------------------------------
# Academic
# ---------------------------------------------------------------------------

class FacultyIn(Schema):
    name: str = Field(min_length=1, max_length=255)
    code: Optional[str] = None
    description: Optional[str] = None
    dean_name: Optional[str] = None
    dean_email: Optional[str] = None
    dean_phone: Optional[str] = None
    status: Status = Status.ACTIVE


class FacultyUpdate(Schema):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    dean_name: Optional[str] = None
    dean_email: Optional[str] = None
    dean_phone: Optional[str] = None
    status: Optional[Status] = None


class ProgramIn(Schema):
    faculty_id: int
    title: str = Field(min_length=1, max_length=255)
    shortcode: Optional[str] = None
    degree_type: Optional[DegreeType] = None
    registration: bool = True
    status: Status = Status.ACTIVE
    batch_ids: List[int] = []
    semester_ids: List[int] = []
    session_ids: List[int] = []
    subject_ids: List[int] = []


class ProgramUpdate(Schema):
    faculty_id: Optional[int] = None
    title: Optional[str] = None
    shortcode: Optional[str] = None
    degree_type: Optional[DegreeType] = None
    registration: Optional[bool] = None
    status: Optional[Status] = None


class IdsIn(BaseModel):
    """A list of ids to attach to / detach from a parent row."""
    ids: List[int]


class BatchIn(Schema):
    program_id: Optional[int] = None
    name: str = Field(min_length=1)
    code: Optional[str] = None
    academic_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_students: Optional[int] = Field(default=None, ge=1)
    description: Optional[str] = None
    sort_order: int = 0
    status: Status = Status.ACTIVE

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.start_date, self.end_date)
        return self


class BatchUpdate(Schema):
    program_id: Optional[int] = None
    name: Optional[str] = None
    code: Optional[str] = None
    academic_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_students: Optional[int] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    status: Optional[Status] = None


class AcademicSessionIn(Schema):
    name: str = Field(min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None
    status: Status = Status.ACTIVE

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.start_date, self.end_date)
        return self


class AcademicSessionUpdate(Schema):
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[Status] = None


class SemesterIn(Schema):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    academic_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    description: Optional[str] = None
    status: Status = Status.ACTIVE

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.start_date, self.end_date)
        return self


class SemesterUpdate(Schema):
    name: Optional[str] = None
    code: Optional[str] = None
    academic_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = None
    status: Optional[Status] = None


class SectionIn(Schema):
    batch_id: Optional[int] = None
    name: str = Field(min_length=1)
    code: Optional[str] = None
    seat: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    sort_order: int = 0
    status: Status = Status.ACTIVE


class SectionUpdate(Schema):
    batch_id: Optional[int] = None
    name: Optional[str] = None
    code: Optional[str] = None
    seat: Optional[int] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    status: Optional[Status] = None


class SubjectIn(Schema):
    title: str = Field(min_length=1)
    code: str = Field(min_length=1)
    credit_hour: float = Field(default=0, ge=0)
    subject_type: SubjectType = SubjectType.COMPULSORY
    class_type: ClassType = ClassType.THEORY
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class SubjectUpdate(Schema):
    title: Optional[str] = None
    code: Optional[str] = None
    credit_hour: Optional[float] = None
    subject_type: Optional[SubjectType] = None
    class_type: Optional[ClassType] = None
    description: Optional[str] = None
    status: Optional[Status] = None


class StatusIn(Schema):
    status: Status


class StatusBulkIn(Schema):
    ids: List[int] = Field(min_length=1)
    status: Status


class AllocationIn(BaseModel):
    program_id: int
    semester_id: int
    section_id: int


# ---------------------------------------------------------------------------
# Admission / students
# ---------------------------------------------------------------------------

class PersonFields(Schema):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    father_occupation: Optional[str] = None
    mother_occupation: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    emergency_phone: Optional[str] = None
    gender: Optional[Gender] = None
    dob: Optional[date] = None
    religion: Optional[Religion] = None
    caste: Optional[str] = None
    mother_tongue: Optional[str] = None
    marital_status: Optional[MaritalStatus] = None
    blood_group: Optional[BloodGroup] = None
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


class ApplicationIn(PersonFields):
    first_name: str = Field(min_length=1)
    batch_id: int
    program_id: int
    apply_date: Optional[date] = None
    fee_amount: float = Field(default=0, ge=0)
    pay_status: bool = False
    payment_method: Optional[PaymentMethod] = None


class ApplicationUpdate(PersonFields):
    batch_id: Optional[int] = None
    program_id: Optional[int] = None
    fee_amount: Optional[float] = Field(default=None, ge=0)
    pay_status: Optional[bool] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[ApplicationStatus] = None


class BulkStatusIn(Schema):
    ids: List[int] = Field(min_length=1)
    status: ApplicationStatus


class ConvertIn(BaseModel):
    """Academic placement for a converted application."""
    session_id: int
    semester_id: int
    section_id: Optional[int] = None
    admission_date: Optional[date] = None


class StudentIn(PersonFields):
    first_name: str = Field(min_length=1)
    batch_id: int
    program_id: int
    registration_no: Optional[str] = None
    admission_date: Optional[date] = None
    password: Optional[str] = Field(default=None, min_length=6)
    login: bool = True
    status: Status = Status.ACTIVE


class StudentUpdate(PersonFields):
    batch_id: Optional[int] = None
    registration_no: Optional[str] = None
    admission_date: Optional[date] = None
    login: Optional[bool] = None


class EnrollIn(BaseModel):
    program_id: int
    session_id: int
    semester_id: int
    section_id: Optional[int] = None
    subject_ids: List[int] = []


class TransferIn(BaseModel):
    program_id: int
    batch_id: Optional[int] = None


class StatusTypeIn(Schema):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class OutsideUserIn(Schema):
    first_name: str = Field(min_length=1)
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    status: Status = Status.ACTIVE


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------

class BookCategoryIn(Schema):
    title: str = Field(min_length=1, max_length=255)
    code: Optional[str] = None
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class BookCategoryUpdate(Schema):
    title: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    status: Optional[Status] = None


class BookIn(Schema):
    book_category_id: Optional[int] = None
    title: str = Field(min_length=1)
    isbn: str = Field(min_length=1)
    accession_number: Optional[str] = None
    author: str = Field(min_length=1)
    publisher: Optional[str] = None
    edition: Optional[str] = None
    publication_year: Optional[int] = None
    language: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=0)
    shelf_location: Optional[str] = None
    shelf_column: Optional[str] = None
    shelf_row: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    status: Status = Status.ACTIVE


class BookUpdate(Schema):
    book_category_id: Optional[int] = None
    title: Optional[str] = None
    isbn: Optional[str] = None
    accession_number: Optional[str] = None
    author: Optional[str] = None
    publisher: Optional[str] = None
    edition: Optional[str] = None
    publication_year: Optional[int] = None
    language: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    shelf_location: Optional[str] = None
    shelf_column: Optional[str] = None
    shelf_row: Optional[str] = None
    description: Optional[str] = None
    note: Optional[str] = None
    status: Optional[Status] = None


class LibraryMemberIn(OwnerIn):
    library_id: Optional[str] = None


class IssueIn(BaseModel):
    book_id: int
    member_id: int
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    note: Optional[str] = None

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.issue_date, self.due_date, 'due_date')
        return self


class ReturnIn(BaseModel):
    book_id: int
    member_id: int
    return_date: Optional[date] = None
    note: Optional[str] = None


class BookRequestIn(Schema):
    book_category_id: Optional[int] = None
    title: str = Field(min_length=1)
    author: Optional[str] = None
    isbn: Optional[str] = None
    publisher: Optional[str] = None
    edition: Optional[str] = None
    request_by: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    note: Optional[str] = None


class BookRequestUpdate(Schema):
    status: Optional[BookRequestStatus] = None
    note: Optional[str] = None


class LibrarySettingIn(Schema):
    library_name: Optional[str] = None
    library_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    fine_per_day: Optional[float] = Field(default=None, ge=0)
    max_books_per_member: Optional[int] = Field(default=None, ge=1)
    max_borrow_days: Optional[int] = Field(default=None, ge=1)
    auto_approve_requests: Optional[bool] = None


# ---------------------------------------------------------------------------
# Hostel
# ---------------------------------------------------------------------------

class HostelIn(Schema):
    name: str = Field(min_length=1)
    type: Optional[str] = None
    capacity: int = Field(default=0, ge=0)
    warden_name: Optional[str] = None
    warden_contact: Optional[str] = None
    address: Optional[str] = None
    note: Optional[str] = None
    status: Status = Status.ACTIVE


class HostelRoomTypeIn(Schema):
    title: str = Field(min_length=1)
    fee: float = Field(default=0, ge=0)
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class HostelRoomIn(Schema):
    room_type_id: Optional[int] = None
    room_no: str = Field(min_length=1)
    capacity: int = Field(default=1, ge=1)
    rent: float = Field(default=0, ge=0)
    note: Optional[str] = None
    status: Status = Status.ACTIVE


class HostelMemberIn(OwnerIn):
    hostel_id: int
    room_id: int
    join_date: Optional[date] = None
    note: Optional[str] = None


class VacateIn(BaseModel):
    leave_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

class FeesCategoryIn(Schema):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class FeesDiscountIn(Schema):
    title: str = Field(min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    amount: float = Field(ge=0)
    type: AmountType = AmountType.FIXED
    status: bool = True
    category_ids: List[int] = []
    status_type_ids: List[int] = []

    @model_validator(mode='after')
    def _check(self):
        _check_range(self.start_date, self.end_date)
        if self.type == AmountType.PERCENTAGE.value and self.amount > 100:
            raise ValueError('percentage discount cannot exceed 100')
        return self


class FeesFineIn(Schema):
    start_day: int = Field(ge=1)
    end_day: int = Field(ge=1)
    amount: float = Field(ge=0)
    type: AmountType = AmountType.FIXED
    status: bool = True
    category_ids: List[int] = []

    @model_validator(mode='after')
    def _check(self):
        if self.end_day < self.start_day:
            raise ValueError('end_day must be >= start_day')
        return self


class FeesMasterIn(Schema):
    category_id: int
    faculty_id: Optional[int] = None
    program_id: Optional[int] = None
    session_id: Optional[int] = None
    semester_id: Optional[int] = None
    section_id: Optional[int] = None
    amount: float = Field(gt=0)
    type: AmountType = AmountType.FIXED
    assign_date: Optional[date] = None
    due_date: date


class FeeIn(Schema):
    student_enroll_id: int
    category_id: int
    fee_amount: float = Field(gt=0)
    assign_date: Optional[date] = None
    due_date: date
    note: Optional[str] = None


class FeeUpdate(Schema):
    fee_amount: Optional[float] = Field(default=None, gt=0)
    due_date: Optional[date] = None
    note: Optional[str] = None


class PayIn(Schema):
    amount: Optional[float] = Field(default=None, gt=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    pay_date: Optional[date] = None
    reference: Optional[str] = None
    note: Optional[str] = None


# ---------------------------------------------------------------------------
# Notices / leave / records
# ---------------------------------------------------------------------------

class NoticeCategoryIn(Schema):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class NoticeIn(Schema):
    category_id: Optional[int] = None
    faculty_id: Optional[int] = None
    program_id: Optional[int] = None
    session_id: Optional[int] = None
    semester_id: Optional[int] = None
    section_id: Optional[int] = None
    title: str = Field(min_length=1)
    description: Optional[str] = None
    notice_date: Optional[date] = None
    attach: Optional[str] = None
    status: Status = Status.INACTIVE
    audience: List[OwnerIn] = []


class NoticeUpdate(Schema):
    category_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    notice_date: Optional[date] = None
    attach: Optional[str] = None


class LeaveTypeIn(Schema):
    title: str = Field(min_length=1)
    limit: int = Field(default=0, ge=0)
    description: Optional[str] = None
    status: bool = True


class LeaveTypeUpdate(Schema):
    title: Optional[str] = Field(default=None, min_length=1)
    limit: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    status: Optional[bool] = None


class LeaveIn(Schema):
    type_id: int
    user_id: Optional[int] = None
    from_date: date
    to_date: date
    reason: Optional[str] = None
    attach: Optional[str] = None
    pay_type: PayType = PayType.PAID

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.from_date, self.to_date, 'to_date')
        return self


class ReviewIn(BaseModel):
    approved: bool
    note: Optional[str] = None


class StudentLeaveIn(BaseModel):
    student_id: int
    reason: Optional[str] = None
    start_date: date
    end_date: date

    @model_validator(mode='after')
    def _dates(self):
        _check_range(self.start_date, self.end_date)
        return self


class StudentLeaveReviewIn(Schema):
    status: ApplicationStatus


class NoteIn(OwnerIn):
    title: str = Field(min_length=1)
    content: Optional[str] = None


class NoteUpdate(Schema):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None


class DocumentIn(Schema):
    title: str = Field(min_length=1)
    file_path: str = Field(min_length=1)
    owners: List[OwnerIn] = []


class TransportRouteIn(Schema):
    title: str = Field(min_length=1)
    fare: float = Field(default=0, ge=0)
    description: Optional[str] = None
    status: Status = Status.ACTIVE


class TransportRouteUpdate(Schema):
    title: Optional[str] = Field(default=None, min_length=1)
    fare: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    status: Optional[Status] = None


class TransportMemberIn(OwnerIn):
    route_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
