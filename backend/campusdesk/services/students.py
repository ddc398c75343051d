"""Student records, enrolments, status types and outside users."""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from .. import models, repositories, schemas
from ..enums import OwnerKind, Status
from ..errors import BusinessRuleError, NotFoundError
from ..polymorphic import OwnerRef, owned_by
from .admission import AdmissionService
from .auth import hash_password
from .base import BaseService, log_event, validated


class StudentService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.students = repositories.StudentRepository(session)
        self.enrolls = repositories.StudentEnrollRepository(session)
        self.programs = repositories.ProgramRepository(session)
        self.batches = repositories.BatchRepository(session)
        self.sessions = repositories.AcademicSessionRepository(session)
        self.semesters = repositories.SemesterRepository(session)
        self.sections = repositories.SectionRepository(session)
        self.subjects = repositories.SubjectRepository(session)
        self.status_types = repositories.StatusTypeRepository(session)
        self.outside_users = repositories.OutsideUserRepository(session)

    def list(self, status=None, search=None, batch_id=None, program_id=None, page: int = 1, per_page: int = 15):
        stmt = self.students.listing(status=status, search=search, batch_id=batch_id, program_id=program_id)
        return self.students.paginate(stmt, page, per_page)

    def get(self, pk: int) -> models.Student:
        return self._require(self.students, pk, 'Student')

    def create(self, data: dict, user_id: Optional[int] = None) -> models.Student:
        """Register a student directly, without an application."""
        data = dict(data)
        program = self._require(self.programs, data['program_id'], 'Program')
        self._require(self.batches, data['batch_id'], 'Batch')
        if data.get('email') and self.students.exists(email=data['email']):
            raise BusinessRuleError('A student with this email already exists')
        password = data.pop('password', None)
        admission_date = data.get('admission_date') or date.today()
        data['admission_date'] = admission_date
        student_id = AdmissionService(self.session).next_student_id(program, admission_date)
        student = models.Student(**data, student_id=student_id, created_by=user_id,
                                 password_hash=hash_password(password) if password else None)
        student = self.students.save(student)
        log_event("student_created", student_id=student.student_id, id=student.id)
        return student

    def import_students(self, rows: Iterable[dict], dry_run: bool = False, user_id: Optional[int] = None) -> dict:
        """Register students from parsed rows; duplicates (by email) are skipped.

        Rows name their `batch` and `program` (or give the ids) and get
        a generated student id. Failing rows are reported in `errors`.
        """
        admissions = AdmissionService(self.session)
        created, skipped, errors = 0, 0, []
        seen = set()
        for idx, row in enumerate(rows):
            if not row.get('email'):
                errors.append({'index': idx, 'error': 'missing email'})
                continue
            if row['email'] in seen or self.students.exists(email=row['email']):
                skipped += 1
                continue
            try:
                data = validated(schemas.StudentIn, admissions.resolve_placement(row))
                if dry_run:
                    self._require(self.programs, data['program_id'], 'Program')
                    self._require(self.batches, data['batch_id'], 'Batch')
                else:
                    self.create(data, user_id=user_id)
            except (BusinessRuleError, NotFoundError) as e:
                errors.append({'index': idx, 'error': str(e)})
                continue
            seen.add(row['email'])
            created += 1
        log_event("students_imported", created=created, skipped=skipped, errors=len(errors), dry_run=dry_run)
        return {'created': created, 'skipped': skipped, 'errors': errors}

    def update(self, pk: int, data: dict, user_id: Optional[int] = None) -> models.Student:
        student = self.get(pk)
        if data.get('email') and data['email'] != student.email and self.students.exists(email=data['email']):
            raise BusinessRuleError('A student with this email already exists')
        if data.get('batch_id'):
            self._require(self.batches, data['batch_id'], 'Batch')
        student = self.students.save(self._apply(student, {**data, 'updated_by': user_id}))
        log_event("student_updated", id=student.id, fields=sorted(data))
        return student

    def delete(self, pk: int) -> None:
        student = self.get(pk)
        if student.status == Status.ACTIVE.value:
            raise BusinessRuleError('Cannot delete active student. Please deactivate first.')
        attached = owned_by(self.session, OwnerRef(OwnerKind.STUDENT, student.id))
        if any(attached.values()):
            raise BusinessRuleError('Cannot delete student with attached records.')
        for enroll in student.enrolls:
            self.session.delete(enroll)
        self.students.delete(student)
        log_event("student_deleted", id=pk)

    def set_status(self, pk: int, status: Status) -> models.Student:
        student = self.get(pk)
        student.status = status.value
        student = self.students.save(self._apply(student, {}))
        log_event("student_status", id=student.id, status=student.status)
        return student

    def activate(self, pk: int) -> models.Student:
        return self.set_status(pk, Status.ACTIVE)

    def deactivate(self, pk: int) -> models.Student:
        return self.set_status(pk, Status.INACTIVE)

    # -- enrolment -----------------------------------------------------

    def _require_active(self, repo, pk: int, label: str):
        row = self._require(repo, pk, label)
        if row.status != Status.ACTIVE.value:
            raise BusinessRuleError(f'Invalid or inactive {label.lower()} selected')
        return row

    def enroll(self, pk: int, program_id: int, session_id: int, semester_id: int,
               section_id: Optional[int] = None, subject_ids: Optional[List[int]] = None) -> models.StudentEnroll:
        """Enrol a student, closing their previous active enrolment."""
        student = self.get(pk)
        self._require_active(self.programs, program_id, 'Program')
        self._require_active(self.sessions, session_id, 'Academic session')
        self._require_active(self.semesters, semester_id, 'Semester')
        if section_id is not None:
            self._require_active(self.sections, section_id, 'Section')
        duplicate = self.enrolls.first_where(student_id=student.id, program_id=program_id, session_id=session_id,
                                             semester_id=semester_id, status=Status.ACTIVE.value)
        if duplicate:
            raise BusinessRuleError('Student is already enrolled in this program/session/semester')
        previous = self.enrolls.current(student.id)
        if previous is not None:
            previous.status = Status.INACTIVE.value
            self.session.add(previous)
        enroll = models.StudentEnroll(student_id=student.id, program_id=program_id, session_id=session_id,
                                      semester_id=semester_id, section_id=section_id,
                                      status=Status.ACTIVE.value)
        enroll.subjects = self._link_all(self.subjects, subject_ids, 'Subject')
        enroll = self.enrolls.save(enroll)
        log_event("student_enrolled", student_id=student.id, enroll_id=enroll.id,
                  previous_enroll_id=previous.id if previous else None)
        return enroll

    def enroll_at(self, pk: int, which: str = 'current') -> Optional[models.StudentEnroll]:
        """The `current` (latest active), `first` or `last` enrolment of a student."""
        self.get(pk)
        if which == 'first':
            return self.enrolls.first_enroll(pk)
        if which == 'last':
            return self.enrolls.last_enroll(pk)
        return self.enrolls.current(pk)

    def enroll_history(self, pk: int) -> List[models.StudentEnroll]:
        self.get(pk)
        return self.enrolls.all(self.enrolls.for_student(pk).order_by(models.StudentEnroll.id))

    def transfer_program(self, pk: int, program_id: int, batch_id: Optional[int] = None) -> models.Student:
        student = self.get(pk)
        if student.program_id == program_id:
            raise BusinessRuleError('Student is already in this program')
        self._require_active(self.programs, program_id, 'Program')
        changes = {'program_id': program_id, 'is_transfer': True}
        if batch_id is not None:
            self._require_active(self.batches, batch_id, 'Batch')
            changes['batch_id'] = batch_id
        old_program = student.program_id
        student = self.students.save(self._apply(student, changes))
        log_event("student_transferred", id=student.id, from_program=old_program, to_program=program_id)
        return student

    def set_status_types(self, pk: int, status_type_ids: List[int]) -> models.Student:
        student = self.get(pk)
        student.status_types = self._link_all(self.status_types, status_type_ids, 'Status type')
        student = self.students.save(student)
        log_event("student_status_types", id=student.id, status_type_ids=list(status_type_ids))
        return student

    def statistics(self) -> dict:
        by_status = self.students.count_by_status()
        per_program = dict(self.session.exec(
            select(models.Program.title, func.count(models.Student.id))
            .join(models.Student, models.Student.program_id == models.Program.id)
            .group_by(models.Program.title)).all())
        return {
            'total': sum(by_status.values()),
            'active': by_status.get(Status.ACTIVE.value, 0),
            'inactive': by_status.get(Status.INACTIVE.value, 0),
            'transferred': self.students.count(select(models.Student).where(models.Student.is_transfer == True)),  # noqa: E712
            'by_program': per_program,
        }

    # -- status types / outside users ----------------------------------

    def list_status_types(self) -> List[models.StatusType]:
        return self.status_types.all()

    def create_status_type(self, data: dict) -> models.StatusType:
        if self.status_types.exists(title=data['title']):
            raise BusinessRuleError('Status type already exists')
        return self.status_types.save(models.StatusType(**data))

    def list_outside_users(self, status=None, search=None, page: int = 1, per_page: int = 15):
        return self.outside_users.paginate(self.outside_users.listing(status=status, search=search), page, per_page)

    def create_outside_user(self, data: dict) -> models.OutsideUser:
        person = self.outside_users.save(models.OutsideUser(**data))
        log_event("outside_user_created", id=person.id)
        return person
