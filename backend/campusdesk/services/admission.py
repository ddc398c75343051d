"""Admission applications and their conversion into students."""

import secrets
import string
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from .. import models, repositories, rules, schemas
from ..enums import ApplicationStatus, Status
from ..errors import BusinessRuleError
from .auth import hash_password
from .base import BaseService, log_event, validated

PERSON_FIELDS = tuple(models.PersonBase.model_fields)
PASSWORD_ALPHABET = string.ascii_letters + string.digits


def random_password(length: int = 8) -> str:
    return ''.join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class AdmissionService(BaseService):
    """Application lifecycle: apply, review, convert to student."""

    def __init__(self, session: Session):
        super().__init__(session)
        self.apps = repositories.ApplicationRepository(session)
        self.students = repositories.StudentRepository(session)
        self.batches = repositories.BatchRepository(session)
        self.programs = repositories.ProgramRepository(session)
        self.sessions = repositories.AcademicSessionRepository(session)
        self.semesters = repositories.SemesterRepository(session)
        self.sections = repositories.SectionRepository(session)
        self.enrolls = repositories.StudentEnrollRepository(session)

    def list(self, status=None, search=None, batch_id=None, program_id=None, pay_status: Optional[bool] = None,
             start_date: Optional[date] = None, end_date: Optional[date] = None, page: int = 1, per_page: int = 15):
        stmt = self.apps.listing(status=status, search=search, batch_id=batch_id, program_id=program_id,
                                 pay_status=pay_status)
        stmt = self.apps.apply_date_between(stmt, start_date, end_date)
        return self.apps.paginate(stmt, page, per_page)

    def get(self, pk: int) -> models.Application:
        return self._require(self.apps, pk, 'Application')

    def _validate_relationships(self, data: dict) -> None:
        if 'batch_id' in data and data['batch_id'] is not None:
            batch = self.batches.get(data['batch_id'])
            if batch is None or batch.status != Status.ACTIVE.value:
                raise BusinessRuleError('Invalid or inactive batch selected')
        if 'program_id' in data and data['program_id'] is not None:
            program = self.programs.get(data['program_id'])
            if program is None or program.status != Status.ACTIVE.value:
                raise BusinessRuleError('Invalid or inactive program selected')

    def next_registration_no(self, on: Optional[date] = None) -> str:
        prefix = f'APP{(on or date.today()).year}'
        return rules.next_sequence_code(prefix, self.apps.last_code('registration_no', prefix))

    def _check_new(self, data: dict) -> None:
        self._validate_relationships(data)
        if not self.programs.get(data['program_id']).registration:
            raise BusinessRuleError('Registration is closed for this program')

    def create(self, data: dict, user_id: Optional[int] = None) -> models.Application:
        self._check_new(data)
        data = dict(data)
        data['apply_date'] = data.get('apply_date') or date.today()
        app = models.Application(**data, registration_no=self.next_registration_no(data['apply_date']),
                                 created_by=user_id, status=ApplicationStatus.PENDING.value)
        app = self.apps.save(app)
        log_event("application_created", application_id=app.id, registration_no=app.registration_no)
        return app

    # -- import --------------------------------------------------------

    def resolve_placement(self, row: dict) -> dict:
        """Swap the `batch`/`program` names of an imported row for ids.

        Programs match on title or shortcode, batches on name. Explicit
        `batch_id`/`program_id` columns win over names.
        """
        row = dict(row)
        batch, program = row.pop('batch', None), row.pop('program', None)
        if program and not row.get('program_id'):
            found = self.programs.first_where(title=program) or self.programs.first_where(shortcode=program)
            if found is None:
                raise BusinessRuleError(f'unknown program: {program}')
            row['program_id'] = found.id
        if batch and not row.get('batch_id'):
            found = self.batches.first_where(name=batch)
            if found is None:
                raise BusinessRuleError(f'unknown batch: {batch}')
            row['batch_id'] = found.id
        return row

    def import_applications(self, rows: Iterable[dict], dry_run: bool = False,
                            user_id: Optional[int] = None) -> dict:
        """Create applications from parsed rows; duplicates (by email) are skipped.

        Every row passes the same checks as a single application. Rows
        that fail are reported in `errors` by index and the rest are
        still imported.
        """
        created, skipped, errors = 0, 0, []
        seen = set()
        for idx, row in enumerate(rows):
            if not row.get('email'):
                errors.append({'index': idx, 'error': 'missing email'})
                continue
            if row['email'] in seen or self.apps.exists(email=row['email']):
                skipped += 1
                continue
            try:
                data = validated(schemas.ApplicationIn, self.resolve_placement(row))
                if dry_run:
                    self._check_new(data)
                else:
                    self.create(data, user_id=user_id)
            except BusinessRuleError as e:
                errors.append({'index': idx, 'error': str(e)})
                continue
            seen.add(row['email'])
            created += 1
        log_event("applications_imported", created=created, skipped=skipped, errors=len(errors), dry_run=dry_run)
        return {'created': created, 'skipped': skipped, 'errors': errors}

    def update(self, pk: int, data: dict, user_id: Optional[int] = None) -> models.Application:
        app = self.get(pk)
        if app.status == ApplicationStatus.ADMITTED.value:
            raise BusinessRuleError('Cannot update an admitted application')
        self._validate_relationships(data)
        app = self.apps.save(self._apply(app, {**data, 'updated_by': user_id}))
        log_event("application_updated", application_id=app.id, fields=sorted(data))
        return app

    def delete(self, pk: int) -> None:
        app = self.get(pk)
        if app.status in (ApplicationStatus.APPROVED.value, ApplicationStatus.ADMITTED.value):
            raise BusinessRuleError('Cannot delete approved application')
        self.apps.delete(app)
        log_event("application_deleted", application_id=pk)

    def _transition(self, pk: int, target: ApplicationStatus, user_id: Optional[int]) -> models.Application:
        app = self.get(pk)
        if app.status == target.value:
            raise BusinessRuleError(f'Application is already {target.value}')
        if app.status == ApplicationStatus.ADMITTED.value:
            raise BusinessRuleError('Application has already been admitted')
        app.status = target.value
        app = self.apps.save(self._apply(app, {'updated_by': user_id}))
        log_event("application_status", application_id=app.id, status=app.status)
        return app

    def approve(self, pk: int, user_id: Optional[int] = None) -> models.Application:
        return self._transition(pk, ApplicationStatus.APPROVED, user_id)

    def reject(self, pk: int, user_id: Optional[int] = None) -> models.Application:
        return self._transition(pk, ApplicationStatus.REJECTED, user_id)

    def bulk_update_status(self, ids: List[int], status) -> int:
        """Set `status` on every listed application that is not admitted yet."""
        value = getattr(status, 'value', status)
        if value == ApplicationStatus.ADMITTED.value:
            raise BusinessRuleError('Use conversion to admit applications')
        rows = self.session.exec(select(models.Application).where(models.Application.id.in_(ids))).all()
        changed = 0
        for app in rows:
            if app.status == ApplicationStatus.ADMITTED.value:
                continue
            app.status = value
            self.session.add(app)
            changed += 1
        self.session.commit()
        log_event("application_bulk_status", count=changed, status=value)
        return changed

    def statistics(self, on: Optional[date] = None) -> dict:
        on = on or date.today()
        by_status = self.apps.count_by_status()
        total = sum(by_status.values())
        approved = by_status.get(ApplicationStatus.APPROVED.value, 0)
        paid = self.apps.count_paid(True)
        month_start = on.replace(day=1)
        this_month = self.apps.count(select(models.Application).where(
            models.Application.apply_date >= month_start, models.Application.apply_date <= on))
        return {
            'total': total,
            'pending': by_status.get(ApplicationStatus.PENDING.value, 0),
            'in_progress': by_status.get(ApplicationStatus.IN_PROGRESS.value, 0),
            'approved': approved,
            'rejected': by_status.get(ApplicationStatus.REJECTED.value, 0),
            'admitted': by_status.get(ApplicationStatus.ADMITTED.value, 0),
            'paid': paid,
            'unpaid': total - paid,
            'this_month': this_month,
            'approval_rate': rules.rate(approved, total),
            'payment_rate': rules.rate(paid, total),
        }

    def ready_for_admission(self, page: int = 1, per_page: int = 15):
        stmt = self.apps.ordered(self.apps.filter_by_status(self.apps.query(), ApplicationStatus.APPROVED))
        return self.apps.paginate(stmt, page, per_page)

    # -- conversion ----------------------------------------------------

    def next_student_id(self, program: Optional[models.Program], on: Optional[date] = None) -> str:
        code = (program.shortcode if program and program.shortcode else 'STD').upper()
        prefix = f'{code}{(on or date.today()).year}'
        return rules.next_sequence_code(prefix, self.students.last_code('student_id', prefix))

    def convert(self, pk: int, session_id: int, semester_id: int, section_id: Optional[int] = None,
                admission_date: Optional[date] = None, user_id: Optional[int] = None
                ) -> Tuple[models.Student, str]:
        """Create a student and first enrolment from an approved application.

        Returns the student and the generated plain password, which is
        not stored and cannot be retrieved again.
        """
        app = self.get(pk)
        if app.status != ApplicationStatus.APPROVED.value:
            raise BusinessRuleError('Application must be approved before converting to student')
        if app.email and self.students.exists(email=app.email):
            raise BusinessRuleError('Student already exists for this application')
        self._require(self.sessions, session_id, 'Academic session')
        self._require(self.semesters, semester_id, 'Semester')
        if section_id is not None:
            self._require(self.sections, section_id, 'Section')

        admission_date = admission_date or date.today()
        password = random_password()
        student = models.Student(
            **{f: getattr(app, f) for f in PERSON_FIELDS},
            student_id=self.next_student_id(app.program, admission_date),
            registration_no=app.registration_no,
            batch_id=app.batch_id,
            program_id=app.program_id,
            admission_date=admission_date,
            password_hash=hash_password(password),
            login=True,
            status=Status.ACTIVE.value,
            created_by=user_id,
        )
        self.session.add(student)
        self.session.flush()
        enroll = models.StudentEnroll(student_id=student.id, program_id=app.program_id, session_id=session_id,
                                      semester_id=semester_id, section_id=section_id,
                                      status=Status.ACTIVE.value)
        self.session.add(enroll)
        app.status = ApplicationStatus.ADMITTED.value
        self._apply(app, {'updated_by': user_id})
        self.session.add(app)
        self.session.commit()
        self.session.refresh(student)
        log_event("application_converted", application_id=app.id, student_id=student.student_id)
        return student, password
