"""CSV export of applications and students."""

import csv
import io
from typing import Iterable

from .. import models, rules
from ..enums import ApplicationStatus, Gender, Status
from ..resources import fmt_date

APPLICATION_COLUMNS = (
    'registration_no', 'full_name', 'email', 'phone', 'gender', 'dob', 'program', 'batch',
    'apply_date', 'fee_amount', 'pay_status', 'status',
)
STUDENT_COLUMNS = (
    'student_id', 'registration_no', 'full_name', 'email', 'phone', 'gender', 'dob', 'program',
    'batch', 'admission_date', 'status',
)


def _write(header, rows) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=header, lineterminator='\n')
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def applications_csv(applications: Iterable[models.Application]) -> str:
    rows = []
    for app in applications:
        rows.append({
            'registration_no': app.registration_no,
            'full_name': rules.full_name(app.first_name, app.last_name),
            'email': app.email,
            'phone': app.phone,
            'gender': Gender.label_for(app.gender) if app.gender else '',
            'dob': fmt_date(app.dob),
            'program': app.program.title if app.program else '',
            'batch': app.batch.name if app.batch else '',
            'apply_date': fmt_date(app.apply_date),
            'fee_amount': app.fee_amount,
            'pay_status': 'Paid' if app.pay_status else 'Unpaid',
            'status': ApplicationStatus.label_for(app.status),
        })
    return _write(APPLICATION_COLUMNS, rows)


def students_csv(students: Iterable[models.Student]) -> str:
    rows = []
    for student in students:
        rows.append({
            'student_id': student.student_id,
            'registration_no': student.registration_no,
            'full_name': rules.full_name(student.first_name, student.last_name),
            'email': student.email,
            'phone': student.phone,
            'gender': Gender.label_for(student.gender) if student.gender else '',
            'dob': fmt_date(student.dob),
            'program': student.program.title if student.program else '',
            'batch': student.batch.name if student.batch else '',
            'admission_date': fmt_date(student.admission_date),
            'status': Status.label_for(student.status),
        })
    return _write(STUDENT_COLUMNS, rows)
