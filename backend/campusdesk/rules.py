"""Fee, fine, discount, leave and numbering rules.

Everything here is a plain function of its arguments: callers pass the
relevant dates explicitly and no database access happens. The services
load the rows and feed them in; the tests exercise the rules directly.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .enums import AmountType, FeeStatus


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def days_overdue(due, on) -> int:
    """Whole days between `due` and `on`; 0 when not yet due."""
    due, on = _as_date(due), _as_date(on)
    if due is None or on is None or on <= due:
        return 0
    return (on - due).days


def library_fine(due, returned_on, fine_per_day: float) -> float:
    return round(days_overdue(due, returned_on) * float(fine_per_day), 2)


def _amount_of(amount: float, amount_type, base: float) -> float:
    if str(getattr(amount_type, 'value', amount_type)) == AmountType.PERCENTAGE.value:
        return float(base) * float(amount) / 100.0
    return float(amount)


def fine_amount(fines: Iterable, fee_amount: float, days_late: int) -> float:
    """Total of active fines whose day range contains `days_late`.

    Each fine needs `start_day`, `end_day`, `amount`, `type` and `status`
    attributes. Percentage fines are taken of `fee_amount`.
    """
    if days_late <= 0:
        return 0.0
    total = 0.0
    for fine in fines:
        if not fine.status:
            continue
        if fine.start_day <= days_late <= fine.end_day:
            total += _amount_of(fine.amount, fine.type, fee_amount)
    return round(total, 2)


def discount_amount(discount, fee_amount: float) -> float:
    """Discount value for `fee_amount`, never more than the fee itself."""
    value = _amount_of(discount.amount, discount.type, fee_amount)
    return round(max(0.0, min(value, float(fee_amount))), 2)


def discount_available(discount, student_status_type_ids: Iterable[int], on) -> bool:
    """True if `discount` applies to a student carrying the given status types.

    A discount applies when it is active, `on` falls inside its date
    window (either bound may be missing), and the student has at least
    one of the discount's status types.
    """
    if not discount.status:
        return False
    on = _as_date(on)
    if discount.start_date and on < discount.start_date:
        return False
    if discount.end_date and on > discount.end_date:
        return False
    wanted = {st.id for st in discount.status_types}
    return bool(wanted & set(student_status_type_ids))


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def leave_days_in_month(leaves: Iterable, year: int, month: int, pay_type: int) -> int:
    """Approved leave days of `pay_type` falling inside the given month.

    Both endpoints of a leave count. Leaves crossing a month boundary only
    contribute the days inside the month.
    """
    first = date(year, month, 1)
    last = month_end(year, month)
    total = 0
    for leave in leaves:
        if leave.status is not True or int(leave.pay_type) != int(pay_type):
            continue
        start = max(_as_date(leave.from_date), first)
        end = min(_as_date(leave.to_date), last)
        if end >= start:
            total += (end - start).days + 1
    return total


def leave_days(from_date, to_date) -> int:
    """Inclusive length of a leave."""
    start, end = _as_date(from_date), _as_date(to_date)
    if start is None or end is None or end < start:
        return 0
    return (end - start).days + 1


def fee_payable(fee_amount: float, fine: float = 0, discount: float = 0) -> float:
    return round(max(0.0, float(fee_amount) + float(fine or 0) - float(discount or 0)), 2)


def fee_status_for(paid: float, payable: float) -> str:
    paid = float(paid or 0)
    if paid <= 0:
        return FeeStatus.UNPAID.value
    if paid + 0.005 >= float(payable):
        return FeeStatus.PAID.value
    return FeeStatus.PARTIAL.value


def payment_percentage(paid: float, payable: float) -> float:
    if not payable:
        return 100.0 if paid else 0.0
    return round(min(100.0, float(paid) * 100.0 / float(payable)), 2)


def next_sequence_code(prefix: str, last: Optional[str]) -> str:
    """Next code in a `<prefix>NNNN` series given the last issued code.

    `last` may be None or a code from another series, in which case
    numbering restarts at 0001.
    """
    n = 0
    if last and last.startswith(prefix):
        tail = last[len(prefix):]
        if tail.isdigit():
            n = int(tail)
    return f'{prefix}{n + 1:04d}'


def age_on(dob, on) -> Optional[int]:
    dob, on = _as_date(dob), _as_date(on)
    if dob is None:
        return None
    years = on.year - dob.year
    if (on.month, on.day) < (dob.month, dob.day):
        years -= 1
    return years


def full_name(first: Optional[str], last: Optional[str]) -> str:
    return ' '.join(p.strip() for p in (first, last) if p and p.strip())


def default_due_date(issued_on, borrow_days: int) -> date:
    return _as_date(issued_on) + timedelta(days=int(borrow_days))


def rate(part: int, whole: int) -> float:
    """Percentage rounded to two decimals; 0 when `whole` is 0."""
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 2)
