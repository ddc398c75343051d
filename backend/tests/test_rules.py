from datetime import date
from types import SimpleNamespace

from campusdesk import rules
from campusdesk.enums import PayType


def _fine(start, end, amount, type='fixed', status=True):
    return SimpleNamespace(start_day=start, end_day=end, amount=amount, type=type, status=status)


def _leave(start, end, status=True, pay_type=PayType.PAID):
    return SimpleNamespace(from_date=start, to_date=end, status=status, pay_type=int(pay_type))


def test_days_overdue_and_library_fine():
    assert rules.days_overdue(date(2025, 3, 1), date(2025, 3, 1)) == 0
    assert rules.days_overdue(date(2025, 3, 1), date(2025, 2, 20)) == 0
    assert rules.days_overdue(date(2025, 3, 1), date(2025, 3, 6)) == 5
    assert rules.library_fine(date(2025, 3, 1), date(2025, 3, 4), 10) == 30.0
    assert rules.library_fine(date(2025, 3, 1), date(2025, 3, 1), 10) == 0.0


def test_fine_amount_matches_day_ranges():
    fines = [_fine(1, 10, 50), _fine(11, 30, 10, type='percentage'), _fine(1, 30, 99, status=False)]
    assert rules.fine_amount(fines, 1000, 0) == 0.0
    assert rules.fine_amount(fines, 1000, 5) == 50.0
    assert rules.fine_amount(fines, 1000, 15) == 100.0
    assert rules.fine_amount(fines, 1000, 45) == 0.0


def test_discount_amount_is_capped_by_fee():
    assert rules.discount_amount(SimpleNamespace(amount=25, type='percentage'), 400) == 100.0
    assert rules.discount_amount(SimpleNamespace(amount=900, type='fixed'), 400) == 400.0


def test_discount_available_checks_status_window_and_types():
    orphan = SimpleNamespace(id=1)
    discount = SimpleNamespace(status=True, start_date=date(2025, 1, 1), end_date=date(2025, 6, 30),
                               status_types=[orphan])
    assert rules.discount_available(discount, [1], date(2025, 3, 1))
    assert not rules.discount_available(discount, [2], date(2025, 3, 1))
    assert not rules.discount_available(discount, [1], date(2025, 7, 1))
    open_ended = SimpleNamespace(status=True, start_date=None, end_date=None, status_types=[orphan])
    assert rules.discount_available(open_ended, [1], date(2030, 1, 1))
    discount.status = False
    assert not rules.discount_available(discount, [1], date(2025, 3, 1))


def test_leave_days_in_month_clips_to_month():
    leaves = [
        _leave(date(2025, 1, 30), date(2025, 2, 3)),                       # 3 days in February
        _leave(date(2025, 2, 10), date(2025, 2, 11)),                      # 2
        _leave(date(2025, 2, 12), date(2025, 2, 12), status=None),         # pending
        _leave(date(2025, 2, 20), date(2025, 2, 21), pay_type=PayType.UNPAID),
    ]
    assert rules.leave_days_in_month(leaves, 2025, 2, PayType.PAID) == 5
    assert rules.leave_days_in_month(leaves, 2025, 2, PayType.UNPAID) == 2
    assert rules.leave_days_in_month(leaves, 2025, 1, PayType.PAID) == 2
    assert rules.month_end(2024, 2) == date(2024, 2, 29)


def test_fee_status_and_payable():
    assert rules.fee_payable(1000, fine=50, discount=200) == 850.0
    assert rules.fee_payable(100, discount=500) == 0.0
    assert rules.fee_status_for(0, 850) == 'unpaid'
    assert rules.fee_status_for(400, 850) == 'partial'
    assert rules.fee_status_for(850, 850) == 'paid'
    assert rules.payment_percentage(425, 850) == 50.0
    assert rules.payment_percentage(0, 0) == 0.0


def test_next_sequence_code():
    assert rules.next_sequence_code('APP2025', None) == 'APP20250001'
    assert rules.next_sequence_code('APP2025', 'APP20250041') == 'APP20250042'
    assert rules.next_sequence_code('APP2025', 'APP20240999') == 'APP20250001'
    assert rules.next_sequence_code('LIB', 'LIB9999') == 'LIB10000'


def test_misc_helpers():
    assert rules.age_on(date(2000, 6, 15), date(2025, 6, 14)) == 24
    assert rules.age_on(date(2000, 6, 15), date(2025, 6, 15)) == 25
    assert rules.age_on(None, date(2025, 1, 1)) is None
    assert rules.full_name(' Ada ', None) == 'Ada'
    assert rules.default_due_date(date(2025, 1, 25), 14) == date(2025, 2, 8)
    assert rules.leave_days(date(2025, 1, 1), date(2025, 1, 3)) == 3
    assert rules.rate(1, 3) == 33.33
    assert rules.rate(5, 0) == 0.0
