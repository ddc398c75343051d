"""Fee categories, discounts, fines, fee masters, fees and payments."""

from datetime import date, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from .. import models, repositories, rules
from ..enums import FeeStatus, OwnerKind, TransactionType
from ..errors import BusinessRuleError
from ..polymorphic import OwnerRef
from .base import BaseService, as_datetime, log_event, utcnow


class FeeService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.categories = repositories.FeesCategoryRepository(session)
        self.discounts = repositories.FeesDiscountRepository(session)
        self.fines = repositories.FeesFineRepository(session)
        self.masters = repositories.FeesMasterRepository(session)
        self.fees = repositories.FeeRepository(session)
        self.transactions = repositories.TransactionRepository(session)
        self.enrolls = repositories.StudentEnrollRepository(session)
        self.status_types = repositories.StatusTypeRepository(session)
        self.programs = repositories.ProgramRepository(session)

    # -- categories / discounts / fines ----------------------------------

    def list_categories(self, status=None, search=None) -> List[models.FeesCategory]:
        return self.categories.all(self.categories.listing(status=status, search=search))

    def create_category(self, data: dict) -> models.FeesCategory:
        if self.categories.exists(title=data['title']):
            raise BusinessRuleError('Fees category already exists')
        category = self.categories.save(models.FeesCategory(**data))
        log_event("fees_category_created", id=category.id)
        return category

    def update_category(self, pk: int, data: dict) -> models.FeesCategory:
        category = self._require(self.categories, pk, 'Fees category')
        return self.categories.save(self._apply(category, data))

    def list_discounts(self, status: Optional[bool] = None, search=None) -> List[models.FeesDiscount]:
        return self.discounts.all(self.discounts.listing(status=status, search=search))

    def create_discount(self, data: dict) -> models.FeesDiscount:
        data = dict(data)
        category_ids = data.pop('category_ids', [])
        status_type_ids = data.pop('status_type_ids', [])
        discount = models.FeesDiscount(**data)
        discount.categories = self._link_all(self.categories, category_ids, 'Fees category')
        discount.status_types = self._link_all(self.status_types, status_type_ids, 'Status type')
        discount = self.discounts.save(discount)
        log_event("fees_discount_created", id=discount.id, type=discount.type, amount=discount.amount)
        return discount

    def set_discount_status(self, pk: int, active: bool) -> models.FeesDiscount:
        discount = self._require(self.discounts, pk, 'Fees discount')
        discount.status = active
        return self.discounts.save(discount)

    def list_fines(self, status: Optional[bool] = None) -> List[models.FeesFine]:
        return self.fines.all(self.fines.listing(status=status))

    def create_fine(self, data: dict) -> models.FeesFine:
        data = dict(data)
        category_ids = data.pop('category_ids', [])
        fine = models.FeesFine(**data)
        fine.categories = self._link_all(self.categories, category_ids, 'Fees category')
        fine = self.fines.save(fine)
        log_event("fees_fine_created", id=fine.id, start_day=fine.start_day, end_day=fine.end_day)
        return fine

    def set_fine_status(self, pk: int, active: bool) -> models.FeesFine:
        fine = self._require(self.fines, pk, 'Fees fine')
        fine.status = active
        return self.fines.save(fine)

    # -- fee masters -----------------------------------------------------

    def _target_enrolls(self, master: models.FeesMaster) -> List[models.StudentEnroll]:
        enrolls = self.enrolls.matching(program_id=master.program_id, session_id=master.session_id,
                                        semester_id=master.semester_id, section_id=master.section_id)
        if master.faculty_id and not master.program_id:
            program_ids = {p.id for p in self.programs.all(
                self.programs.filter_by(self.programs.query(), faculty_id=master.faculty_id))}
            enrolls = [e for e in enrolls if e.program_id in program_ids]
        return enrolls

    def create_master(self, data: dict, user_id: Optional[int] = None) -> models.FeesMaster:
        self._require(self.categories, data['category_id'], 'Fees category')
        data = dict(data)
        data['assign_date'] = data.get('assign_date') or date.today()
        if data['due_date'] < data['assign_date']:
            raise BusinessRuleError('Due date cannot be before the assign date')
        master = self.masters.save(models.FeesMaster(**data, created_by=user_id))
        log_event("fees_master_created", id=master.id, category_id=master.category_id)
        return master

    def list_masters(self, page: int = 1, per_page: int = 15):
        return self.masters.paginate(self.masters.ordered(self.masters.query()), page, per_page)

    def assign_master(self, pk: int, user_id: Optional[int] = None) -> dict:
        """Create one fee per matching active enrolment; existing ones are kept."""
        master = self._require(self.masters, pk, 'Fees master')
        if not master.status:
            raise BusinessRuleError('Fees master is inactive')
        linked = {e.id for e in master.student_enrolls}
        created = skipped = 0
        for enroll in self._target_enrolls(master):
            if enroll.id not in linked:
                master.student_enrolls.append(enroll)
            if self.fees.exists_for(enroll.id, master.category_id, master.due_date):
                skipped += 1
                continue
            self.session.add(models.Fee(student_enroll_id=enroll.id, category_id=master.category_id,
                                        fee_amount=master.amount, assign_date=master.assign_date,
                                        due_date=master.due_date, created_by=user_id))
            created += 1
        self.session.add(master)
        self.session.commit()
        log_event("fees_master_assigned", id=master.id, created=created, skipped=skipped)
        return {'fees_master_id': master.id, 'created': created, 'skipped': skipped}

    # -- fees ------------------------------------------------------------

    def list_fees(self, status=None, category_id=None, student_enroll_id=None, student_id=None,
                  start_date: Optional[date] = None, end_date: Optional[date] = None,
                  paid: Optional[bool] = None, page: int = 1, per_page: int = 15):
        """List fees; `paid=True` keeps settled fees, `paid=False` untouched ones."""
        stmt = self.fees.filter_by_status(self.fees.query(), status)
        if paid is not None:
            stmt = self.fees.paid(stmt) if paid else self.fees.unpaid(stmt)
        stmt = self.fees.filter_by(stmt, category_id=category_id, student_enroll_id=student_enroll_id)
        if student_id is not None:
            stmt = self.fees.for_enrolls([e.id for e in self.enrolls.all(self.enrolls.for_student(student_id))], stmt)
        if start_date:
            stmt = stmt.where(models.Fee.due_date >= start_date)
        if end_date:
            stmt = stmt.where(models.Fee.due_date <= end_date)
        return self.fees.paginate(self.fees.ordered(stmt), page, per_page)

    def get_fee(self, pk: int) -> models.Fee:
        return self._require(self.fees, pk, 'Fee')

    def create_fee(self, data: dict, user_id: Optional[int] = None) -> models.Fee:
        self._require(self.enrolls, data['student_enroll_id'], 'Student enrollment')
        self._require(self.categories, data['category_id'], 'Fees category')
        data = dict(data)
        data['assign_date'] = data.get('assign_date') or date.today()
        fee = self.fees.save(models.Fee(**data, created_by=user_id))
        log_event("fee_created", id=fee.id, student_enroll_id=fee.student_enroll_id, fee_amount=fee.fee_amount)
        return fee

    def update_fee(self, pk: int, data: dict, user_id: Optional[int] = None) -> models.Fee:
        fee = self.get_fee(pk)
        if fee.status == FeeStatus.PAID.value:
            raise BusinessRuleError('Cannot update a paid fee')
        fee = self._apply(fee, {**data, 'updated_by': user_id})
        fee.status = rules.fee_status_for(fee.paid_amount, rules.fee_payable(
            fee.fee_amount, fee.fine_amount, fee.discount_amount))
        return self.fees.save(fee)

    def delete_fee(self, pk: int) -> None:
        fee = self.get_fee(pk)
        if fee.paid_amount:
            raise BusinessRuleError('Cannot delete a fee with payments')
        self.fees.delete(fee)
        log_event("fee_deleted", id=pk)

    def student_fees(self, student_id: int) -> List[models.Fee]:
        enroll_ids = [e.id for e in self.enrolls.all(self.enrolls.for_student(student_id))]
        if not enroll_ids:
            return []
        return self.fees.all(self.fees.ordered(self.fees.for_enrolls(enroll_ids)))

    def _student_for(self, fee: models.Fee) -> models.Student:
        enroll = fee.student_enroll
        if enroll is None or enroll.student is None:
            raise BusinessRuleError('Fee is not linked to a student')
        return enroll.student

    def discount_for(self, fee: models.Fee, on: date) -> float:
        """Best discount the fee's student qualifies for on `on`."""
        student = self._student_for(fee)
        status_type_ids = [s.id for s in student.status_types]
        best = 0.0
        for discount in self.discounts.for_category(fee.category_id):
            if rules.discount_available(discount, status_type_ids, on):
                best = max(best, rules.discount_amount(discount, fee.fee_amount))
        return best

    def fine_for(self, fee: models.Fee, on: date) -> float:
        return rules.fine_amount(self.fines.for_category(fee.category_id), fee.fee_amount,
                                 rules.days_overdue(fee.due_date, on))

    def next_transaction_no(self, on: date) -> str:
        prefix = f'TXN{on.strftime("%Y%m%d")}'
        return rules.next_sequence_code(prefix, self.transactions.last_code('transaction_no', prefix))

    def pay(self, pk: int, payment_method: str, amount: Optional[float] = None, pay_date: Optional[date] = None,
            reference: Optional[str] = None, note: Optional[str] = None,
            user_id: Optional[int] = None) -> models.Fee:
        """Record a (possibly partial) payment and its credit transaction.

        Discount eligibility and late fines are evaluated at `pay_date`.
        Without `amount` the whole remaining balance is paid.
        """
        fee = self.get_fee(pk)
        if fee.status == FeeStatus.PAID.value:
            raise BusinessRuleError('Fee is already paid')
        pay_date = pay_date or date.today()
        student = self._student_for(fee)

        fee.discount_amount = self.discount_for(fee, pay_date)
        fee.fine_amount = max(float(fee.fine_amount or 0), self.fine_for(fee, pay_date))
        payable = rules.fee_payable(fee.fee_amount, fee.fine_amount, fee.discount_amount)
        remaining = round(payable - float(fee.paid_amount or 0), 2)
        if remaining <= 0:
            raise BusinessRuleError('Nothing left to pay on this fee')
        amount = remaining if amount is None else round(float(amount), 2)
        if amount > remaining:
            raise BusinessRuleError(f'Payment exceeds the remaining amount of {remaining:.2f}')

        fee.paid_amount = round(float(fee.paid_amount or 0) + amount, 2)
        fee.status = rules.fee_status_for(fee.paid_amount, payable)
        fee.payment_method = payment_method
        fee.pay_date = as_datetime(pay_date)
        fee.updated_by = user_id
        fee.updated_at = utcnow()
        if note:
            fee.note = note
        self.session.add(fee)

        txn = models.Transaction(
            **OwnerRef(OwnerKind.STUDENT, student.id).columns(),
            transaction_no=self.next_transaction_no(pay_date),
            type=TransactionType.CREDIT.value,
            amount=amount,
            payment_method=payment_method,
            reference=reference,
            description=f'Fee #{fee.id} payment',
            created_by=user_id,
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(fee)
        log_event("fee_paid", fee_id=fee.id, paid_amount=amount, status=fee.status,
                  transaction_no=txn.transaction_no)
        return fee

    def overdue(self, on: Optional[date] = None, min_days: Optional[int] = None,
                page: int = 1, per_page: int = 15):
        on = on or date.today()
        stmt = self.fees.overdue(on)
        if min_days:
            stmt = stmt.where(models.Fee.due_date <= on - timedelta(days=min_days))
        return self.fees.paginate(stmt.order_by(models.Fee.due_date), page, per_page)

    def upcoming(self, days: int = 7, on: Optional[date] = None) -> List[models.Fee]:
        """Unsettled fees falling due within the next `days` days."""
        on = on or date.today()
        stmt = self.fees.upcoming(on + timedelta(days=1), on + timedelta(days=days))
        return self.fees.all(stmt.order_by(models.Fee.due_date))

    def reminders(self, days: int = 7, on: Optional[date] = None) -> dict:
        on = on or date.today()
        overdue = self.fees.all(self.fees.overdue(on).order_by(models.Fee.due_date))
        return {'overdue': overdue, 'upcoming': self.upcoming(days, on)}

    def statistics(self, on: Optional[date] = None) -> dict:
        on = on or date.today()
        by_status = self.fees.count_by_status()
        totals = self.fees.totals()
        payable = totals['fee_amount'] + totals['fine_amount'] - totals['discount_amount']
        return {
            'total': sum(by_status.values()),
            'paid': by_status.get(FeeStatus.PAID.value, 0),
            'partial': by_status.get(FeeStatus.PARTIAL.value, 0),
            'unpaid': by_status.get(FeeStatus.UNPAID.value, 0),
            'overdue': self.fees.count(self.fees.overdue(on)),
            **totals,
            'outstanding_amount': round(max(0.0, payable - totals['paid_amount']), 2),
            'collection_rate': round(totals['paid_amount'] * 100.0 / payable, 2) if payable else 0.0,
        }

    # -- transactions ----------------------------------------------------

    def list_transactions(self, owner: Optional[OwnerRef] = None, search=None, page: int = 1, per_page: int = 15):
        stmt = self.transactions.listing(search=search)
        if owner is not None:
            stmt = self.transactions.filter_by(stmt, **owner.columns())
        return self.transactions.paginate(stmt.order_by(None).order_by(models.Transaction.id.desc()), page, per_page)

    def active_discounts_for_student(self, student_id: int, on: Optional[date] = None) -> List[models.FeesDiscount]:
        student = self._require(repositories.StudentRepository(self.session), student_id, 'Student')
        ids = [s.id for s in student.status_types]
        on = on or date.today()
        rows = self.session.exec(select(models.FeesDiscount).where(models.FeesDiscount.status == True)).all()  # noqa: E712
        return [d for d in rows if rules.discount_available(d, ids, on)]
