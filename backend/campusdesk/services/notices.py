"""Notice categories, notices and their audiences."""

from datetime import date
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from .. import models, repositories, rules
from ..enums import Status
from ..errors import BusinessRuleError
from ..polymorphic import OwnerRef, resolve_owner
from .base import BaseService, log_event


class NoticeService(BaseService):
    """Notices are created unpublished (inactive) unless told otherwise."""

    def __init__(self, session: Session):
        super().__init__(session)
        self.categories = repositories.NoticeCategoryRepository(session)
        self.notices = repositories.NoticeRepository(session)
        self.audience = repositories.NoticeAudienceRepository(session)

    def list_categories(self, status=None) -> List[models.NoticeCategory]:
        return self.categories.all(self.categories.listing(status=status))

    def create_category(self, data: dict) -> models.NoticeCategory:
        if self.categories.exists(title=data['title']):
            raise BusinessRuleError('Notice category already exists')
        return self.categories.save(models.NoticeCategory(**data))

    def list(self, status=None, search=None, category_id=None, faculty_id=None, program_id=None,
             page: int = 1, per_page: int = 15):
        stmt = self.notices.listing(status=status, search=search, category_id=category_id,
                                    faculty_id=faculty_id, program_id=program_id)
        return self.notices.paginate(stmt, page, per_page)

    def get(self, pk: int) -> models.Notice:
        return self._require(self.notices, pk, 'Notice')

    def next_notice_no(self, on: date) -> str:
        prefix = f'NTC{on.year}'
        return rules.next_sequence_code(prefix, self.notices.last_code('notice_no', prefix))

    def create(self, data: dict, user_id: Optional[int] = None) -> models.Notice:
        data = dict(data)
        audience = data.pop('audience', [])
        if data.get('category_id'):
            self._require(self.categories, data['category_id'], 'Notice category')
        data['notice_date'] = data.get('notice_date') or date.today()
        notice = models.Notice(**data, notice_no=self.next_notice_no(data['notice_date']), created_by=user_id)
        notice = self.notices.save(notice)
        if audience:
            self.attach_audience(notice.id, [OwnerRef.of(a['owner_kind'], a['owner_id']) for a in audience])
        log_event("notice_created", id=notice.id, notice_no=notice.notice_no)
        return notice

    def update(self, pk: int, data: dict) -> models.Notice:
        notice = self.get(pk)
        if data.get('category_id'):
            self._require(self.categories, data['category_id'], 'Notice category')
        return self.notices.save(self._apply(notice, data))

    def delete(self, pk: int) -> None:
        notice = self.get(pk)
        for row in notice.audience:
            self.session.delete(row)
        self.notices.delete(notice)
        log_event("notice_deleted", id=pk)

    def attach_audience(self, pk: int, refs: Iterable[OwnerRef]) -> models.Notice:
        """Address a notice to specific owners; duplicates are ignored."""
        notice = self.get(pk)
        have = {(a.owner_kind, a.owner_id) for a in notice.audience}
        for ref in refs:
            resolve_owner(self.session, ref)
            if (ref.kind.value, ref.id) in have:
                continue
            self.session.add(models.NoticeAudience(notice_id=notice.id, **ref.columns()))
            have.add((ref.kind.value, ref.id))
        self.session.commit()
        self.session.refresh(notice)
        return notice

    def detach_audience(self, pk: int, ref: OwnerRef) -> models.Notice:
        notice = self.get(pk)
        for row in notice.audience:
            if row.owner_kind == ref.kind.value and row.owner_id == ref.id:
                self.session.delete(row)
        self.session.commit()
        self.session.refresh(notice)
        return notice

    def publish(self, pk: int) -> models.Notice:
        return self._set_status(pk, Status.ACTIVE)

    def unpublish(self, pk: int) -> models.Notice:
        return self._set_status(pk, Status.INACTIVE)

    def _set_status(self, pk: int, status: Status) -> models.Notice:
        notice = self.get(pk)
        notice.status = status.value
        notice = self.notices.save(self._apply(notice, {}))
        log_event("notice_status", id=notice.id, status=notice.status)
        return notice

    def publish_due(self, on: Optional[date] = None, dry_run: bool = False) -> List[models.Notice]:
        """Publish every draft (inactive) notice dated on or before `on`.

        With `dry_run` the due notices are returned but left untouched.
        """
        on = on or date.today()
        stmt = select(models.Notice).where(models.Notice.status == Status.INACTIVE.value,
                                           models.Notice.notice_date <= on)
        due = self.notices.all(self.notices.ordered(stmt))
        if dry_run:
            return due
        for notice in due:
            self.session.add(self._apply(notice, {'status': Status.ACTIVE.value}))
            log_event("notice_published", id=notice.id, notice_no=notice.notice_no)
        self.session.commit()
        for notice in due:
            self.session.refresh(notice)
        return due

    def for_owner(self, ref: OwnerRef) -> List[models.Notice]:
        """Published notices explicitly addressed to an owner."""
        stmt = (select(models.Notice)
                .join(models.NoticeAudience, models.NoticeAudience.notice_id == models.Notice.id)
                .where(models.NoticeAudience.owner_kind == ref.kind.value,
                       models.NoticeAudience.owner_id == ref.id,
                       models.Notice.status == Status.ACTIVE.value))
        return self.notices.all(self.notices.ordered(stmt))
