"""Library catalogue and circulation.

Book stock is tracked by `Book.quantity`, the number of copies on the
shelf: issuing a copy decrements it and returning increments it. Lost
copies are not put back. The total stock of a title is therefore
`quantity + copies currently issued`.
"""

from datetime import date
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from .. import models, repositories, rules
from ..config import settings
from ..enums import BookRequestStatus, IssueStatus, MemberType, OwnerKind, Status
from ..errors import BusinessRuleError, NotFoundError
from ..polymorphic import OwnerRef, resolve_owner
from .base import BaseService, as_datetime, log_event, utcnow


class LibraryService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.books = repositories.BookRepository(session)
        self.categories = repositories.BookCategoryRepository(session)
        self.members = repositories.LibraryMemberRepository(session)
        self.issues = repositories.IssueReturnRepository(session)
        self.requests = repositories.BookRequestRepository(session)
        self.settings = repositories.LibrarySettingRepository(session)

    # -- categories ----------------------------------------------------

    def list_categories(self, status=None, search=None, page: int = 1, per_page: int = 15):
        return self.categories.paginate(self.categories.listing(status=status, search=search), page, per_page)

    def get_category(self, pk: int) -> models.BookCategory:
        return self._require(self.categories, pk, 'Book category')

    def create_category(self, data: dict) -> models.BookCategory:
        category = models.BookCategory(**data, slug=self._unique_slug(self.categories, data['title']))
        category = self.categories.save(category)
        log_event("book_category_created", id=category.id)
        return category

    def update_category(self, pk: int, data: dict) -> models.BookCategory:
        category = self.get_category(pk)
        if data.get('title') and data['title'] != category.title:
            data = {**data, 'slug': self._unique_slug(self.categories, data['title'], exclude_id=category.id)}
        return self.categories.save(self._apply(category, data))

    def delete_category(self, pk: int) -> None:
        category = self.get_category(pk)
        if category.books:
            raise BusinessRuleError('Cannot delete category with existing books')
        self.categories.delete(category)
        log_event("book_category_deleted", id=pk)

    def category_statistics(self) -> dict:
        by_status = self.categories.count_by_status()
        total = sum(by_status.values())
        active = by_status.get(Status.ACTIVE.value, 0)
        with_books = len(set(self.session.exec(
            select(models.Book.book_category_id).where(models.Book.book_category_id != None)).all()))  # noqa: E711
        return {
            'total': total,
            'active': active,
            'inactive': by_status.get(Status.INACTIVE.value, 0),
            'with_books': with_books,
            'without_books': total - with_books,
            'active_rate': rules.rate(active, total),
        }

    # -- books -----------------------------------------------------------

    def list_books(self, status=None, search=None, category_id=None, author=None,
                   available: Optional[bool] = None, page: int = 1, per_page: int = 15):
        stmt = self.books.listing(status=status, search=search, book_category_id=category_id)
        if author:
            stmt = stmt.where(models.Book.author.ilike(f'%{author}%'))
        stmt = self.books.filter_by_availability(stmt, available)
        return self.books.paginate(stmt, page, per_page)

    def get_book(self, pk: int) -> models.Book:
        return self._require(self.books, pk, 'Book')

    def create_book(self, data: dict) -> models.Book:
        if data.get('book_category_id'):
            self.get_category(data['book_category_id'])
        if self.books.exists(isbn=data['isbn']):
            raise BusinessRuleError(f"A book with ISBN {data['isbn']} already exists")
        book = self.books.save(models.Book(**data))
        log_event("book_created", id=book.id, isbn=book.isbn, quantity=book.quantity)
        return book

    def update_book(self, pk: int, data: dict) -> models.Book:
        book = self.get_book(pk)
        if data.get('isbn') and data['isbn'] != book.isbn and self.books.exists(isbn=data['isbn']):
            raise BusinessRuleError(f"A book with ISBN {data['isbn']} already exists")
        if data.get('book_category_id'):
            self.get_category(data['book_category_id'])
        return self.books.save(self._apply(book, data))

    def delete_book(self, pk: int) -> None:
        book = self.get_book(pk)
        if self.issues.active_count_for_book(book.id):
            raise BusinessRuleError('Cannot delete book with active issues')
        if book.issues:
            # returned and lost copies stay on record for fines and history
            raise BusinessRuleError('Cannot delete book with issue history')
        self.books.delete(book)
        log_event("book_deleted", id=pk)

    def availability(self, pk: int) -> dict:
        book = self.get_book(pk)
        issued = self.issues.active_count_for_book(book.id)
        return {
            'book_id': book.id,
            'title': book.title,
            'total_quantity': book.quantity + issued,
            'available_quantity': book.quantity,
            'issued_quantity': issued,
            'is_available': book.quantity > 0,
        }

    def import_books(self, rows: Iterable[dict], category_id: Optional[int] = None,
                     dry_run: bool = False) -> dict:
        """Create books from parsed rows; duplicates (by ISBN) are skipped.

        Returns counts plus per-row `errors` for rows missing a title,
        author or ISBN.
        """
        if category_id is not None:
            self.get_category(category_id)
        created, skipped, errors = 0, 0, []
        seen = set()
        for idx, row in enumerate(rows):
            missing = [k for k in ('title', 'author', 'isbn') if not row.get(k)]
            if missing:
                errors.append({'index': idx, 'error': f"missing {', '.join(missing)}"})
                continue
            if row['isbn'] in seen or self.books.exists(isbn=row['isbn']):
                skipped += 1
                continue
            seen.add(row['isbn'])
            if not dry_run:
                self.session.add(models.Book(**{**row, 'book_category_id': row.get('book_category_id') or category_id}))
            created += 1
        if not dry_run:
            self.session.commit()
        log_event("books_imported", created=created, skipped=skipped, errors=len(errors), dry_run=dry_run)
        return {'created': created, 'skipped': skipped, 'errors': errors}

    # -- members ---------------------------------------------------------

    def list_members(self, status=None, search=None, owner_kind=None, page: int = 1, per_page: int = 15):
        stmt = self.members.listing(status=status, search=search, owner_kind=owner_kind)
        return self.members.paginate(stmt, page, per_page)

    def get_member(self, pk: int) -> models.LibraryMember:
        return self._require(self.members, pk, 'Library member')

    def create_member(self, ref: OwnerRef, library_id: Optional[str] = None) -> models.LibraryMember:
        """Issue a library card to a student, staff user or outside user."""
        resolve_owner(self.session, ref)
        if self.members.for_owner(ref.kind.value, ref.id):
            raise BusinessRuleError('Owner already has a library card')
        if library_id is None:
            library_id = rules.next_sequence_code('LIB', self.members.last_code('library_id', 'LIB'))
        elif self.members.exists(library_id=library_id):
            raise BusinessRuleError(f'Library card {library_id} already exists')
        member = self.members.save(models.LibraryMember(**ref.columns(), library_id=library_id))
        log_event("library_member_created", id=member.id, owner_kind=ref.kind.value, owner_id=ref.id)
        return member

    def set_member_status(self, pk: int, status: Status) -> models.LibraryMember:
        member = self.get_member(pk)
        member.status = status.value
        return self.members.save(member)

    # -- settings --------------------------------------------------------

    def get_settings(self) -> Optional[models.LibrarySetting]:
        return self.settings.active()

    def update_settings(self, data: dict) -> models.LibrarySetting:
        """Update the active settings row, creating it on first use."""
        current = self.settings.active()
        if current is None:
            current = models.LibrarySetting(library_name=data.get('library_name') or 'Library',
                                            fine_per_day=settings.LIBRARY_FINE_PER_DAY,
                                            max_borrow_days=settings.LIBRARY_BORROW_DAYS)
        data = {k: v for k, v in data.items() if v is not None}
        current = self.settings.save(self._apply(current, data))
        log_event("library_settings_updated", fields=sorted(data))
        return current

    def fine_per_day(self) -> float:
        current = self.settings.active()
        return current.fine_per_day if current else settings.LIBRARY_FINE_PER_DAY

    def borrow_days(self) -> int:
        current = self.settings.active()
        return current.max_borrow_days if current else settings.LIBRARY_BORROW_DAYS

    def member_limit(self) -> Optional[int]:
        current = self.settings.active()
        return current.max_books_per_member if current else None

    # -- circulation -----------------------------------------------------

    def issue(self, book_id: int, member_id: int, issue_date: Optional[date] = None,
              due_date: Optional[date] = None, note: Optional[str] = None) -> models.IssueReturn:
        book = self.get_book(book_id)
        member = self.get_member(member_id)
        if book.quantity <= 0 or book.status != Status.ACTIVE.value:
            raise BusinessRuleError('Book is not available')
        if member.status != Status.ACTIVE.value:
            raise BusinessRuleError('Library member is not active')
        if self.issues.active_issue(book.id, member.id):
            raise BusinessRuleError('Member already has this book')
        limit = self.member_limit()
        if limit is not None and self.issues.active_count_for_member(member.id) >= limit:
            raise BusinessRuleError(f'Member has reached the limit of {limit} books')

        issue_date = issue_date or date.today()
        member_type = MemberType.STUDENT if member.owner_kind == OwnerKind.STUDENT.value else MemberType.STAFF
        issue = models.IssueReturn(
            book_id=book.id,
            member_id=member.id,
            member_type=member_type.value,
            issue_date=as_datetime(issue_date),
            due_date=due_date or rules.default_due_date(issue_date, self.borrow_days()),
            note=note,
            status=IssueStatus.ISSUED.value,
        )
        book.quantity -= 1
        self.session.add(book)
        issue = self.issues.save(issue)
        log_event("book_issued", issue_id=issue.id, book_id=book.id, member_id=member.id,
                  due_date=issue.due_date.isoformat())
        return issue

    def return_book(self, book_id: int, member_id: int, return_date: Optional[date] = None,
                    note: Optional[str] = None) -> models.IssueReturn:
        """Close the member's open issue of a book and charge any overdue fine."""
        issue = self.issues.active_issue(book_id, member_id)
        if issue is None:
            raise NotFoundError('Active issue', f'book {book_id} / member {member_id}')
        return_date = return_date or date.today()
        issue.fine_amount = rules.library_fine(issue.due_date, return_date, self.fine_per_day())
        issue.return_date = as_datetime(return_date)
        issue.status = IssueStatus.RETURNED.value
        if note:
            issue.note = note
        issue.updated_at = utcnow()
        book = self.get_book(book_id)
        book.quantity += 1
        self.session.add(book)
        issue = self.issues.save(issue)
        log_event("book_returned", issue_id=issue.id, book_id=book_id, member_id=member_id,
                  fine_amount=issue.fine_amount)
        return issue

    def mark_lost(self, issue_id: int, note: Optional[str] = None) -> models.IssueReturn:
        issue = self._require(self.issues, issue_id, 'Issue')
        if issue.status != IssueStatus.ISSUED.value:
            raise BusinessRuleError('Only issued books can be marked as lost')
        issue.status = IssueStatus.LOST.value
        if note:
            issue.note = note
        issue.updated_at = utcnow()
        issue = self.issues.save(issue)
        log_event("book_lost", issue_id=issue.id, book_id=issue.book_id)
        return issue

    def list_issues(self, status=None, member_id=None, book_id=None, page: int = 1, per_page: int = 15):
        stmt = self.issues.filter_by_status(self.issues.query(), status)
        stmt = self.issues.filter_by(stmt, member_id=member_id, book_id=book_id)
        stmt = stmt.order_by(models.IssueReturn.id.desc())
        return self.issues.paginate(stmt, page, per_page)

    def overdue_issues(self, on: Optional[date] = None) -> List[models.IssueReturn]:
        stmt = self.issues.overdue(on or date.today()).order_by(models.IssueReturn.due_date)
        return self.issues.all(stmt)

    # -- book requests ---------------------------------------------------

    def list_requests(self, status=None, search=None, page: int = 1, per_page: int = 15):
        return self.requests.paginate(self.requests.listing(status=status, search=search), page, per_page)

    def get_request(self, pk: int) -> models.BookRequest:
        return self._require(self.requests, pk, 'Book request')

    def create_request(self, data: dict) -> models.BookRequest:
        if data.get('book_category_id'):
            self.get_category(data['book_category_id'])
        current = self.settings.active()
        status = BookRequestStatus.APPROVED if current and current.auto_approve_requests else BookRequestStatus.PENDING
        request = self.requests.save(models.BookRequest(**data, status=status.value))
        log_event("book_request_created", id=request.id, status=request.status)
        return request

    def update_request(self, pk: int, data: dict) -> models.BookRequest:
        request = self.get_request(pk)
        request = self.requests.save(self._apply(request, data))
        log_event("book_request_updated", id=request.id, status=request.status)
        return request

    def delete_request(self, pk: int) -> None:
        request = self.get_request(pk)
        if request.status == BookRequestStatus.APPROVED.value:
            raise BusinessRuleError('Cannot delete an approved book request')
        self.requests.delete(request)
