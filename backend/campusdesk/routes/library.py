"""Library endpoints: categories, books, members, circulation, requests
and settings.

`POST /books/import` accepts a CSV or JSON upload (see
`utils.parsers`); pass `dry_run=true` to validate a file without
writing anything.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel import Session

from .. import resources, schemas, services
from ..auth import get_current_user
from ..database import get_session
from ..enums import Status
from ..utils.parsers import parse_file_to_books
from .common import Page, include_set, ok, owner_ref, paginated, read_upload

router = APIRouter(tags=["library"], dependencies=[Depends(get_current_user)])


# -- categories ---------------------------------------------------------

@router.get('/book-categories')
def list_categories(status: Optional[str] = None, search: Optional[str] = None, page: Page = Depends(),
                    db: Session = Depends(get_session)):
    rows, total = services.LibraryService(db).list_categories(status=status, search=search, page=page.page,
                                                              per_page=page.per_page)
    return paginated(rows, total, page, resources.book_category_resource)


@router.get('/book-categories/statistics')
def category_statistics(db: Session = Depends(get_session)):
    return ok(services.LibraryService(db).category_statistics())


@router.post('/book-categories', status_code=201)
def create_category(payload: schemas.BookCategoryIn, db: Session = Depends(get_session)):
    row = services.LibraryService(db).create_category(payload.model_dump())
    return ok(resources.book_category_resource(row), 'Book category created successfully')


@router.get('/book-categories/{pk}')
def get_category(pk: int, include: Optional[str] = None, db: Session = Depends(get_session)):
    row = services.LibraryService(db).get_category(pk)
    return ok(resources.book_category_resource(row, include=include_set(include)))


@router.put('/book-categories/{pk}')
def update_category(pk: int, payload: schemas.BookCategoryUpdate, db: Session = Depends(get_session)):
    row = services.LibraryService(db).update_category(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.book_category_resource(row), 'Book category updated successfully')


@router.delete('/book-categories/{pk}')
def delete_category(pk: int, db: Session = Depends(get_session)):
    services.LibraryService(db).delete_category(pk)
    return ok(None, 'Book category deleted successfully')


# -- books ----------------------------------------------------------------

@router.get('/books')
def list_books(status: Optional[str] = None, search: Optional[str] = None, category_id: Optional[int] = None,
               author: Optional[str] = None, available: Optional[bool] = None, include: Optional[str] = None,
               page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.LibraryService(db).list_books(status=status, search=search, category_id=category_id,
                                                         author=author, available=available, page=page.page,
                                                         per_page=page.per_page)
    return paginated(rows, total, page, resources.book_resource, include=include_set(include))


@router.post('/books', status_code=201)
def create_book(payload: schemas.BookIn, db: Session = Depends(get_session)):
    book = services.LibraryService(db).create_book(payload.model_dump())
    return ok(resources.book_resource(book), 'Book created successfully')


@router.post('/books/import')
def import_books(file: UploadFile = File(...), category_id: Optional[int] = None, dry_run: bool = False,
                 db: Session = Depends(get_session)):
    """Upload a CSV or JSON book list and create the books it contains."""
    rows = read_upload(file, parse_file_to_books)
    result = services.LibraryService(db).import_books(rows, category_id=category_id, dry_run=dry_run)
    return ok(result, f"{result['created']} books imported")


@router.get('/books/{pk}')
def get_book(pk: int, include: Optional[str] = None, db: Session = Depends(get_session)):
    book = services.LibraryService(db).get_book(pk)
    return ok(resources.book_resource(book, include=include_set(include) or {'category'}))


@router.get('/books/{pk}/availability')
def availability(pk: int, db: Session = Depends(get_session)):
    return ok(services.LibraryService(db).availability(pk))


@router.put('/books/{pk}')
def update_book(pk: int, payload: schemas.BookUpdate, db: Session = Depends(get_session)):
    book = services.LibraryService(db).update_book(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.book_resource(book), 'Book updated successfully')


@router.delete('/books/{pk}')
def delete_book(pk: int, db: Session = Depends(get_session)):
    services.LibraryService(db).delete_book(pk)
    return ok(None, 'Book deleted successfully')


# -- members ------------------------------------------------------------

@router.get('/library-members')
def list_members(status: Optional[str] = None, search: Optional[str] = None, owner_kind: Optional[str] = None,
                 page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.LibraryService(db).list_members(status=status, search=search, owner_kind=owner_kind,
                                                           page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.library_member_resource, session=db)


@router.post('/library-members', status_code=201)
def create_member(payload: schemas.LibraryMemberIn, db: Session = Depends(get_session)):
    ref = owner_ref(payload.owner_kind, payload.owner_id)
    member = services.LibraryService(db).create_member(ref, library_id=payload.library_id)
    return ok(resources.library_member_resource(member, session=db), 'Library member created successfully')


@router.get('/library-members/{pk}')
def get_member(pk: int, db: Session = Depends(get_session)):
    member = services.LibraryService(db).get_member(pk)
    return ok(resources.library_member_resource(member, session=db))


@router.put('/library-members/{pk}/status')
def set_member_status(pk: int, payload: schemas.StatusIn, db: Session = Depends(get_session)):
    member = services.LibraryService(db).set_member_status(pk, Status(payload.status))
    return ok(resources.library_member_resource(member, session=db), 'Member status updated')


# -- circulation --------------------------------------------------------

@router.get('/issues')
def list_issues(status: Optional[str] = None, member_id: Optional[int] = None, book_id: Optional[int] = None,
                page: Page = Depends(), db: Session = Depends(get_session)):
    rows, total = services.LibraryService(db).list_issues(status=status, member_id=member_id, book_id=book_id,
                                                          page=page.page, per_page=page.per_page)
    return paginated(rows, total, page, resources.issue_resource, include={'book'})


@router.get('/issues/overdue')
def overdue_issues(db: Session = Depends(get_session)):
    rows = services.LibraryService(db).overdue_issues()
    return ok(resources.collection(resources.issue_resource, rows, include={'book', 'member'}))


@router.post('/issues', status_code=201)
def issue_book(payload: schemas.IssueIn, db: Session = Depends(get_session)):
    issue = services.LibraryService(db).issue(payload.book_id, payload.member_id, issue_date=payload.issue_date,
                                              due_date=payload.due_date, note=payload.note)
    return ok(resources.issue_resource(issue, include={'book'}), 'Book issued successfully')


@router.post('/issues/return')
def return_book(payload: schemas.ReturnIn, db: Session = Depends(get_session)):
    issue = services.LibraryService(db).return_book(payload.book_id, payload.member_id,
                                                    return_date=payload.return_date, note=payload.note)
    return ok(resources.issue_resource(issue, include={'book'}), 'Book returned successfully')


@router.post('/issues/{pk}/lost')
def mark_lost(pk: int, note: Optional[str] = None, db: Session = Depends(get_session)):
    issue = services.LibraryService(db).mark_lost(pk, note=note)
    return ok(resources.issue_resource(issue, include={'book'}), 'Book marked as lost')


# -- requests -------------------------------------------------------------

@router.get('/book-requests')
def list_requests(status: Optional[str] = None, search: Optional[str] = None, page: Page = Depends(),
                  db: Session = Depends(get_session)):
    rows, total = services.LibraryService(db).list_requests(status=status, search=search, page=page.page,
                                                            per_page=page.per_page)
    return paginated(rows, total, page, resources.book_request_resource)


@router.post('/book-requests', status_code=201)
def create_request(payload: schemas.BookRequestIn, db: Session = Depends(get_session)):
    row = services.LibraryService(db).create_request(payload.model_dump())
    return ok(resources.book_request_resource(row), 'Book request submitted successfully')


@router.put('/book-requests/{pk}')
def update_request(pk: int, payload: schemas.BookRequestUpdate, db: Session = Depends(get_session)):
    row = services.LibraryService(db).update_request(pk, payload.model_dump(exclude_unset=True))
    return ok(resources.book_request_resource(row), 'Book request updated successfully')


@router.delete('/book-requests/{pk}')
def delete_request(pk: int, db: Session = Depends(get_session)):
    services.LibraryService(db).delete_request(pk)
    return ok(None, 'Book request deleted successfully')


# -- settings -------------------------------------------------------------

@router.get('/library-settings')
def get_settings(db: Session = Depends(get_session)):
    svc = services.LibraryService(db)
    row = svc.get_settings()
    if row is None:
        return ok({'fine_per_day': svc.fine_per_day(), 'max_borrow_days': svc.borrow_days(),
                   'max_books_per_member': None, 'auto_approve_requests': False})
    return ok(resources.library_setting_resource(row))


@router.put('/library-settings')
def update_settings(payload: schemas.LibrarySettingIn, db: Session = Depends(get_session)):
    row = services.LibraryService(db).update_settings(payload.model_dump(exclude_unset=True))
    return ok(resources.library_setting_resource(row), 'Library settings updated successfully')
