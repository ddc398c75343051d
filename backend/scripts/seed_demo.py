"""CLI script seeding a small demo college into the backend DB.

Creates an admin account, one faculty with a program, batch, current
session/semester and section, a fee category, a library category with
a few books, and two pending applications. Running it twice is safe:
it stops if the admin user already exists.

Usage: python scripts/seed_demo.py [--username admin] [--password admin123]
"""
import sys
import argparse
import pathlib
from datetime import date
# Ensure `backend/` is on sys.path so `campusdesk` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from campusdesk.database import engine, create_db_and_tables
from campusdesk import repositories, services

BOOKS = [
    {'title': 'Introduction to Algorithms', 'author': 'Cormen', 'isbn': '9780262033848', 'quantity': 3},
    {'title': 'Clean Code', 'author': 'Robert C. Martin', 'isbn': '9780132350884', 'quantity': 2},
    {'title': 'Database System Concepts', 'author': 'Silberschatz', 'isbn': '9780073523323', 'quantity': 2},
]


def main(username: str, password: str):
    create_db_and_tables()
    with Session(engine) as session:
        if repositories.UserRepository(session).get_by_username(username):
            print(f'User {username} already exists; nothing to do')
            return
        services.AuthService(session).register(username, password, first_name='Admin')

        academic = services.AcademicService(session)
        year = date.today().year
        faculty = academic.create('faculties', {'name': 'Faculty of Science', 'code': 'FOS'})
        term = academic.create('sessions', {'name': f'{year}-{year + 1}', 'is_current': True})
        semester = academic.create('semesters', {'name': 'First Semester', 'academic_year': year, 'is_current': True})
        program = academic.create('programs', {'faculty_id': faculty.id, 'title': 'Computer Science',
                                               'shortcode': 'CS', 'session_ids': [term.id],
                                               'semester_ids': [semester.id]})
        batch = academic.create('batches', {'program_id': program.id, 'name': f'Batch {year}',
                                            'academic_year': year})
        academic.attach(program.id, 'batches', [batch.id])
        section = academic.create('sections', {'batch_id': batch.id, 'name': 'A', 'seat': 40})
        academic.allocate_section(program.id, semester.id, section.id)

        services.FeeService(session).create_category({'title': 'Tuition Fee'})

        library = services.LibraryService(session)
        category = library.create_category({'title': 'Computing', 'code': 'CMP'})
        library.import_books(BOOKS, category_id=category.id)

        admission = services.AdmissionService(session)
        for first, last in (('Ada', 'Lovelace'), ('Alan', 'Turing')):
            admission.create({'first_name': first, 'last_name': last, 'batch_id': batch.id,
                              'program_id': program.id, 'fee_amount': 500})
    print(f'Seeded demo data; log in as {username}')


if __name__ == '__main__':
    p = argparse.ArgumentParser()
    p.add_argument('--username', default='admin')
    p.add_argument('--password', default='admin123')
    args = p.parse_args()
    main(args.username, args.password)
