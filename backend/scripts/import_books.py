"""CLI script to import library books from a CSV or JSON file.

Usage: python scripts/import_books.py books.csv [--category-id ID] [--dry-run]
"""
import sys
import argparse
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `campusdesk` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from campusdesk.database import engine, create_db_and_tables
from campusdesk import services
from campusdesk.utils.parsers import parse_file_to_books


def main(path: pathlib.Path, category_id: Optional[int] = None, dry_run: bool = False) -> int:
    if not path.exists():
        print(f'File not found: {path}')
        return 1
    try:
        rows = parse_file_to_books(path.read_bytes(), path.name)
    except ValueError as e:
        print(f'Could not parse {path.name}: {e}')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        result = services.LibraryService(session).import_books(rows, category_id=category_id, dry_run=dry_run)
    prefix = '[dry run] ' if dry_run else ''
    print(f"{prefix}Created {result['created']}, skipped {result['skipped']} duplicates")
    for err in result['errors']:
        print(f"  row {err['index']}: {err['error']}")
    return 0


if __name__ == '__main__':
    p = argparse.ArgumentParser()
    p.add_argument('path', type=pathlib.Path)
    p.add_argument('--category-id', type=int, default=None)
    p.add_argument('--dry-run', action='store_true')
    args = p.parse_args()
    sys.exit(main(args.path, category_id=args.category_id, dry_run=args.dry_run))
