"""CLI script exporting applications or students to CSV.

Usage: python scripts/export_csv.py applications|students [--status STATUS] [-o out.csv]
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
from campusdesk.utils import exporters


def build(kind: str, status: Optional[str] = None) -> str:
    create_db_and_tables()
    with Session(engine) as session:
        if kind == 'applications':
            svc = services.AdmissionService(session)
            return exporters.applications_csv(svc.apps.all(svc.apps.listing(status=status)))
        svc = services.StudentService(session)
        return exporters.students_csv(svc.students.all(svc.students.listing(status=status)))


if __name__ == '__main__':
    p = argparse.ArgumentParser()
    p.add_argument('kind', choices=['applications', 'students'])
    p.add_argument('--status', default=None)
    p.add_argument('-o', '--output', type=pathlib.Path, default=None, help='write to a file instead of stdout')
    args = p.parse_args()
    text = build(args.kind, status=args.status)
    if args.output:
        args.output.write_text(text, encoding='utf-8')
        print(f'Wrote {args.output}')
    else:
        sys.stdout.write(text)
