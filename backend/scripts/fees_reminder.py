"""CLI script listing overdue fees and fees falling due soon.

Each listed fee is also logged as a `fee_reminder` event so whatever
ships the service logs can act on it; `--dry-run` only prints.

Usage: python scripts/fees_reminder.py [--days 7] [--json] [--dry-run]
"""
import sys
import argparse
import json
import logging
import pathlib
# Ensure `backend/` is on sys.path so `campusdesk` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from campusdesk.database import engine, create_db_and_tables
from campusdesk import resources, services
from campusdesk.services.base import log_event


def main(days: int = 7, as_json: bool = False, dry_run: bool = False):
    create_db_and_tables()
    with Session(engine) as session:
        found = services.FeeService(session).reminders(days=days)
        report = {key: [resources.fee_resource(f) for f in rows] for key, rows in found.items()}
    if not dry_run:
        for key, fees in report.items():
            for fee in fees:
                log_event("fee_reminder", kind=key, fee_id=fee['id'], enroll_id=fee['student_enroll_id'],
                          due_date=fee['due_date'])
    if as_json:
        print(json.dumps(report, indent=2, default=str))
        return
    for key in ('overdue', 'upcoming'):
        print(f'{key}: {len(report[key])}')
        for fee in report[key]:
            print(f"  fee #{fee['id']} enroll={fee['student_enroll_id']} due={fee['due_date']} "
                  f"amount={fee['fee_amount']} status={fee['status']}")


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    p = argparse.ArgumentParser()
    p.add_argument('--days', type=int, default=7, help='look-ahead window for upcoming fees')
    p.add_argument('--json', action='store_true', help='print the report as JSON')
    p.add_argument('--dry-run', action='store_true', help='print only, do not log reminder events')
    args = p.parse_args()
    main(days=args.days, as_json=args.json, dry_run=args.dry_run)
