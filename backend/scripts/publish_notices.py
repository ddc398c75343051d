"""CLI script publishing draft notices whose notice date has arrived.

Meant to run from cron once a day. `--dry-run` lists the notices that
would be published and leaves them as drafts.

Usage: python scripts/publish_notices.py [--date 2025-01-15] [--json] [--dry-run]
"""
import sys
import argparse
import json
import logging
import pathlib
from datetime import date
# Ensure `backend/` is on sys.path so `campusdesk` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from campusdesk.database import engine, create_db_and_tables
from campusdesk import resources, services


def main(on: date = None, as_json: bool = False, dry_run: bool = False):
    create_db_and_tables()
    with Session(engine) as session:
        rows = services.NoticeService(session).publish_due(on=on, dry_run=dry_run)
        report = [resources.notice_resource(n) for n in rows]
    if as_json:
        print(json.dumps(report, indent=2, default=str))
        return report
    verb = 'would publish' if dry_run else 'published'
    print(f'{verb}: {len(report)}')
    for notice in report:
        print(f"  {notice['notice_no']} {notice['title']} (id={notice['id']}, date={notice['notice_date']})")
    return report


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    p = argparse.ArgumentParser()
    p.add_argument('--date', type=date.fromisoformat, default=None,
                   help='publish drafts dated on or before this day (default: today)')
    p.add_argument('--json', action='store_true', help='print the published notices as JSON')
    p.add_argument('--dry-run', action='store_true', help='list due notices without publishing them')
    args = p.parse_args()
    main(on=args.date, as_json=args.json, dry_run=args.dry_run)
