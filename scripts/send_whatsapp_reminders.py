#!/usr/bin/env python3
"""
WhatsApp Reminder Job

Sends boleto reminders (PENDING due today, OVERDUE within the last 7 days)
and smart reorder reminders for customers who opted in. Prints a JSON
report per job.

Usage:
  python scripts/send_whatsapp_reminders.py [--only boletos|smart] [--dry-run]

Exit code is 1 when any message failed to send.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from atacado.db.database import SessionLocal
from atacado.services import reminder_service

logger = logging.getLogger("atacado.scripts.send_whatsapp_reminders")


def run(only: str | None = None, dry_run: bool = False) -> dict:
    db = SessionLocal()
    try:
        return reminder_service.run_reminders(db, only=only, dry_run=dry_run)
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Send WhatsApp boleto and reorder reminders")
    parser.add_argument("--only", choices=reminder_service.ONLY_CHOICES, default=None)
    parser.add_argument("--dry-run", action="store_true", help="list the messages without sending")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
    result = run(only=args.only, dry_run=args.dry_run)
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    failed = sum(job.get('failed', 0) for key, job in result.items() if isinstance(job, dict))
    logger.info("reminders_done failed=%d dry_run=%s", failed, args.dry_run)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
