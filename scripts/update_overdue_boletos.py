#!/usr/bin/env python3
"""
Overdue Boleto Sweep

Runs once a day (cron at 00:00 Brasília): PENDING boletos whose due date
is before today become OVERDUE, together with their linked receivables.
Prints a JSON report:
  {success, updated, failed, total, details[{boleto_number, customer, days_overdue}]}

Reads the database the same way the API does (DATABASE_URL or POSTGRES_*).

Usage:
  python scripts/update_overdue_boletos.py [--dry-run] [--organization-id UUID]

Exit code is 1 when any update failed.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import uuid

from atacado import audit
from atacado.db.database import SessionLocal
from atacado.services import reminder_service

logger = logging.getLogger("atacado.scripts.update_overdue_boletos")


def run(dry_run: bool = False, organization_id: uuid.UUID | None = None) -> dict:
    db = SessionLocal()
    try:
        result = reminder_service.sweep_overdue_boletos(db, dry_run=dry_run, organization_id=organization_id)
        if result['updated']:
            audit.log_safely(
                db,
                action=audit.AuditAction.BOLETO_OVERDUE_SWEEP,
                target_type="boleto",
                organization_id=organization_id,
                metadata={"updated": result['updated'], "total": result['total']},
            )
        return result
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mark past-due boletos as OVERDUE")
    parser.add_argument("--dry-run", action="store_true", help="report without writing")
    parser.add_argument("--organization-id", type=uuid.UUID, default=None, help="limit to one organization")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
    result = run(dry_run=args.dry_run, organization_id=args.organization_id)
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0 if result['success'] else 1


if __name__ == '__main__':
    sys.exit(main())
