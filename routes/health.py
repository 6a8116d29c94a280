from __future__ import annotations

import logging
import os
from typing import Optional

import psycopg2
from fastapi import APIRouter

from db import get_conn
from services.errors import StorageError
from settings import settings

router = APIRouter(tags=["health"])
logger = logging.getLogger("vendorpay.health")

MIGRATION_REVISION = "0001_baseline_schema"
REQUIRED_TABLES = ("users", "vendors", "payouts", "payout_audits")


def _check_readiness() -> tuple[bool, Optional[str], list[str]]:
    """Returns (db reachable, applied alembic revision, missing workflow tables)."""
    try:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT to_regclass('public.alembic_version');")
                revision = None
                if cur.fetchone()[0]:
                    cur.execute("SELECT version_num FROM alembic_version LIMIT 1;")
                    row = cur.fetchone()
                    revision = row[0] if row else None

                missing = []
                for table in REQUIRED_TABLES:
                    cur.execute("SELECT to_regclass(%s);", (f"public.{table}",))
                    if not cur.fetchone()[0]:
                        missing.append(table)
        return True, revision, missing
    except (psycopg2.Error, StorageError) as exc:
        logger.warning("readiness check failed pgcode=%s", getattr(exc, "pgcode", None))
        return False, None, list(REQUIRED_TABLES)


@router.get("/health")
def health():
    return {
        "ok": True,
        "env": settings.ENV,
        "version": os.getenv("APP_VERSION", "1.0.0"),
    }


@router.get("/readyz")
def readyz():
    db_ok, revision, missing = _check_readiness()
    migrations_ok = db_ok and revision == MIGRATION_REVISION and not missing
    return {
        "ready": bool(migrations_ok),
        "db_ok": db_ok,
        "migrations_ok": migrations_ok,
        "migration_revision": MIGRATION_REVISION,
        "applied_revision": revision,
        "missing_tables": missing,
    }
