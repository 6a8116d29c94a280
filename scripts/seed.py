# scripts/seed.py
from __future__ import annotations

import logging
import os

from app.vendors import repository as vendors_repo
from db import get_conn
from security import hash_password
from services.users import upsert_user

logger = logging.getLogger("seed")

DEMO_USERS = (
    ("SEED_OPS_EMAIL", "ops@demo.com", "SEED_OPS_PASSWORD", "ops123", "OPS"),
    ("SEED_FINANCE_EMAIL", "finance@demo.com", "SEED_FINANCE_PASSWORD", "fin123", "FINANCE"),
)

DEMO_VENDORS = (
    {"name": "Vendor Alpha", "upi_id": "alpha@upi", "bank_account": "1234567890", "ifsc": "HDFC0001234"},
    {"name": "Vendor Beta", "upi_id": "beta@paytm", "bank_account": "", "ifsc": ""},
)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with get_conn() as conn:
        for email_env, email_default, pw_env, pw_default, role in DEMO_USERS:
            email = os.getenv(email_env, email_default)
            user_id = upsert_user(
                conn,
                email=email,
                password_hash=hash_password(os.getenv(pw_env, pw_default)),
                role=role,
            )
            logger.info("user ready email=%s role=%s user_id=%s", email, role, user_id)

        if vendors_repo.list_vendors(conn):
            logger.info("vendors exist; skipping sample vendors")
        else:
            for v in DEMO_VENDORS:
                row = vendors_repo.create_vendor(conn, **v)
                logger.info("vendor created name=%s vendor_id=%s", row["name"], row["id"])

    logger.info("seed done")


if __name__ == "__main__":
    main()
