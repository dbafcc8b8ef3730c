#!/usr/bin/env python3
"""
Claims Intake Reference Data Seeder

Provisions plans, benefits, plan-benefit links, members and procedures so
the claims endpoints can be exercised locally. Optionally creates an
activated demo user.

Usage:
    python scripts/seed_reference_data.py [--database-url <url>] [--demo-user-email <email>]

Environment variables:
    DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/claims.db)
"""

import argparse
import logging
import os
from decimal import Decimal

from sqlalchemy import insert

from claims_intake.auth.passwords import hash_password
from claims_intake.db import create_store
from claims_intake.db.schema import (
    benefits,
    members,
    plans,
    plans_benefits,
    procedures,
    users,
)

logger = logging.getLogger("seed_reference_data")

PLANS = ["Essential Cover", "Family Plus"]

# name -> global annual limit
BENEFITS = {
    "Outpatient": Decimal("50000"),
    "Dental": Decimal("15000"),
    "Optical": Decimal("10000"),
    "Maternity": None,
}

# (plan, benefit) -> (plan annual limit, excluded)
PLAN_BENEFITS = {
    ("Essential Cover", "Outpatient"): (Decimal("1000"), False),
    ("Essential Cover", "Dental"): (Decimal("500"), False),
    ("Essential Cover", "Optical"): (None, False),
    ("Essential Cover", "Maternity"): (Decimal("80000"), True),
    ("Family Plus", "Outpatient"): (Decimal("5000"), False),
    ("Family Plus", "Dental"): (Decimal("2000"), False),
    ("Family Plus", "Optical"): (Decimal("1500"), False),
    ("Family Plus", "Maternity"): (Decimal("120000"), False),
}

# code -> (benefit, average cost)
PROCEDURES = {
    "OPD-CONSULT": ("Outpatient", Decimal("500")),
    "OPD-XRAY": ("Outpatient", Decimal("1200")),
    "DEN-FILL": ("Dental", Decimal("300")),
    "DEN-EXTRACT": ("Dental", Decimal("450")),
    "OPT-EXAM": ("Optical", Decimal("250")),
    "MAT-ANC": ("Maternity", Decimal("2500")),
}

# member number -> (plan, active)
MEMBERS = {
    "MBR-0001": ("Essential Cover", True),
    "MBR-0002": ("Essential Cover", False),
    "MBR-0003": ("Family Plus", True),
}


def seed(database_url: str, demo_user_email: str | None, demo_user_password: str) -> None:
    store = create_store(database_url)
    store.init_schema()

    with store.transaction() as conn:
        plan_ids = {
            name: conn.execute(insert(plans).values(name=name)).inserted_primary_key[0]
            for name in PLANS
        }
        benefit_ids = {
            name: conn.execute(
                insert(benefits).values(name=name, annual_limit=limit)
            ).inserted_primary_key[0]
            for name, limit in BENEFITS.items()
        }

        for (plan, benefit), (limit, excluded) in PLAN_BENEFITS.items():
            conn.execute(
                insert(plans_benefits).values(
                    plan_id=plan_ids[plan],
                    benefit_id=benefit_ids[benefit],
                    annual_limit=limit,
                    is_excluded=excluded,
                )
            )

        for code, (benefit, average_cost) in PROCEDURES.items():
            conn.execute(
                insert(procedures).values(
                    code=code, benefit_id=benefit_ids[benefit], average_cost=average_cost
                )
            )

        for number, (plan, active) in MEMBERS.items():
            member_id = conn.execute(
                insert(members).values(member_number=number, plan_id=plan_ids[plan], active=active)
            ).inserted_primary_key[0]
            logger.info(f"Member {number} -> id {member_id} ({'active' if active else 'inactive'})")

        if demo_user_email:
            conn.execute(
                insert(users).values(
                    name="Demo User",
                    email=demo_user_email.lower(),
                    activated=True,
                    password_hash=hash_password(demo_user_password),
                )
            )
            logger.info(f"Created activated demo user {demo_user_email}")

    logger.info(
        f"Seeded {len(PLANS)} plans, {len(BENEFITS)} benefits, "
        f"{len(PROCEDURES)} procedures, {len(MEMBERS)} members"
    )
    store.dispose()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed claims intake reference data")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL", "sqlite:///./data/claims.db"),
        help="SQLAlchemy database URL",
    )
    parser.add_argument("--demo-user-email", help="Create an activated demo user")
    parser.add_argument(
        "--demo-user-password",
        default="change-me-please",
        help="Password for the demo user",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    seed(args.database_url, args.demo_user_email, args.demo_user_password)


if __name__ == "__main__":
    main()
