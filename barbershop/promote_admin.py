#!/usr/bin/env python3
# barbershop/promote_admin.py
"""
Promote an existing account to admin.

Registration only ever creates customers, so the first admin comes from here.

Usage:
    python -m barbershop.promote_admin <email>
"""

import argparse
import logging
import sys

from sqlmodel import Session

from .core.accounts import promote_to_admin
from .core.errors import NotFound
from .db import engine

logger = logging.getLogger(__name__)


def promote(email: str, bind=engine) -> dict:
    with Session(bind) as session:
        user = promote_to_admin(session, email)
        return {"id": user.id, "email": user.email, "role": user.role}


def main(argv=None, bind=engine) -> int:
    parser = argparse.ArgumentParser(description="Promote an existing account to admin.")
    parser.add_argument("email")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        user = promote(args.email, bind=bind)
    except NotFound as exc:
        logger.error("%s", exc.reason)
        return 1

    logger.info("promoted to admin: %s", user)
    return 0


if __name__ == "__main__":
    sys.exit(main())
