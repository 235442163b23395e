#!/usr/bin/env python3
"""
Script to create (or reset) the owner user of a kiosk
Run this inside the Docker container: docker-compose exec backend python create_owner.py <slug> <email> <password>
"""
import logging
import sys
import os

# Add the backend directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy.exc import SQLAlchemyError

from kiosk_pos.core.database import SessionLocal
from kiosk_pos.core.roles import Role
from kiosk_pos.core.security import hash_password
from kiosk_pos.core.timeutils import kiosk_zone
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.user import User


logger = logging.getLogger("create_owner")


def create_owner(slug: str, email: str, password: str) -> int:
    db = SessionLocal()
    try:
        kiosk = db.query(Kiosk).filter(Kiosk.slug == slug).first()
        if not kiosk:
            logger.info("Creating kiosk '%s'...", slug)
            kiosk = Kiosk(name=slug, slug=slug, timezone=kiosk_zone(None).key)
            db.add(kiosk)
            db.flush()

        user = db.query(User).filter(User.kiosk_id == kiosk.id, User.email == email).first()
        if user:
            user.role = Role.owner.value
            user.hashed_password = hash_password(password)
            logger.info("User '%s' updated to owner role", email)
        else:
            user = User(
                email=email,
                hashed_password=hash_password(password),
                role=Role.owner.value,
                kiosk_id=kiosk.id,
            )
            db.add(user)
            logger.info("Owner '%s' created for kiosk '%s'", email, slug)
        db.commit()
        return 0
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating owner user")
        return 1
    finally:
        db.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    if len(sys.argv) != 4:
        print("usage: create_owner.py <kiosk-slug> <email> <password>")
        sys.exit(2)
    sys.exit(create_owner(*sys.argv[1:]))
