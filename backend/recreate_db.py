"""
Script to recreate the database schema and load the demo kiosk
"""
from sqlalchemy.exc import SQLAlchemyError

from kiosk_pos.core.database import SessionLocal, engine
from kiosk_pos.models.kiosk import Base
from kiosk_pos.services.seed import seed_demo
import kiosk_pos.models  # noqa: F401


def recreate_db():
    print("Recreating database...")

    print("Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)

    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    print("Seeding demo data...")
    db = SessionLocal()
    try:
        seed_demo(db)
    except SQLAlchemyError as e:
        print(f"Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    print("Database recreated successfully!")
    print("\nLogin credentials:")
    print("   Email: owner@demo.com")
    print("   Password: secret123")
    print("   Kiosk: demo")


if __name__ == "__main__":
    recreate_db()
