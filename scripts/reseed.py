import os
import sys

# Add the project root to sys.path to import models and config
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.base import Base, engine, SessionLocal
from main import seed_demo_data

def reseed():
    print("Starting database re-seeding...")

    print("Dropping and recreating schema...")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("Seeding demo data...")
        created = seed_demo_data(db)
        print(f"Database re-seeded successfully! ({created} demo assets)")
    except Exception as e:
        print(f"ERROR: Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    reseed()
