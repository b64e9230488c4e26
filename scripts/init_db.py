"""Create tables and the platform super admin"""
import logging

from app.db.init_db import init_db, seed_superadmin
from app.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> None:
    init_db()
    logger.info("Database tables created")
    db = SessionLocal()
    try:
        seed_superadmin(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
