import logging
import os

from cloudimega.db.init_db import init_db
from cloudimega.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def init() -> None:
    db = SessionLocal()
    try:
        init_db(
            db,
            admin_email=os.getenv("FIRST_ADMIN_EMAIL", "admin@example.com"),
            admin_password=os.getenv("FIRST_ADMIN_PASSWORD", "adminpassword"), # Change this in production!
        )
    finally:
        db.close()

if __name__ == "__main__":
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")
