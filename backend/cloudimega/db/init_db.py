import logging

from sqlalchemy.orm import Session

from cloudimega import crud, schemas
from cloudimega.db.base import Base
from cloudimega.db.session import engine

logger = logging.getLogger(__name__)


def create_tables() -> None:
    # Create tables for development (in production use Alembic)
    Base.metadata.create_all(bind=engine)


def init_db(db: Session, *, admin_email: str, admin_password: str) -> None:
    create_tables()

    user = crud.user.get_by_email(db, email=admin_email)
    if user:
        logger.info("Admin user already exists")
        return

    user_in = schemas.UserCreate(
        username="admin",
        email=admin_email,
        password=admin_password,
    )
    user = crud.user.create(db, obj_in=user_in, is_admin=True)
    logger.info("Admin user created: %s", user.email)
