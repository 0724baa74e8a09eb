from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cloudimega.core.config import settings

# SQLite specific configuration for multi-threading
connect_args = {"check_same_thread": False} if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    pool_pre_ping=True,
    connect_args=connect_args
)
# Loaded rows stay readable after a commit even if another request deletes them;
# callers that need fresh state re-query or call db.refresh()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
