import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from telehealth.core.config import settings
from telehealth.core.exceptions import handle_storage_error

logger = logging.getLogger(__name__)

# Check if using SQLite
is_sqlite = settings.DATABASE_URL.lower().startswith("sqlite")

if is_sqlite:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False}
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.DEBUG
    )

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False
)

# Base model
Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session, operation: str) -> None:
    """Commit the unit of work; roll back and raise StorageError on failure"""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_storage_error(e, operation) from e


def init_db(bind=None):
    """Initialize database tables"""
    # Register every mapped table on Base.metadata
    import telehealth.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


def close_db():
    """Close database connections"""
    engine.dispose()
