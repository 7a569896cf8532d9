import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

# -----------------------
# Database URL
# -----------------------
DATABASE_URL = settings.sqlalchemy_url
url = make_url(DATABASE_URL)
IS_SQLITE = url.get_backend_name() == "sqlite"

# Hide password in logs
logger.info(f"Connecting to database: {url.render_as_string(hide_password=True)}")

# -----------------------
# SQLAlchemy engine
# -----------------------
if IS_SQLITE:
    # In-memory databases must share one connection across threads
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=settings.debug,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        connect_args={"connect_timeout": 5},
    )


# -----------------------
# Connection settings
# -----------------------
@event.listens_for(engine, "connect")
def on_connect(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    if IS_SQLITE:
        cursor.execute("PRAGMA foreign_keys=ON")
    else:
        cursor.execute("SET timezone='UTC'")
    cursor.close()


# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# -----------------------
# Dependency for FastAPI
# -----------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error occurred: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()
