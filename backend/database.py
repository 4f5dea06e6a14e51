# backend/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# 1. Database address from the environment / .env, SQLite by default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosted Postgres still hands out postgres:// URLs, SQLAlchemy needs postgresql://
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)


# 3. Per-backend connection options
def create_db_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    db_engine = create_engine(
        url, connect_args={"check_same_thread": False, "timeout": 30}, pool_pre_ping=True
    )

    # SQLite ignores FOR UPDATE and pysqlite delays BEGIN until the first write,
    # so approval/dispatch reads would run outside any lock. Take the write lock
    # when the transaction starts instead; a second writer waits up to `timeout`.
    @event.listens_for(db_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return db_engine


engine = create_db_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# One session per HTTP call; anything not committed is rolled back on close
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every model on Base.metadata before creating tables
    import models.users  # noqa: F401
    import models.material  # noqa: F401
    import models.supplier  # noqa: F401
    import models.stock_entry  # noqa: F401
    import models.request  # noqa: F401
    import models.stock  # noqa: F401
    import models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)
