from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from .config import settings


def make_engine(url: str) -> Engine:
    """Движок для SQLite или PostgreSQL — различия диалектов только здесь."""
    if url.startswith("sqlite"):
        # check_same_thread=False — обязательно для работы SQLite из разных потоков FastAPI
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 15},
        )

        # Включение поддержки внешних ключей в SQLite
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(url, pool_pre_ping=True)


engine = make_engine(settings.resolved_database_url)

# SessionLocal — основной способ работы с БД
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Dependency для FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
