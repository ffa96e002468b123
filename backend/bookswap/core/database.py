from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookswap.core.config import Settings


# ORM 基类：所有模型继承它
class Base(DeclarativeBase):
    pass


class Database:
    """Engine plus session factory.

    Built once per process (by ``create_app`` or by a Celery task), initialized
    with :meth:`create_all` and released with :meth:`dispose`.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    @classmethod
    def from_url(cls, url: str) -> "Database":
        if url.startswith("sqlite"):
            return cls(create_engine(url, connect_args={"check_same_thread": False}))
        return cls(create_engine(url, pool_pre_ping=True))

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "Database":
        if app_settings.database_url:
            return cls.from_url(app_settings.database_url)
        app_settings.ensure_dirs()
        return cls.from_url(f"sqlite:///{app_settings.sqlite_path}")

    # 初始化数据库表
    def create_all(self) -> None:
        import bookswap.models  # noqa: F401

        # For PostgreSQL, multiple gunicorn workers can race on create_all(),
        # causing DDL conflicts (e.g. duplicate pg_type). Use an advisory lock to serialize.
        if self.engine.dialect.name.startswith("postgres"):
            lock_id = 48151623
            with self.engine.connect() as conn:
                conn.execute(text("SELECT pg_advisory_lock(:lock_id)"), {"lock_id": lock_id})
                try:
                    Base.metadata.create_all(bind=conn)
                finally:
                    conn.execute(text("SELECT pg_advisory_unlock(:lock_id)"), {"lock_id": lock_id})
                conn.commit()
        else:
            Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import bookswap.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


# 单元事务：成功提交，异常回滚并继续抛出
@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# FastAPI 依赖：获取数据库会话
def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
