from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from bookswap.core.config import settings
from bookswap.core.database import Database


# 任务进程独立持有数据库连接，结束即释放
@contextmanager
def task_session() -> Iterator[Session]:
    database = Database.from_settings(settings)
    db = database.session()
    try:
        yield db
    finally:
        db.close()
        database.dispose()
