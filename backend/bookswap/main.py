from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookswap.api.routes import (
    auth,
    book_conditions,
    books,
    chats,
    disputes,
    exchange_points,
    exchanges,
    forums,
    listings,
    notifications,
    physical_books,
    points,
    users,
    wishlist,
)
from bookswap.core.config import settings
from bookswap.core.database import Database
from bookswap.core.errors import register_exception_handlers


logger = logging.getLogger(__name__)


def _resolve_api_prefix() -> str:
    api_prefix = settings.api_prefix
    if api_prefix is None:
        api_prefix = "" if (settings.root_path or "").strip() else "/api"
    return api_prefix.rstrip("/")


def create_app(database: Database | None = None) -> FastAPI:
    logging.basicConfig(level=settings.log_level)

    # 应用入口：初始化 FastAPI 实例
    app = FastAPI(title="BookSwap", root_path=settings.root_path or "")
    app.state.database = database or Database.from_settings(settings)

    # 配置 CORS，允许前端访问后端 API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # 注册业务路由
    api_prefix = _resolve_api_prefix()
    app.include_router(auth.router, prefix=f"{api_prefix}/auth", tags=["auth"])
    app.include_router(users.router, prefix=f"{api_prefix}/users", tags=["users"])
    app.include_router(books.router, prefix=f"{api_prefix}/books", tags=["books"])
    app.include_router(
        book_conditions.router, prefix=f"{api_prefix}/book-conditions", tags=["book-conditions"]
    )
    app.include_router(
        physical_books.router, prefix=f"{api_prefix}/physical-books", tags=["physical-books"]
    )
    app.include_router(listings.router, prefix=f"{api_prefix}/listings", tags=["listings"])
    app.include_router(exchanges.router, prefix=f"{api_prefix}/exchanges", tags=["exchanges"])
    app.include_router(disputes.router, prefix=f"{api_prefix}/disputes", tags=["disputes"])
    app.include_router(chats.router, prefix=f"{api_prefix}/chats", tags=["chats"])
    app.include_router(forums.router, prefix=api_prefix, tags=["forums"])
    app.include_router(
        exchange_points.router, prefix=f"{api_prefix}/exchange-points", tags=["exchange-points"]
    )
    app.include_router(points.router, prefix=api_prefix, tags=["points"])
    app.include_router(wishlist.router, prefix=f"{api_prefix}/wishlist", tags=["wishlist"])
    app.include_router(
        notifications.router, prefix=f"{api_prefix}/notifications", tags=["notifications"]
    )

    # 启动事件：创建数据库表结构
    @app.on_event("startup")
    def on_startup() -> None:
        app.state.database.create_all()
        logger.info(f"BookSwap API ready ({settings.app_env}) under '{api_prefix or '/'}'")

    # 关闭事件：释放连接池
    @app.on_event("shutdown")
    def on_shutdown() -> None:
        app.state.database.dispose()

    return app


app = create_app()
