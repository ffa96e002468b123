from bookswap.api.routes.auth import router as auth_router
from bookswap.api.routes.users import router as users_router
from bookswap.api.routes.books import router as books_router
from bookswap.api.routes.book_conditions import router as book_conditions_router
from bookswap.api.routes.physical_books import router as physical_books_router
from bookswap.api.routes.listings import router as listings_router
from bookswap.api.routes.exchanges import router as exchanges_router
from bookswap.api.routes.disputes import router as disputes_router
from bookswap.api.routes.chats import router as chats_router
from bookswap.api.routes.forums import router as forums_router
from bookswap.api.routes.exchange_points import router as exchange_points_router
from bookswap.api.routes.points import router as points_router
from bookswap.api.routes.wishlist import router as wishlist_router
from bookswap.api.routes.notifications import router as notifications_router

# 对外导出路由
__all__ = [
    "auth_router",
    "users_router",
    "books_router",
    "book_conditions_router",
    "physical_books_router",
    "listings_router",
    "exchanges_router",
    "disputes_router",
    "chats_router",
    "forums_router",
    "exchange_points_router",
    "points_router",
    "wishlist_router",
    "notifications_router",
]
