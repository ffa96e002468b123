from bookswap.models.user import User
from bookswap.models.points import PointsBalance, PointTransaction
from bookswap.models.payment import PaymentTransaction
from bookswap.models.book import Book
from bookswap.models.physical_book import PhysicalBook
from bookswap.models.valuation import BookValuation
from bookswap.models.listing import Listing
from bookswap.models.exchange_request import ExchangeRequest
from bookswap.models.book_history import BookHistoryEntry
from bookswap.models.forum import Forum, ForumThread, ForumPost
from bookswap.models.chat import Chat, ChatMessage
from bookswap.models.dispute import Dispute
from bookswap.models.exchange_point import ExchangePoint
from bookswap.models.wishlist import WishlistItem
from bookswap.models.notification import Notification

__all__ = [
    "User",
    "PointsBalance",
    "PointTransaction",
    "PaymentTransaction",
    "Book",
    "PhysicalBook",
    "BookValuation",
    "Listing",
    "ExchangeRequest",
    "BookHistoryEntry",
    "Forum",
    "ForumThread",
    "ForumPost",
    "Chat",
    "ChatMessage",
    "Dispute",
    "ExchangePoint",
    "WishlistItem",
    "Notification",
]
