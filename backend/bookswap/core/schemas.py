from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from bookswap.utils.isbn import normalize_isbn


BookCondition = Literal["new", "like_new", "good", "fair", "poor"]
ExchangeStatus = Literal["pending", "accepted", "rejected", "completed", "disputed"]
DisputeStatus = Literal["open", "in_review", "resolved", "closed"]
TransactionType = Literal["earned", "spent", "purchased", "refunded"]
ThreadType = Literal["discussion", "chapter_debate", "interpretation", "guidance"]


# API 统一使用 camelCase 字段名，Python 侧保持 snake_case
class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OkResponse(ApiModel):
    ok: bool = True


# ---------------------------------------------------------------- auth / users


class RegisterRequest(ApiModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("invalid email address")
        return value


class LoginRequest(ApiModel):
    email: str
    password: str


class RefreshRequest(ApiModel):
    refresh_token: str


class UserOut(ApiModel):
    id: str
    name: str
    email: str
    role: str
    created_at: Optional[datetime] = None


class RegisterResponse(ApiModel):
    user: UserOut


class TokenResponse(ApiModel):
    token: str
    refresh_token: str
    user: UserOut


class UserStats(ApiModel):
    current_points: int = 0
    total_books_listed: int = 0
    total_books_exchanged: int = 0
    average_rating: float = 0.0


class UserProfileOut(UserOut):
    stats: UserStats


class UserUpdate(ApiModel):
    name: str = Field(min_length=1, max_length=120)


# ---------------------------------------------------------------- catalog


class BookCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    isbn: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = None
    genre: Optional[str] = Field(default=None, max_length=100)

    @field_validator("isbn")
    @classmethod
    def _normalize_isbn(cls, value: Optional[str]) -> Optional[str]:
        return normalize_isbn(value)


class BookOut(ApiModel):
    id: str
    title: str
    author: str
    isbn: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    created_at: Optional[datetime] = None


class BookListResponse(ApiModel):
    books: List[BookOut] = Field(default_factory=list)


class PhysicalBookCreate(ApiModel):
    book_id: str
    condition: BookCondition
    location: str = Field(min_length=1, max_length=255)


class PhysicalBookUpdate(ApiModel):
    condition: Optional[BookCondition] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    is_available: Optional[bool] = None


class ValuationOut(ApiModel):
    id: str
    base_points: int
    demand_bonus: int
    final_points: int
    created_at: Optional[datetime] = None


class ListingImage(ApiModel):
    url: str = Field(min_length=1, max_length=2048)


class ListingSummary(ApiModel):
    id: str
    location: str
    images: List[ListingImage] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None


class PhysicalBookOut(ApiModel):
    id: str
    book_id: str
    owner_id: str
    condition: BookCondition
    location: str
    is_available: bool
    created_at: Optional[datetime] = None


class PhysicalBookDetail(PhysicalBookOut):
    book: BookOut
    owner_name: Optional[str] = None
    listing: Optional[ListingSummary] = None
    valuations: List[ValuationOut] = Field(default_factory=list)
    estimated_points: int


class PhysicalBookListResponse(ApiModel):
    total: int = 0
    physical_books: List[PhysicalBookDetail] = Field(default_factory=list)


class ListingCreate(ApiModel):
    physical_book_id: str
    location: str = Field(min_length=1, max_length=255)
    images: List[ListingImage] = Field(default_factory=list, max_length=10)


class ListingOut(ListingSummary):
    physical_book_id: str
    owner_id: str
    physical_book: Optional[PhysicalBookOut] = None
    book: Optional[BookOut] = None
    points: Optional[int] = None


class ListingListResponse(ApiModel):
    listings: List[ListingOut] = Field(default_factory=list)


class HistoryCreate(ApiModel):
    city: Optional[str] = Field(default=None, max_length=100)
    reading_start: Optional[date] = None
    reading_end: Optional[date] = None
    notes: Optional[str] = None
    tips: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("reading_start", "reading_end", mode="before")
    @classmethod
    def _blank_date(cls, value):
        if value == "":
            return None
        return value

    @model_validator(mode="after")
    def _check_range(self) -> "HistoryCreate":
        if self.reading_start and self.reading_end and self.reading_end < self.reading_start:
            raise ValueError("readingEnd must not be before readingStart")
        return self


class HistoryOut(ApiModel):
    id: str
    physical_book_id: str
    reader_id: str
    reader_name: str
    city: Optional[str] = None
    reading_start: Optional[date] = None
    reading_end: Optional[date] = None
    notes: Optional[str] = None
    tips: Optional[str] = None
    rating: Optional[int] = None
    created_at: Optional[datetime] = None


class ConditionOut(ApiModel):
    key: str
    label: str
    points: int


# ---------------------------------------------------------------- exchanges


class ExchangeCreate(ApiModel):
    physical_book_id: str


class ExchangeOut(ApiModel):
    id: str
    physical_book_id: str
    giver_id: str
    receiver_id: str
    points_charged: int
    status: ExchangeStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    book: Optional[BookOut] = None
    giver_name: Optional[str] = None
    receiver_name: Optional[str] = None


class ExchangeListResponse(ApiModel):
    total: int = 0
    exchanges: List[ExchangeOut] = Field(default_factory=list)


class DisputeCreate(ApiModel):
    reason: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class DisputeResolution(ApiModel):
    resolution: Optional[str] = None


class DisputeOut(ApiModel):
    id: str
    exchange_request_id: str
    reporter_id: str
    reason: str
    description: Optional[str] = None
    status: DisputeStatus
    resolution: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- points


class BalanceOut(ApiModel):
    user_id: str
    balance: int
    total_earned: int = 0
    total_spent: int = 0


class PointTransactionOut(ApiModel):
    id: str
    amount: int
    type: TransactionType
    description: Optional[str] = None
    exchange_request_id: Optional[str] = None
    created_at: Optional[datetime] = None


class PointTransactionListResponse(ApiModel):
    total: int = 0
    transactions: List[PointTransactionOut] = Field(default_factory=list)


class CardDetails(ApiModel):
    number: str = Field(min_length=12, max_length=23)
    expiry: str = Field(min_length=4, max_length=7)
    cvc: str = Field(min_length=3, max_length=4)
    name: Optional[str] = None


class BuyPointsRequest(ApiModel):
    points: int = Field(ge=1)
    card_details: CardDetails


class PaymentOut(ApiModel):
    id: str
    amount: int
    points_purchased: int
    status: str
    card_last4: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None


class BuyPointsResponse(ApiModel):
    payment: PaymentOut
    balance: int


# ---------------------------------------------------------------- forums


class ForumCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class ForumOut(ApiModel):
    id: str
    book_id: str
    title: str
    description: Optional[str] = None
    is_flagged: bool = False
    created_at: Optional[datetime] = None


class ForumListResponse(ApiModel):
    forums: List[ForumOut] = Field(default_factory=list)


class ThreadCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=10_000)
    thread_type: ThreadType = "discussion"
    chapter: Optional[int] = Field(default=None, ge=0)
    is_anonymous: bool = False


class ThreadOut(ApiModel):
    id: str
    forum_id: str
    author_id: Optional[str] = None
    author_name: str
    title: str
    content: str
    thread_type: ThreadType
    chapter: Optional[int] = None
    is_anonymous: bool
    is_flagged: bool
    created_at: Optional[datetime] = None


class ThreadListResponse(ApiModel):
    threads: List[ThreadOut] = Field(default_factory=list)


class PostCreate(ApiModel):
    content: str = Field(min_length=1, max_length=10_000)
    is_anonymous: bool = False
    chapter: Optional[int] = Field(default=None, ge=0)


class PostOut(ApiModel):
    id: str
    forum_id: str
    thread_id: Optional[str] = None
    author_id: Optional[str] = None
    author_name: str
    content: str
    chapter: Optional[int] = None
    is_anonymous: bool
    is_flagged: bool
    created_at: Optional[datetime] = None


class PostListResponse(ApiModel):
    posts: List[PostOut] = Field(default_factory=list)


# ---------------------------------------------------------------- chats


class ChatCreate(ApiModel):
    participant_ids: List[str] = Field(min_length=2, max_length=2)


class MessageCreate(ApiModel):
    message: str = Field(min_length=1, max_length=5_000)


class MessageOut(ApiModel):
    id: str
    chat_id: str
    sender_id: str
    content: str
    is_flagged: bool
    is_read: bool
    created_at: Optional[datetime] = None


class ChatOut(ApiModel):
    id: str
    participant_ids: List[str]
    other_participant_name: Optional[str] = None
    last_message: Optional[MessageOut] = None
    unread_count: int = 0
    created_at: Optional[datetime] = None


class ChatListResponse(ApiModel):
    total: int = 0
    chats: List[ChatOut] = Field(default_factory=list)


class MessageListResponse(ApiModel):
    total: int = 0
    messages: List[MessageOut] = Field(default_factory=list)


# ---------------------------------------------------------------- exchange points


class ExchangePointBase(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    address: str = Field(min_length=1, max_length=255)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    contact_phone: Optional[str] = Field(default=None, max_length=20)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    operating_hours: Optional[str] = Field(default=None, max_length=255)


class ExchangePointCreate(ExchangePointBase):
    pass


class ExchangePointUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    contact_phone: Optional[str] = Field(default=None, max_length=20)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    operating_hours: Optional[str] = Field(default=None, max_length=255)


class ExchangePointOut(ExchangePointBase):
    id: str
    owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- wishlist / notifications


class WishlistCreate(ApiModel):
    book_id: str
    notify_on_available: bool = True


class WishlistItemOut(ApiModel):
    id: str
    book_id: str
    notify_on_available: bool
    book: Optional[BookOut] = None
    created_at: Optional[datetime] = None


class WishlistResponse(ApiModel):
    items: List[WishlistItemOut] = Field(default_factory=list)


class NotificationOut(ApiModel):
    id: str
    kind: str
    message: str
    book_id: Optional[str] = None
    listing_id: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationListResponse(ApiModel):
    unread: int = 0
    notifications: List[NotificationOut] = Field(default_factory=list)
