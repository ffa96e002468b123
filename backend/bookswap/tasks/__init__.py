from bookswap.tasks.notifications import notify_wishlist_watchers
from bookswap.tasks.ledger import audit_ledger

# 对外导出任务函数
__all__ = [
    "notify_wishlist_watchers",
    "audit_ledger",
]
