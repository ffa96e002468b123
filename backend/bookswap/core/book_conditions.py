from __future__ import annotations

from typing import Dict, Tuple


# 实体书品相：key 为 API 稳定标识，points 为估值基准积分
BOOK_CONDITIONS: Dict[str, Dict[str, object]] = {
    "new": {"label": "New", "points": 20},
    "like_new": {"label": "Like new", "points": 15},
    "good": {"label": "Good", "points": 10},
    "fair": {"label": "Fair", "points": 8},
    "poor": {"label": "Poor", "points": 5},
}

# 兼容前端展示名与常见写法
LEGACY_CONDITION_MAP: Dict[str, str] = {
    "like new": "like_new",
    "like-new": "like_new",
    "likenew": "like_new",
    "brand_new": "new",
    "brand new": "new",
    "used": "good",
    "worn": "poor",
}

MAX_DEMAND_BONUS = 5
MAX_BOOK_POINTS = 20


def normalize_condition(value: str | None) -> str | None:
    if not value:
        return None
    candidate = value.strip().lower()
    if candidate in BOOK_CONDITIONS:
        return candidate
    return LEGACY_CONDITION_MAP.get(candidate)


def base_points(condition: str) -> int:
    return int(BOOK_CONDITIONS.get(condition, BOOK_CONDITIONS["good"])["points"])


def list_conditions() -> Tuple[dict[str, object], ...]:
    return tuple({"key": key, **meta} for key, meta in BOOK_CONDITIONS.items())
