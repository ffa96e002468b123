from __future__ import annotations

from fastapi import APIRouter

from bookswap.core.book_conditions import list_conditions
from bookswap.core.schemas import ConditionOut


router = APIRouter()


@router.get("", response_model=list[ConditionOut])
def get_book_conditions() -> list[ConditionOut]:
    return [ConditionOut(**item) for item in list_conditions()]
