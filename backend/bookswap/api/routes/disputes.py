from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from bookswap.core.auth import UserContext, get_current_user, require_admin
from bookswap.core.database import get_db
from bookswap.core.schemas import DisputeOut, DisputeResolution
from bookswap.services import disputes


router = APIRouter()


@router.get("/{dispute_id}", response_model=DisputeOut)
def get_dispute(
    dispute_id: str,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> DisputeOut:
    dispute = disputes.get_visible(db, dispute_id, user.user_id, user.is_admin)
    return DisputeOut.model_validate(dispute)


@router.put("/{dispute_id}/review", response_model=DisputeOut)
def review_dispute(
    dispute_id: str,
    db: Session = Depends(get_db),
    operator: UserContext = Depends(require_admin),
) -> DisputeOut:
    return DisputeOut.model_validate(disputes.start_review(db, dispute_id, operator.user_id))


@router.put("/{dispute_id}/resolve", response_model=DisputeOut)
def resolve_dispute(
    dispute_id: str,
    payload: DisputeResolution | None = Body(default=None),
    db: Session = Depends(get_db),
    operator: UserContext = Depends(require_admin),
) -> DisputeOut:
    resolution = payload.resolution if payload else None
    return DisputeOut.model_validate(disputes.resolve(db, dispute_id, operator.user_id, resolution))


@router.put("/{dispute_id}/close", response_model=DisputeOut)
def close_dispute(
    dispute_id: str,
    payload: DisputeResolution | None = Body(default=None),
    db: Session = Depends(get_db),
    operator: UserContext = Depends(require_admin),
) -> DisputeOut:
    resolution = payload.resolution if payload else None
    return DisputeOut.model_validate(disputes.close(db, dispute_id, operator.user_id, resolution))
