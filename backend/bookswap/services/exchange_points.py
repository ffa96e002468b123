from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from bookswap.core.database import transaction
from bookswap.core.errors import NotAuthorizedError, NotFoundError, ValidationError
from bookswap.models import ExchangePoint


_EDITABLE = (
    "name",
    "description",
    "address",
    "latitude",
    "longitude",
    "contact_phone",
    "contact_email",
    "operating_hours",
)


def _check_coordinates(latitude: float | None, longitude: float | None) -> None:
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError("Latitude must be between -90 and 90.")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError("Longitude must be between -180 and 180.")


def list_points(db: Session) -> list[ExchangePoint]:
    return db.query(ExchangePoint).order_by(ExchangePoint.name.asc(), ExchangePoint.id.asc()).all()


def get_point(db: Session, point_id: str) -> ExchangePoint:
    point = db.get(ExchangePoint, point_id)
    if not point:
        raise NotFoundError("Exchange point not found.")
    return point


def create_point(db: Session, owner_id: str, fields: dict[str, Any]) -> ExchangePoint:
    _check_coordinates(fields.get("latitude"), fields.get("longitude"))
    now = datetime.utcnow()
    point = ExchangePoint(
        id=uuid4().hex,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
        **{key: fields.get(key) for key in _EDITABLE},
    )
    with transaction(db):
        db.add(point)
    return point


def _check_owner(point: ExchangePoint, user_id: str, is_admin: bool) -> None:
    if point.owner_id != user_id and not is_admin:
        raise NotAuthorizedError("Only the creator can change this exchange point.")


def update_point(
    db: Session, point_id: str, user_id: str, fields: dict[str, Any], is_admin: bool = False
) -> ExchangePoint:
    point = get_point(db, point_id)
    _check_owner(point, user_id, is_admin)
    _check_coordinates(fields.get("latitude"), fields.get("longitude"))
    with transaction(db):
        for key in _EDITABLE:
            if key in fields:
                setattr(point, key, fields[key])
        point.updated_at = datetime.utcnow()
    return point


def delete_point(db: Session, point_id: str, user_id: str, is_admin: bool = False) -> None:
    point = get_point(db, point_id)
    _check_owner(point, user_id, is_admin)
    with transaction(db):
        db.delete(point)
