"""
Office locations used as check-in/check-out geofences
"""
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from walkin.core.db import OfficeLocation, utcnow
from walkin.core.logger import get_logger
from walkin.services.errors import NotFoundError, ValidationError

logger = get_logger("offices")

DEFAULT_OFFICES = [
    {
        "name": "본사",
        "address": "서울특별시 중구",
        "lat": 37.5665,
        "lng": 126.9780,
        "check_in_radius": 1000,
        "check_out_radius": 3000,
        "is_active": True,
    },
    {
        "name": "지사",
        "address": "서울특별시 강남구",
        "lat": 37.4979,
        "lng": 127.0276,
        "check_in_radius": 1000,
        "check_out_radius": 3000,
        "is_active": True,
    },
]

_EDITABLE_FIELDS = (
    "name", "address", "lat", "lng", "check_in_radius", "check_out_radius", "is_active",
)


def _check_coordinates(fields: dict) -> None:
    lat = fields.get("lat")
    lng = fields.get("lng")
    if lat is not None and not -90 <= lat <= 90:
        raise ValidationError("위도는 -90에서 90 사이여야 합니다")
    if lng is not None and not -180 <= lng <= 180:
        raise ValidationError("경도는 -180에서 180 사이여야 합니다")
    for key in ("check_in_radius", "check_out_radius"):
        if fields.get(key) is not None and fields[key] <= 0:
            raise ValidationError("반경은 0보다 커야 합니다")


def get_active_offices(db: Session) -> list[OfficeLocation]:
    return db.query(OfficeLocation).filter(OfficeLocation.is_active.is_(True)).all()


def get_all_offices(db: Session) -> list[OfficeLocation]:
    return db.query(OfficeLocation).order_by(OfficeLocation.created_at.asc()).all()


def get_office_by_id(db: Session, office_id: str) -> Optional[OfficeLocation]:
    return db.get(OfficeLocation, office_id)


def create_office(db: Session, **fields) -> OfficeLocation:
    _check_coordinates(fields)
    now = utcnow()
    office = OfficeLocation(
        id=uuid.uuid4().hex,
        created_at=now,
        updated_at=now,
        **{key: fields[key] for key in _EDITABLE_FIELDS if key in fields},
    )
    db.add(office)
    db.commit()
    logger.info(f"Office created: {office.id} ({office.name})")
    return office


def update_office(db: Session, office_id: str, **updates) -> OfficeLocation:
    office = get_office_by_id(db, office_id)
    if office is None:
        raise NotFoundError(f"Office {office_id} not found")

    updates = {key: value for key, value in updates.items() if key in _EDITABLE_FIELDS and value is not None}
    _check_coordinates(updates)
    for key, value in updates.items():
        setattr(office, key, value)
    office.updated_at = utcnow()
    db.commit()
    logger.info(f"Office updated: {office_id} ({', '.join(sorted(updates)) or 'no changes'})")
    return office


def delete_office(db: Session, office_id: str) -> None:
    office = get_office_by_id(db, office_id)
    if office is None:
        raise NotFoundError(f"Office {office_id} not found")
    db.delete(office)
    db.commit()
    logger.info(f"Office deleted: {office_id}")


def initialize_default_offices(db: Session) -> list[OfficeLocation]:
    """Seed the default offices if the table is empty; returns what was created"""
    if db.query(OfficeLocation).first() is not None:
        return []
    created = [create_office(db, **office) for office in DEFAULT_OFFICES]
    logger.info(f"Seeded {len(created)} default offices")
    return created
