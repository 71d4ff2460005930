"""
GPS geofence validation for check-in and check-out.

A fix is accepted when its reported accuracy is good enough and it lies
within the radius of the nearest active office. Check-out uses a wider
radius than check-in. With no active offices configured, the default
office from settings is used.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional

from walkin.core.config import Settings, settings as default_settings
from walkin.services.formatting import format_meters, round_half_up

EARTH_RADIUS_M = 6371000

CheckKind = Literal["check_in", "check_out"]

# Device-side errors are reported by clients; the server raises the last three.
GPS_ERROR_TYPES = (
    "PERMISSION_DENIED",
    "POSITION_UNAVAILABLE",
    "TIMEOUT",
    "LOW_ACCURACY",
    "OUT_OF_RANGE",
    "UNKNOWN",
)

_KIND_LABELS = {"check_in": "출근", "check_out": "퇴근"}


@dataclass(frozen=True)
class GPSPolicy:
    check_in_radius: float
    check_out_radius: float
    max_accuracy: float
    default_lat: float
    default_lng: float

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "GPSPolicy":
        config = config or default_settings
        return cls(
            check_in_radius=config.CHECK_IN_RADIUS,
            check_out_radius=config.CHECK_OUT_RADIUS,
            max_accuracy=config.MAX_ACCURACY,
            default_lat=config.OFFICE_LAT,
            default_lng=config.OFFICE_LNG,
        )


@dataclass(frozen=True)
class Fence:
    """The office a fix is measured against"""
    lat: float
    lng: float
    radius: float
    office_id: Optional[str] = None
    office_name: Optional[str] = None


@dataclass
class GeofenceResult:
    is_valid: bool
    location: dict[str, float]
    distance: Optional[float] = None
    office_id: Optional[str] = None
    office_name: Optional[str] = None
    error: Optional[dict[str, str]] = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "location": self.location,
            "distance": self.distance,
            "office_id": self.office_id,
            "office_name": self.office_name,
            "error": self.error,
        }


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in meters"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def _radius_for(office: Any, kind: CheckKind) -> float:
    return office.check_in_radius if kind == "check_in" else office.check_out_radius


def nearest_fence(
    lat: float,
    lng: float,
    kind: CheckKind,
    offices: Iterable[Any],
    policy: GPSPolicy,
) -> tuple[Fence, float]:
    """Pick the closest active office; fall back to the policy default."""
    best: Optional[tuple[Fence, float]] = None
    for office in offices:
        if not office.is_active:
            continue
        distance = calculate_distance(lat, lng, office.lat, office.lng)
        if best is None or distance < best[1]:
            fence = Fence(
                lat=office.lat,
                lng=office.lng,
                radius=_radius_for(office, kind),
                office_id=office.id,
                office_name=office.name,
            )
            best = (fence, distance)

    if best is not None:
        return best

    radius = policy.check_in_radius if kind == "check_in" else policy.check_out_radius
    fence = Fence(lat=policy.default_lat, lng=policy.default_lng, radius=radius)
    return fence, calculate_distance(lat, lng, fence.lat, fence.lng)


def validate_position(
    kind: CheckKind,
    lat: float,
    lng: float,
    accuracy: float,
    offices: Iterable[Any] = (),
    policy: Optional[GPSPolicy] = None,
) -> GeofenceResult:
    policy = policy or GPSPolicy.from_settings()
    location = {"lat": lat, "lng": lng, "accuracy": accuracy}

    if accuracy > policy.max_accuracy:
        return GeofenceResult(
            is_valid=False,
            location=location,
            error={
                "type": "LOW_ACCURACY",
                "message": (
                    f"GPS 정확도가 낮습니다 ({int(round_half_up(accuracy))}m). "
                    f"정확도가 {format_meters(policy.max_accuracy)}m 이내여야 합니다."
                ),
            },
        )

    fence, distance = nearest_fence(lat, lng, kind, offices, policy)
    result = GeofenceResult(
        is_valid=True,
        location=location,
        distance=distance,
        office_id=fence.office_id,
        office_name=fence.office_name,
    )

    if distance > fence.radius:
        result.is_valid = False
        result.error = {
            "type": "OUT_OF_RANGE",
            "message": (
                f"회사로부터 {int(round_half_up(distance))}m 거리에 있습니다. "
                f"{_KIND_LABELS[kind]}은 {format_meters(fence.radius)}m 이내에서만 가능합니다."
            ),
        }

    return result
