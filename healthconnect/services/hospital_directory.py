# healthconnect/services/hospital_directory.py
import math
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models

EARTH_RADIUS_MILES = 3959


def great_circle_distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance between two coordinates in miles (Haversine formula), rounded to 0.1 mile"""
    lat1_rad = math.radians(float(lat1))
    lat2_rad = math.radians(float(lat2))
    delta_lat = math.radians(float(lat2) - float(lat1))
    delta_lon = math.radians(float(lon2) - float(lon1))

    a = math.sin(delta_lat / 2) ** 2 + \
        math.cos(lat1_rad) * math.cos(lat2_rad) * \
        math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_MILES * c, 1)


def list_hospitals(db: Session, search: Optional[str] = None) -> List[models.Hospital]:
    """All hospitals by name, optionally narrowed to a city, state or zip code substring."""
    query = db.query(models.Hospital)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            models.Hospital.city.ilike(pattern),
            models.Hospital.state.ilike(pattern),
            models.Hospital.zip_code.ilike(pattern),
        ))
    return query.order_by(models.Hospital.name).all()


def find_nearby_hospitals(
    db: Session,
    latitude: float,
    longitude: float,
    limit: Optional[int] = None,
) -> List[Tuple[models.Hospital, float]]:
    """Hospitals with known coordinates, closest first."""
    located = db.query(models.Hospital).filter(
        models.Hospital.latitude.isnot(None),
        models.Hospital.longitude.isnot(None),
    ).all()

    ranked = sorted(
        ((h, great_circle_distance_miles(latitude, longitude, h.latitude, h.longitude)) for h in located),
        key=lambda pair: pair[1],
    )
    return ranked[:limit] if limit else ranked
