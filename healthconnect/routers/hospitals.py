# healthconnect/routers/hospitals.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import schemas
from ..database import get_db
from ..services import hospital_directory

router = APIRouter(
    prefix="/hospitals",
    tags=["Hospitals"],
)


@router.get("", response_model=List[schemas.HospitalResponse])
def search_hospitals(search: Optional[str] = None, db: Session = Depends(get_db)):
    """Public directory, filtered by city, state or zip code."""
    return hospital_directory.list_hospitals(db, search)


@router.get("/nearby", response_model=List[schemas.HospitalResponse])
def nearby_hospitals(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    results = []
    for hospital, distance in hospital_directory.find_nearby_hospitals(db, lat, lng, limit):
        item = schemas.HospitalResponse.model_validate(hospital)
        item.distance = distance
        results.append(item)
    return results
