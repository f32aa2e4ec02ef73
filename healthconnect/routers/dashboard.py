# healthconnect/routers/dashboard.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas, security
from ..access import Actor
from ..database import get_db

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=schemas.UserDashboardResponse)
def user_dashboard(db: Session = Depends(get_db), actor: Actor = Depends(security.get_current_actor)):
    return crud.get_user_dashboard(db, actor)


@router.get("/admin/dashboard", response_model=schemas.AdminDashboardResponse)
def admin_dashboard(db: Session = Depends(get_db), actor: Actor = Depends(security.require_admin)):
    """Every consultation with its owner's name, plus booking and revenue totals."""
    try:
        dashboard = crud.get_admin_dashboard(db, actor)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if dashboard is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")
    return dashboard
