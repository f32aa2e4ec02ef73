# healthconnect/routers/notifications.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from .. import crud, schemas, security
from ..access import Actor
from ..database import get_db

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.NotificationResponse])
def list_my_notifications(
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """The caller's own notifications, newest first."""
    return crud.list_notifications(db, actor, unread_only=unread_only, skip=skip, limit=limit)


@router.get("/unread-count", response_model=schemas.UnreadCountResponse)
def unread_count(db: Session = Depends(get_db), actor: Actor = Depends(security.get_current_actor)):
    return {"unread": crud.count_unread_notifications(db, actor)}


@router.post("/read-all", response_model=schemas.MarkAllReadResponse)
def mark_all_read(db: Session = Depends(get_db), actor: Actor = Depends(security.get_current_actor)):
    try:
        updated = crud.mark_all_notifications_read(db, actor)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {"updated": updated}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read(
    notification_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    try:
        updated = crud.mark_notification_read(db, actor, notification_id)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
