# healthconnect/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import crud, schemas, security, models
from ..access import Actor
from ..config import get_settings
from ..database import get_db
from ..limiter import limiter, auth_rate_limit

import logging

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


def _token_response(user: models.User) -> dict:
    access_token = security.create_access_token(data={"sub": user.id, "email": user.email})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": get_settings().access_token_expire_minutes * 60,
        "user": user,
    }


@router.post("/signup", response_model=schemas.TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit)
def signup(request: Request, payload: schemas.SignupRequest, db: Session = Depends(get_db)):
    """Create an identity and its profile, and log it in."""
    try:
        user = crud.register_identity(db, email=payload.email, password=payload.password, full_name=payload.full_name)
    except crud.ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return _token_response(crud.get_user(db, user.id))


@router.post("/token", response_model=schemas.TokenResponse)
@limiter.limit(auth_rate_limit)
def login_for_access_token(request: Request, db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    user = crud.authenticate(db, email=form_data.username, password=form_data.password)
    if not user:
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"User {user.id} successfully authenticated.")
    return _token_response(crud.get_user(db, user.id))


@router.get("/me", response_model=schemas.ProfileResponse)
def read_my_profile(actor: Actor = Depends(security.get_current_actor), db: Session = Depends(get_db)):
    profile = crud.get_profile(db, actor.user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.patch("/me", response_model=schemas.ProfileResponse)
def update_my_profile(
    profile_update: schemas.ProfileUpdate,
    actor: Actor = Depends(security.get_current_actor),
    db: Session = Depends(get_db),
):
    try:
        profile = crud.update_profile(db, actor, profile_update)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile
