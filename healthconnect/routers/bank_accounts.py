# healthconnect/routers/bank_accounts.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from .. import crud, schemas, security
from ..access import Actor
from ..database import get_db

router = APIRouter(
    prefix="/bank-accounts",
    tags=["Bank Accounts"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=List[schemas.BankAccountResponse])
def list_bank_accounts_endpoint(
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.get_current_actor)
):
    """Accounts a payment can be sent to. Inactive ones are only listed for admins."""
    return crud.list_bank_accounts(db, actor, include_inactive=include_inactive)


@router.post("", response_model=schemas.BankAccountResponse, status_code=status.HTTP_201_CREATED)
def create_bank_account_endpoint(
    account: schemas.BankAccountCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.require_admin)
):
    try:
        db_account = crud.create_bank_account(db, actor, account)
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to manage bank accounts.")
    return db_account


@router.patch("/{bank_account_id}", response_model=schemas.BankAccountResponse)
def update_bank_account_endpoint(
    bank_account_id: str,
    account_update: schemas.BankAccountUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(security.require_admin)
):
    try:
        db_account = crud.update_bank_account(db, actor, bank_account_id, account_update)
    except crud.ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except crud.CRUDError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if db_account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bank account not found")
    return db_account
