"""Trello account management endpoints"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from boardsync.models import BoardAccount, SyncSource
from boardsync.models.base import get_db

router = APIRouter(prefix="/api/boards", tags=["boards"])


class BoardAccountCreate(BaseModel):
    name: str
    app_key: str
    user_token: str
    description: Optional[str] = None


class BoardAccountResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


def _get_or_404(db: Session, account_id: int) -> BoardAccount:
    account = db.query(BoardAccount).filter(BoardAccount.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Board account not found")
    return account


@router.get("/", response_model=List[BoardAccountResponse])
def list_board_accounts(db: Session = Depends(get_db)):
    """List all Trello accounts"""
    return db.query(BoardAccount).all()


@router.post("/", response_model=BoardAccountResponse)
def create_board_account(account: BoardAccountCreate, db: Session = Depends(get_db)):
    """Register Trello credentials"""
    existing = db.query(BoardAccount).filter(BoardAccount.name == account.name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Board account name already exists")

    db_account = BoardAccount(**account.model_dump())
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


@router.put("/{account_id}", response_model=BoardAccountResponse)
def update_board_account(account_id: int, account: BoardAccountCreate, db: Session = Depends(get_db)):
    """Update Trello credentials"""
    db_account = _get_or_404(db, account_id)
    for key, value in account.model_dump().items():
        setattr(db_account, key, value)
    db.commit()
    db.refresh(db_account)
    return db_account


@router.delete("/{account_id}")
def delete_board_account(account_id: int, db: Session = Depends(get_db)):
    """Delete Trello credentials that no source uses"""
    account = _get_or_404(db, account_id)
    in_use = db.query(SyncSource).filter(SyncSource.board_account_id == account_id).first()
    if in_use:
        raise HTTPException(status_code=400, detail=f"Board account is used by source '{in_use.name}'")
    db.delete(account)
    db.commit()
    return {"message": "Board account deleted successfully"}
