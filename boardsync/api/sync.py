"""Sync management endpoints"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from boardsync.models import SyncedCard, SyncLog
from boardsync.models.base import get_db
from boardsync.services.cursor_store import get_cursor_store
from boardsync.services.errors import CursorError, SyncInProgressError
from boardsync.services.sync_service import SyncService

router = APIRouter(prefix="/api/sync", tags=["sync"])


class SyncLogResponse(BaseModel):
    id: int
    sync_source_id: Optional[int] = None
    remote_issue_id: Optional[str] = None
    card_id: Optional[str] = None
    status: str
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SyncedCardResponse(BaseModel):
    id: int
    target_list_id: str
    remote_issue_id: str
    card_id: str
    last_synced_at: datetime

    class Config:
        from_attributes = True


@router.post("/trigger")
def trigger_sync(db: Session = Depends(get_db)):
    """Run a sync now"""
    try:
        return SyncService(db).run()
    except SyncInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/cursor")
def get_cursor(db: Session = Depends(get_db)):
    """Show the last successful sync time (null before the first run)"""
    try:
        cursor = get_cursor_store(db).read()
    except CursorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"cursor": cursor.isoformat() if cursor else None}


@router.get("/logs", response_model=List[SyncLogResponse])
def list_sync_logs(
    limit: int = 100,
    sync_source_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """List sync logs, newest first"""
    query = db.query(SyncLog).order_by(SyncLog.created_at.desc())
    if sync_source_id:
        query = query.filter(SyncLog.sync_source_id == sync_source_id)
    return query.limit(limit).all()


@router.get("/synced-cards", response_model=List[SyncedCardResponse])
def list_synced_cards(target_list_id: Optional[str] = None, db: Session = Depends(get_db)):
    """List known issue -> card mappings"""
    query = db.query(SyncedCard).order_by(SyncedCard.last_synced_at.desc())
    if target_list_id:
        query = query.filter(SyncedCard.target_list_id == target_list_id)
    return query.all()
