"""Sync source management endpoints"""

import json
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from boardsync.models import BoardAccount, SyncSource, TrackerInstance
from boardsync.models.base import get_db

router = APIRouter(prefix="/api/sources", tags=["sources"])


class SyncSourceCreate(BaseModel):
    # Optional: if omitted/blank, a name is generated from the project and list
    name: Optional[str] = None
    tracker_instance_id: int
    project_id: str
    board_account_id: int
    target_list_id: str
    # Redmine tracker name -> Trello label color
    color_map: Dict[str, str] = {}
    sync_enabled: bool = True


class SyncSourceResponse(BaseModel):
    id: int
    name: str
    tracker_instance_id: int
    project_id: str
    board_account_id: int
    target_list_id: str
    color_map: Dict[str, str]
    sync_enabled: bool
    created_at: datetime
    updated_at: datetime


def _to_response(source: SyncSource) -> SyncSourceResponse:
    return SyncSourceResponse(
        id=source.id,
        name=source.name,
        tracker_instance_id=source.tracker_instance_id,
        project_id=source.project_id,
        board_account_id=source.board_account_id,
        target_list_id=source.target_list_id,
        color_map=source.get_color_map(),
        sync_enabled=bool(source.sync_enabled),
        created_at=source.created_at,
        updated_at=source.updated_at,
    )


def _check_references(db: Session, payload: SyncSourceCreate):
    if not db.query(TrackerInstance).filter(TrackerInstance.id == payload.tracker_instance_id).first():
        raise HTTPException(status_code=400, detail="Unknown tracker_instance_id")
    if not db.query(BoardAccount).filter(BoardAccount.id == payload.board_account_id).first():
        raise HTTPException(status_code=400, detail="Unknown board_account_id")


def _resolve_name(db: Session, payload: SyncSourceCreate, exclude_id: Optional[int] = None) -> str:
    requested = (payload.name or "").strip()
    base = requested or f"project {payload.project_id} -> list {payload.target_list_id}"
    q = db.query(SyncSource).filter(SyncSource.name == base)
    if exclude_id is not None:
        q = q.filter(SyncSource.id != exclude_id)
    if q.first() is None:
        return base
    if requested:
        raise HTTPException(status_code=400, detail="Source name already exists")
    suffix = 2
    while db.query(SyncSource).filter(SyncSource.name == f"{base} ({suffix})").first():
        suffix += 1
    return f"{base} ({suffix})"


def _get_or_404(db: Session, source_id: int) -> SyncSource:
    source = db.query(SyncSource).filter(SyncSource.id == source_id).first()
    if not source:
        raise HTTPException(status_code=404, detail="Source not found")
    return source


@router.get("/", response_model=List[SyncSourceResponse])
def list_sources(db: Session = Depends(get_db)):
    """List all sync sources"""
    return [_to_response(s) for s in db.query(SyncSource).all()]


@router.post("/", response_model=SyncSourceResponse)
def create_source(payload: SyncSourceCreate, db: Session = Depends(get_db)):
    """Create a sync source"""
    _check_references(db, payload)
    data = payload.model_dump()
    data["name"] = _resolve_name(db, payload)
    data["color_map"] = json.dumps(payload.color_map, sort_keys=True)
    source = SyncSource(**data)
    db.add(source)
    db.commit()
    db.refresh(source)
    return _to_response(source)


@router.get("/{source_id}", response_model=SyncSourceResponse)
def get_source(source_id: int, db: Session = Depends(get_db)):
    """Get a specific sync source"""
    return _to_response(_get_or_404(db, source_id))


@router.put("/{source_id}", response_model=SyncSourceResponse)
def update_source(source_id: int, payload: SyncSourceCreate, db: Session = Depends(get_db)):
    """Update a sync source"""
    source = _get_or_404(db, source_id)
    _check_references(db, payload)
    data = payload.model_dump()
    data["name"] = _resolve_name(db, payload, exclude_id=source_id)
    data["color_map"] = json.dumps(payload.color_map, sort_keys=True)
    for key, value in data.items():
        setattr(source, key, value)
    db.commit()
    db.refresh(source)
    return _to_response(source)


@router.delete("/{source_id}")
def delete_source(source_id: int, db: Session = Depends(get_db)):
    """Delete a sync source"""
    source = _get_or_404(db, source_id)
    db.delete(source)
    db.commit()
    return {"message": "Source deleted successfully"}
