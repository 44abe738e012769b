"""Redmine instance management endpoints"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from boardsync.models import SyncSource, TrackerInstance
from boardsync.models.base import get_db

router = APIRouter(prefix="/api/trackers", tags=["trackers"])


class TrackerInstanceCreate(BaseModel):
    name: str
    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    description: Optional[str] = None


class TrackerInstanceResponse(BaseModel):
    id: int
    name: str
    url: str
    username: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


def _get_or_404(db: Session, tracker_id: int) -> TrackerInstance:
    tracker = db.query(TrackerInstance).filter(TrackerInstance.id == tracker_id).first()
    if not tracker:
        raise HTTPException(status_code=404, detail="Tracker not found")
    return tracker


@router.get("/", response_model=List[TrackerInstanceResponse])
def list_trackers(db: Session = Depends(get_db)):
    """List all Redmine instances"""
    return db.query(TrackerInstance).all()


@router.post("/", response_model=TrackerInstanceResponse)
def create_tracker(tracker: TrackerInstanceCreate, db: Session = Depends(get_db)):
    """Register a Redmine instance"""
    existing = db.query(TrackerInstance).filter(TrackerInstance.name == tracker.name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Tracker name already exists")

    db_tracker = TrackerInstance(**tracker.model_dump())
    db.add(db_tracker)
    db.commit()
    db.refresh(db_tracker)
    return db_tracker


@router.get("/{tracker_id}", response_model=TrackerInstanceResponse)
def get_tracker(tracker_id: int, db: Session = Depends(get_db)):
    """Get a specific Redmine instance"""
    return _get_or_404(db, tracker_id)


@router.put("/{tracker_id}", response_model=TrackerInstanceResponse)
def update_tracker(tracker_id: int, tracker: TrackerInstanceCreate, db: Session = Depends(get_db)):
    """Update a Redmine instance"""
    db_tracker = _get_or_404(db, tracker_id)
    for key, value in tracker.model_dump().items():
        setattr(db_tracker, key, value)
    db.commit()
    db.refresh(db_tracker)
    return db_tracker


@router.delete("/{tracker_id}")
def delete_tracker(tracker_id: int, db: Session = Depends(get_db)):
    """Delete a Redmine instance that no source uses"""
    tracker = _get_or_404(db, tracker_id)
    in_use = db.query(SyncSource).filter(SyncSource.tracker_instance_id == tracker_id).first()
    if in_use:
        raise HTTPException(status_code=400, detail=f"Tracker is used by source '{in_use.name}'")
    db.delete(tracker)
    db.commit()
    return {"message": "Tracker deleted successfully"}
