from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Optional
from app.models.groups import Attendance, Event, GroupMember


def get_event(db: Session, event_id: str) -> Optional[Event]:
    """Get an event by ID"""
    return db.query(Event).filter(Event.id == event_id).first()


def is_group_member(db: Session, group_id: str, user_id: str) -> bool:
    """Check if user is member of the group"""
    member = db.query(GroupMember).filter(
        and_(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
    ).first()
    return member is not None


def get_user_group_ids(db: Session, user_id: str) -> List[str]:
    """Get IDs of all groups the user belongs to"""
    rows = db.query(GroupMember.group_id).filter(GroupMember.user_id == user_id).all()
    return [row.group_id for row in rows]


def get_group_event_ids(db: Session, group_ids: List[str]) -> List[str]:
    """Get IDs of all events held by the given groups"""
    if not group_ids:
        return []
    rows = db.query(Event.id).filter(Event.group_id.in_(group_ids)).all()
    return [row.id for row in rows]


def get_attendee_ids(db: Session, event_id: str) -> List[str]:
    """Get users who actually attended an event, ordered by user ID"""
    rows = db.query(Attendance.user_id).filter(
        and_(Attendance.event_id == event_id, Attendance.attended.is_(True))
    ).order_by(Attendance.user_id).distinct().all()
    return [row.user_id for row in rows]
