from sqlalchemy.orm import Session
from typing import Dict, Iterable
from app.models.profiles import Profile
from app.schemas.expense_schema import ProfileSnippet


def get_profiles(db: Session, user_ids: Iterable[str]) -> Dict[str, ProfileSnippet]:
    """Get display profiles keyed by user ID; unknown IDs are simply absent"""
    ids = list(set(user_ids))
    if not ids:
        return {}

    profiles = db.query(Profile).filter(Profile.id.in_(ids)).all()
    return {profile.id: ProfileSnippet.model_validate(profile) for profile in profiles}


def profile_lookup(db: Session):
    """Bind a session into a lookup callable for the presentation layer"""
    def lookup(user_ids: Iterable[str]) -> Dict[str, ProfileSnippet]:
        return get_profiles(db, user_ids)
    return lookup
