from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from audiotag.models import AudioFile, User, utcnow


# ----------------- Users -----------------
def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_open_id(db: Session, open_id: str) -> Optional[User]:
    return db.query(User).filter(User.open_id == open_id).first()


def upsert_user(db: Session, open_id: str, **fields: Any) -> User:
    """Insert the user or refresh the given fields; always bumps last_signed_in."""
    if not open_id:
        raise ValueError("User open_id is required for upsert")

    user = get_user_by_open_id(db, open_id)
    if user is None:
        user = User(open_id=open_id)
        db.add(user)
    for key, value in fields.items():
        if value is not None:
            setattr(user, key, value)
    user.last_signed_in = utcnow()
    db.commit()
    db.refresh(user)
    return user


# ----------------- Audio files -----------------
def create_audio_file(db: Session, **values: Any) -> AudioFile:
    audio_file = AudioFile(**values)
    db.add(audio_file)
    db.commit()
    db.refresh(audio_file)
    return audio_file


def get_audio_file_by_id(db: Session, file_id: int) -> Optional[AudioFile]:
    return db.query(AudioFile).filter(AudioFile.id == file_id).first()


def get_audio_files_by_ids(db: Session, file_ids: List[int]) -> Dict[int, AudioFile]:
    if not file_ids:
        return {}
    rows = db.query(AudioFile).filter(AudioFile.id.in_(set(file_ids))).all()
    return {row.id: row for row in rows}


def get_user_audio_files(
    db: Session,
    user_id: int,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> List[AudioFile]:
    query = db.query(AudioFile).filter(AudioFile.user_id == user_id)
    if start_time:
        query = query.filter(AudioFile.created_at >= start_time)
    if end_time:
        query = query.filter(AudioFile.created_at <= end_time)
    return query.order_by(AudioFile.created_at, AudioFile.id).all()


def update_audio_file(db: Session, file_id: int, values: Dict[str, Any], commit: bool = True) -> int:
    """Sparse update by id: ``None`` values are skipped, not written."""
    update_data = {k: v for k, v in values.items() if v is not None}
    if not update_data:
        return 0
    update_data["updated_at"] = utcnow()
    count = db.query(AudioFile).filter(AudioFile.id == file_id).update(update_data)
    if commit:
        db.commit()
    return count


def delete_audio_file(db: Session, file_id: int) -> None:
    db.query(AudioFile).filter(AudioFile.id == file_id).delete()
    db.commit()
