"""Repository for user progress records."""

from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.progress import UserProgress


class ProgressRepository:
    """Data access for user_progress."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, content_id: str) -> Optional[UserProgress]:
        return (
            self.db.query(UserProgress)
            .filter(UserProgress.user_id == user_id, UserProgress.content_id == content_id)
            .first()
        )

    def upsert(self, user_id: str, content_id: str, universe_id: str, progress: int) -> UserProgress:
        record = self.get(user_id, content_id)
        if record is None:
            record = UserProgress(
                user_id=user_id,
                content_id=content_id,
                universe_id=universe_id,
                progress=progress,
            )
            self.db.add(record)
        else:
            record.progress = progress
        self.db.flush()
        self.db.refresh(record)
        return record

    def map_for_universe(self, user_id: str, universe_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(UserProgress.content_id, UserProgress.progress)
            .filter(UserProgress.user_id == user_id, UserProgress.universe_id == universe_id)
            .all()
        )
        return {content_id: progress or 0 for content_id, progress in rows}

    def map_for_content(self, user_id: str, content_ids: List[str]) -> Dict[str, int]:
        if not content_ids:
            return {}
        rows = (
            self.db.query(UserProgress.content_id, UserProgress.progress)
            .filter(UserProgress.user_id == user_id, UserProgress.content_id.in_(content_ids))
            .all()
        )
        return {content_id: progress or 0 for content_id, progress in rows}

    def delete_for_content(self, content_ids: List[str]) -> int:
        if not content_ids:
            return 0
        return (
            self.db.query(UserProgress)
            .filter(UserProgress.content_id.in_(content_ids))
            .delete(synchronize_session=False)
        )
