"""Capacity-bounded lesson storage.

Generated lessons are stored as one JSON file per lesson under the store
directory. Each client keeps at most ``max_lessons_per_client`` lessons; the
oldest are evicted whenever a new lesson is created.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from constants import LESSON_STORE_DIR, MAX_LESSONS_PER_CLIENT
from hanzilex.validators.schema import LessonRecord


class LessonStore:
    """JSON-file backed key-value store for generated lessons."""

    FILE_SUFFIX = ".json"

    def __init__(
        self,
        store_dir: Optional[Path] = None,
        max_lessons_per_client: int = MAX_LESSONS_PER_CLIENT,
    ):
        """Initialize lesson store.

        Args:
            store_dir: Directory for lesson files (default: LESSON_STORE_DIR)
            max_lessons_per_client: Lessons retained per client (default: 10)
        """
        if max_lessons_per_client < 1:
            raise ValueError(f"max_lessons_per_client must be >= 1, got {max_lessons_per_client}")
        self.store_dir = Path(store_dir) if store_dir is not None else LESSON_STORE_DIR
        self.max_lessons_per_client = max_lessons_per_client
        self.store_dir.mkdir(parents=True, exist_ok=True)

    def _lesson_path(self, lesson_id: str) -> Path:
        return self.store_dir / f"{lesson_id}{self.FILE_SUFFIX}"

    def _read(self, path: Path) -> Optional[LessonRecord]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return LessonRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Unreadable lesson file {path.name}: {e}")
            return None

    def create(
        self,
        client_id: str,
        level: str,
        topic: str,
        generated_content: Dict[str, Any],
        created_at: Optional[datetime] = None,
    ) -> LessonRecord:
        """Store a new lesson and evict the client's oldest lessons over capacity.

        Returns:
            The stored LessonRecord (with its new lesson_id)
        """
        fields: Dict[str, Any] = {
            "client_id": client_id,
            "level": level,
            "topic": topic,
            "generated_content": generated_content,
        }
        if created_at is not None:
            fields["created_at"] = created_at
        lesson = LessonRecord(**fields)

        path = self._lesson_path(lesson.lesson_id)
        with open(path, "w", encoding="utf-8") as f:
            f.write(lesson.model_dump_json(indent=2))
        logger.info(f"Stored lesson {lesson.lesson_id} for client {client_id} ({level}, {topic})")

        self.cleanup(client_id)
        return lesson

    def get(self, lesson_id: str) -> Optional[LessonRecord]:
        """Lesson by id, or None if absent or unreadable."""
        path = self._lesson_path(lesson_id)
        if not path.exists():
            return None
        return self._read(path)

    def list(self, client_id: str) -> List[LessonRecord]:
        """All lessons of a client, newest first."""
        lessons = []
        for path in self.store_dir.glob(f"*{self.FILE_SUFFIX}"):
            lesson = self._read(path)
            if lesson is not None and lesson.client_id == client_id:
                lessons.append(lesson)
        lessons.sort(key=lambda lesson: (lesson.created_at, lesson.lesson_id), reverse=True)
        return lessons

    def delete(self, lesson_id: str) -> bool:
        """Remove a lesson; True if it existed."""
        path = self._lesson_path(lesson_id)
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Deleted lesson {lesson_id}")
        return True

    def cleanup(self, client_id: str) -> int:
        """Keep only the client's most recent lessons.

        Returns:
            Number of lessons removed
        """
        stale = self.list(client_id)[self.max_lessons_per_client:]
        for lesson in stale:
            self.delete(lesson.lesson_id)
        if stale:
            logger.info(f"Evicted {len(stale)} old lessons for client {client_id}")
        return len(stale)
