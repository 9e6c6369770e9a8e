from hanzilex.storage.lesson_store import LessonStore

__all__ = ["LessonStore"]
