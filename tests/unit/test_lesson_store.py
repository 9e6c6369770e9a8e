"""Tests for the capacity-bounded lesson store."""

from datetime import UTC, datetime, timedelta

import pytest

from hanzilex.storage.lesson_store import LessonStore

BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)


@pytest.fixture
def store(tmp_path):
    return LessonStore(store_dir=tmp_path / "lessons", max_lessons_per_client=3)


def create_lessons(store, client_id, count):
    return [
        store.create(
            client_id,
            "HSK2",
            f"topic {i}",
            {"story": f"story {i}"},
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        for i in range(count)
    ]


class TestLessonStore:
    """Tests for lesson create/get/list/delete."""

    def test_create_and_get(self, store):
        lesson = store.create("client-1", "HSK3", "Food", {"vocabulary": ["吃", "喝"]})
        loaded = store.get(lesson.lesson_id)

        assert loaded == lesson
        assert loaded.generated_content == {"vocabulary": ["吃", "喝"]}
        assert loaded.created_at.tzinfo is not None

    def test_lesson_ids_are_unique(self, store):
        lessons = create_lessons(store, "client-1", 2)
        assert lessons[0].lesson_id != lessons[1].lesson_id

    def test_get_missing(self, store):
        assert store.get("does-not-exist") is None

    def test_list_newest_first(self, store):
        create_lessons(store, "client-1", 3)
        topics = [lesson.topic for lesson in store.list("client-1")]

        assert topics == ["topic 2", "topic 1", "topic 0"]

    def test_list_is_per_client(self, store):
        create_lessons(store, "client-1", 2)
        create_lessons(store, "client-2", 1)

        assert len(store.list("client-1")) == 2
        assert len(store.list("client-2")) == 1
        assert store.list("client-3") == []

    def test_delete(self, store):
        lesson = store.create("client-1", "HSK1", "Food", {})

        assert store.delete(lesson.lesson_id)
        assert store.get(lesson.lesson_id) is None
        assert not store.delete(lesson.lesson_id)

    def test_unreadable_file_ignored(self, store):
        (store.store_dir / "broken.json").write_text("{not json", encoding="utf-8")
        create_lessons(store, "client-1", 1)

        assert len(store.list("client-1")) == 1
        assert store.get("broken") is None


class TestLessonEviction:
    """Each client keeps only its most recent lessons."""

    def test_oldest_evicted(self, store):
        lessons = create_lessons(store, "client-1", 5)
        remaining = store.list("client-1")

        assert len(remaining) == 3
        assert [lesson.lesson_id for lesson in remaining] == [
            lesson.lesson_id for lesson in reversed(lessons[2:])
        ]
        assert store.get(lessons[0].lesson_id) is None

    def test_other_clients_unaffected(self, store):
        create_lessons(store, "client-1", 2)
        create_lessons(store, "client-2", 5)

        assert len(store.list("client-1")) == 2
        assert len(store.list("client-2")) == 3

    def test_cleanup_returns_removed_count(self, tmp_path):
        big = LessonStore(store_dir=tmp_path, max_lessons_per_client=10)
        create_lessons(big, "client-1", 5)
        small = LessonStore(store_dir=tmp_path, max_lessons_per_client=2)

        assert small.cleanup("client-1") == 3
        assert len(small.list("client-1")) == 2

    def test_invalid_capacity(self, tmp_path):
        with pytest.raises(ValueError):
            LessonStore(store_dir=tmp_path, max_lessons_per_client=0)
