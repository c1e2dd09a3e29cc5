from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from video_library.errors import (
    DuplicateLikeError,
    EmailAlreadyExistsError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from video_library.repositories.database import Database
from video_library.repositories.liked_video_repository import LikedVideoRepository
from video_library.repositories.saved_video_repository import SavedVideoRepository
from video_library.repositories.session_repository import SessionRepository
from video_library.repositories.user_repository import UserRepository


def _save(repo: SavedVideoRepository, user_id: int, video_id: str, title: str = "Title") -> int:
    return repo.save_video(
        user_id=user_id,
        video_id=video_id,
        title=title,
        thumbnail=f"https://img.example/{video_id}.jpg",
        channel="Channel",
    ).id


def _liked_rows(database: Database, user_id: int, video_id: str) -> int:
    with database.connection() as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS total FROM liked_videos WHERE user_id = ? AND video_id = ?",
            (user_id, video_id),
        ).fetchone()
    return int(row["total"])


def test_saving_same_video_twice_keeps_two_rows(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)

    first_id = _save(repo, user_id, "vid_a")
    second_id = _save(repo, user_id, "vid_a")

    assert first_id != second_id
    saved = repo.list_saved(user_id=user_id)
    assert [entry.id for entry in saved] == [second_id, first_id]
    assert {entry.video_id for entry in saved} == {"vid_a"}


def test_save_video_rejects_empty_fields(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)

    with pytest.raises(ValidationError):
        repo.save_video(
            user_id=user_id,
            video_id="vid_a",
            title="   ",
            thumbnail="https://img.example/a.jpg",
            channel="Channel",
        )
    assert repo.list_saved(user_id=user_id) == []


def test_unsave_removes_every_matching_row(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)
    for _ in range(3):
        _save(repo, user_id, "vid_a")
    _save(repo, user_id, "vid_b")

    removed = repo.unsave_video(user_id=user_id, video_id="vid_a")

    assert removed == 3
    assert [entry.video_id for entry in repo.list_saved(user_id=user_id)] == ["vid_b"]


def test_unsave_without_rows_is_not_found(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)

    with pytest.raises(NotFoundError):
        repo.unsave_video(user_id=user_id, video_id="vid_missing")


def test_list_saved_is_newest_first_and_scoped_to_owner(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)
    other_user = UserRepository(database).create_user(
        email="other@example.com",
        name="Other",
        password_hash="unused",
    )
    _save(repo, user_id, "vid_1", title="First")
    _save(repo, other_user.id, "vid_x", title="Other")
    _save(repo, user_id, "vid_2", title="Second")

    saved = repo.list_saved(user_id=user_id)

    assert [entry.video_id for entry in saved] == ["vid_2", "vid_1"]
    assert saved[0].saved_at >= saved[1].saved_at
    assert all(entry.user_id == user_id for entry in saved)


def test_duplicate_like_is_rejected_and_single_row_remains(
    database: Database,
    user_id: int,
) -> None:
    repo = LikedVideoRepository(database)
    repo.like_video(user_id=user_id, video_id="vid_a")

    with pytest.raises(DuplicateLikeError):
        repo.like_video(user_id=user_id, video_id="vid_a")

    assert _liked_rows(database, user_id, "vid_a") == 1


def test_same_video_can_be_liked_by_different_users(database: Database, user_id: int) -> None:
    repo = LikedVideoRepository(database)
    other_user = UserRepository(database).create_user(
        email="other@example.com",
        name="Other",
        password_hash="unused",
    )

    repo.like_video(user_id=user_id, video_id="vid_a")
    repo.like_video(user_id=other_user.id, video_id="vid_a")

    assert repo.list_liked_ids(user_id=user_id) == ["vid_a"]
    assert repo.list_liked_ids(user_id=other_user.id) == ["vid_a"]


def test_unlike_never_liked_is_not_found(database: Database, user_id: int) -> None:
    repo = LikedVideoRepository(database)

    with pytest.raises(NotFoundError):
        repo.unlike_video(user_id=user_id, video_id="vid_a")


def test_unlike_after_like_leaves_no_rows(database: Database, user_id: int) -> None:
    repo = LikedVideoRepository(database)
    repo.like_video(user_id=user_id, video_id="vid_a")

    repo.unlike_video(user_id=user_id, video_id="vid_a")

    assert _liked_rows(database, user_id, "vid_a") == 0
    with pytest.raises(NotFoundError):
        repo.unlike_video(user_id=user_id, video_id="vid_a")


def test_list_liked_ids_is_most_recent_first(database: Database, user_id: int) -> None:
    repo = LikedVideoRepository(database)
    for video_id in ("A", "B", "C"):
        repo.like_video(user_id=user_id, video_id=video_id)

    assert repo.list_liked_ids(user_id=user_id) == ["C", "B", "A"]


def test_list_liked_ids_orders_by_liked_at_not_insert_order(
    database: Database,
    user_id: int,
) -> None:
    with database.connection() as conn:
        conn.executemany(
            "INSERT INTO liked_videos (user_id, video_id, liked_at) VALUES (?, ?, ?)",
            [
                (user_id, "C", "2026-01-03T00:00:00.000000+00:00"),
                (user_id, "A", "2026-01-01T00:00:00.000000+00:00"),
                (user_id, "B", "2026-01-02T00:00:00.000000+00:00"),
            ],
        )

    assert LikedVideoRepository(database).list_liked_ids(user_id=user_id) == ["C", "B", "A"]


def test_like_for_unknown_user_is_a_store_error(database: Database) -> None:
    repo = LikedVideoRepository(database)

    with pytest.raises(StoreError) as exc_info:
        repo.like_video(user_id=9999, video_id="vid_a")

    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)


def test_store_errors_wrap_sqlite_failures(tmp_path: Path) -> None:
    # Schema was never created, so every query fails.
    database = Database(tmp_path / "empty.db")

    with pytest.raises(StoreError):
        SavedVideoRepository(database).list_saved(user_id=1)
    with pytest.raises(StoreError):
        LikedVideoRepository(database).list_liked_ids(user_id=1)


def test_user_repository_rejects_duplicate_email(database: Database) -> None:
    repo = UserRepository(database)
    repo.create_user(email="dup@example.com", name="One", password_hash="h1")

    with pytest.raises(EmailAlreadyExistsError):
        repo.create_user(email="dup@example.com", name="Two", password_hash="h2")

    found = repo.get_by_email("dup@example.com")
    assert found is not None
    assert found.name == "One"
    assert repo.get_by_id(found.id) == found


def test_session_repository_resolves_and_revokes(database: Database, user_id: int) -> None:
    repo = SessionRepository(database)
    session, token = repo.create_session(user_id=user_id, ttl_seconds=3600)

    assert token.startswith(f"{session.session_id}.")
    assert repo.resolve_token(token) == user_id
    assert repo.resolve_token(f"{session.session_id}.wrong-secret") is None
    assert repo.resolve_token("garbage") is None

    assert repo.revoke_token(token) is True
    assert repo.resolve_token(token) is None
    assert repo.revoke_token(token) is False


def test_session_repository_ignores_expired_sessions(database: Database, user_id: int) -> None:
    repo = SessionRepository(database)
    session, token = repo.create_session(user_id=user_id, ttl_seconds=3600)
    with database.connection() as conn:
        conn.execute(
            "UPDATE sessions SET expires_at = ? WHERE session_id = ?",
            ("2000-01-01T00:00:00+00:00", session.session_id),
        )

    assert repo.resolve_token(token) is None


def test_saved_fields_are_stored_exactly_as_given(database: Database, user_id: int) -> None:
    repo = SavedVideoRepository(database)

    record = repo.save_video(
        user_id=user_id,
        video_id=" vid_a ",
        title="  Padded  title ",
        thumbnail=" https://img.example/a.jpg",
        channel="Channel ",
    )

    stored = repo.list_saved(user_id=user_id)[0]
    assert stored == record
    assert stored.video_id == " vid_a "
    assert stored.title == "  Padded  title "
    assert stored.thumbnail == " https://img.example/a.jpg"
    assert stored.channel == "Channel "


def test_liked_video_id_is_stored_exactly_as_given(database: Database, user_id: int) -> None:
    repo = LikedVideoRepository(database)

    repo.like_video(user_id=user_id, video_id=" vid_a ")

    assert repo.list_liked_ids(user_id=user_id) == [" vid_a "]
    with pytest.raises(NotFoundError):
        repo.unlike_video(user_id=user_id, video_id="vid_a")
