"""Tests for SqliteActivityRepository against a migrated temporary vault."""

from __future__ import annotations

import pytest

from streakpro_cli.models import ActivityCreate, ActivityUpdate, HistoryCreate
from streakpro_cli.models.exceptions import NotFoundError

PRINCIPAL = "user-001"
OTHER_PRINCIPAL = "user-002"


@pytest.mark.asyncio
async def test_create_and_get(activity_repo):
    created = await activity_repo.create(
        PRINCIPAL,
        ActivityCreate(title="  Guitar ", total_time=25, break_minutes=3, break_count=2),
    )
    assert created.id > 0
    assert created.title == "Guitar"
    assert created.total_time == 25
    assert created.break_minutes == 3
    assert created.break_count == 2
    assert created.break_time_seconds == 0
    assert created.streak_count == 0
    assert created.user_id == PRINCIPAL

    fetched = await activity_repo.get(created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_get_missing_raises(activity_repo):
    with pytest.raises(NotFoundError):
        await activity_repo.get(12345)


@pytest.mark.asyncio
async def test_list_all_is_scoped_to_owner(activity_repo, make_activity):
    await make_activity("Mine")
    await make_activity("Theirs", owner=OTHER_PRINCIPAL)

    mine = await activity_repo.list_all(PRINCIPAL)
    assert [a.title for a in mine] == ["Mine"]


@pytest.mark.asyncio
async def test_update_only_given_fields(activity_repo, make_activity):
    activity = await make_activity(total_time=10)
    updated = await activity_repo.update(activity.id, ActivityUpdate(total_time=45))
    assert updated.total_time == 45
    assert updated.title == activity.title
    assert updated.break_count == activity.break_count


@pytest.mark.asyncio
async def test_soft_delete(activity_repo, make_activity):
    activity = await make_activity()
    assert await activity_repo.delete(activity.id) is True
    assert await activity_repo.delete(activity.id) is False
    with pytest.raises(NotFoundError):
        await activity_repo.get(activity.id)
    assert await activity_repo.list_all(PRINCIPAL) == []


@pytest.mark.asyncio
async def test_set_break_count(activity_repo, make_activity):
    activity = await make_activity(break_count=3)
    await activity_repo.set_break_count(activity.id, 1)
    assert (await activity_repo.get(activity.id)).break_count == 1

    with pytest.raises(NotFoundError):
        await activity_repo.set_break_count(999, 1)


@pytest.mark.asyncio
async def test_streak_count_derived_from_reconciled_rows(
    activity_repo, history_repo, make_activity
):
    from datetime import UTC, datetime

    activity = await make_activity()
    base = {"activity_id": activity.id, "user_id": PRINCIPAL, "started_at": datetime.now(UTC)}

    await history_repo.create(HistoryCreate(**base))  # open row, not counted
    await history_repo.commit_session(
        HistoryCreate(**base, ended_at=datetime.now(UTC), reconciled=True)
    )
    await history_repo.commit_session(
        HistoryCreate(**base, ended_at=datetime.now(UTC), reconciled=True)
    )

    assert (await activity_repo.get(activity.id)).streak_count == 2
