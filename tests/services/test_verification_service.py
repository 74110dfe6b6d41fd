"""Tests for VerificationService with a stub classifier."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from streakpro_cli.models import VerificationResult
from streakpro_cli.models.exceptions import (
    ClassifierUnavailable,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from streakpro_cli.services.api.classifier import Classifier
from streakpro_cli.services.verification_service import VerificationService

PRINCIPAL = "user-001"
OTHER_PRINCIPAL = "user-002"


@pytest.fixture()
def classifier():
    stub = MagicMock(spec=Classifier)
    stub.classify = AsyncMock(
        return_value=VerificationResult(
            verified=True, confidence=0.9, reasoning="Matches", authentic=True
        )
    )
    return stub


@pytest.fixture()
def verification(activity_service, history_repo, verification_repo, classifier):
    return VerificationService(activity_service, history_repo, verification_repo, classifier)


@pytest.mark.asyncio
async def test_attaches_to_explicit_record(
    verification, reconciliation, history_repo, activity_repo, classifier, make_activity
):
    activity = await make_activity()
    target = await reconciliation.record_session(activity.id, PRINCIPAL, 600, [])
    newer = await reconciliation.record_session(activity.id, PRINCIPAL, 300, [])

    result = await verification.attach_verification(
        activity.id, PRINCIPAL, "Read two chapters", "photo.jpg", history_id=target.id
    )

    assert result.verified is True
    classifier.classify.assert_awaited_once_with("Read two chapters", "photo.jpg")
    verified = await history_repo.get(target.id)
    assert verified.verified is True
    assert verified.photo_url == "photo.jpg"
    assert verified.verification_note == "Matches"
    assert (await history_repo.get(newer.id)).verified is False
    # verification does not change the streak
    assert (await activity_repo.get(activity.id)).streak_count == 2


@pytest.mark.asyncio
async def test_defaults_to_latest_record(verification, reconciliation, history_repo, make_activity):
    activity = await make_activity()
    await reconciliation.record_session(activity.id, PRINCIPAL, 600, [])
    latest = await reconciliation.record_session(activity.id, PRINCIPAL, 300, [])

    await verification.attach_verification(activity.id, PRINCIPAL, "Did it")

    assert (await history_repo.get(latest.id)).verified is True


@pytest.mark.asyncio
async def test_verifies_only_once(verification, reconciliation, verification_repo, classifier, make_activity):
    activity = await make_activity()
    record = await reconciliation.record_session(activity.id, PRINCIPAL, 600, [])

    first = await verification.attach_verification(
        activity.id, PRINCIPAL, "Did it", history_id=record.id
    )
    second = await verification.attach_verification(
        activity.id, PRINCIPAL, "Did it again", history_id=record.id
    )

    assert classifier.classify.await_count == 1
    assert second.verified == first.verified
    assert second.confidence == first.confidence


@pytest.mark.asyncio
async def test_classifier_failure_leaves_record_unverified(
    verification, reconciliation, history_repo, verification_repo, classifier, make_activity
):
    activity = await make_activity()
    record = await reconciliation.record_session(activity.id, PRINCIPAL, 600, [])
    classifier.classify.side_effect = ClassifierUnavailable("down")

    with pytest.raises(ClassifierUnavailable):
        await verification.attach_verification(
            activity.id, PRINCIPAL, "Did it", history_id=record.id
        )

    assert (await history_repo.get(record.id)).verified is False
    assert await verification_repo.get_for_history(record.id) is None


@pytest.mark.asyncio
async def test_description_required(verification, make_activity):
    activity = await make_activity()
    with pytest.raises(ValidationError):
        await verification.attach_verification(activity.id, PRINCIPAL, "   ")


@pytest.mark.asyncio
async def test_foreign_activity(verification, make_activity):
    activity = await make_activity(owner=OTHER_PRINCIPAL)
    with pytest.raises(ForbiddenError):
        await verification.attach_verification(activity.id, PRINCIPAL, "Did it")


@pytest.mark.asyncio
async def test_record_from_other_activity(verification, reconciliation, make_activity):
    activity = await make_activity()
    other = await make_activity("Other")
    record = await reconciliation.record_session(other.id, PRINCIPAL, 60, [])
    with pytest.raises(NotFoundError):
        await verification.attach_verification(
            activity.id, PRINCIPAL, "Did it", history_id=record.id
        )


@pytest.mark.asyncio
async def test_no_history_at_all(verification, make_activity):
    activity = await make_activity()
    with pytest.raises(NotFoundError):
        await verification.attach_verification(activity.id, PRINCIPAL, "Did it")
