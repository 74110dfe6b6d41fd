"""Verification attachment - AI check of a recorded session."""

from __future__ import annotations

from streakpro_cli.models import HistoryRecord, VerificationResult
from streakpro_cli.models.exceptions import NotFoundError, ValidationError
from streakpro_cli.repositories import HistoryRepository, VerificationRepository
from streakpro_cli.services.activity_service import ActivityService
from streakpro_cli.services.api.classifier import Classifier
from streakpro_cli.utils.logger import get_logger

logger = get_logger("verification")


class VerificationService:
    """Runs the classifier against a history record and stores the verdict.

    A record is verified at most once; later calls return the stored
    verdict. Verification never changes the activity's streak count.
    """

    def __init__(
        self,
        activity_service: ActivityService,
        history_repository: HistoryRepository,
        verification_repository: VerificationRepository,
        classifier: Classifier,
    ):
        self.activities = activity_service
        self.history = history_repository
        self.verifications = verification_repository
        self.classifier = classifier

    async def _target(self, activity_id: int, history_id: int | None) -> HistoryRecord:
        if history_id is not None:
            record = await self.history.get(history_id)
            if record.activity_id != activity_id:
                raise NotFoundError(f"History record not found: {history_id}")
            return record

        record = await self.history.latest(activity_id)
        if record is None:
            raise NotFoundError(f"Activity {activity_id} has no recorded sessions")
        logger.warning(
            "no history id given for activity %s, verifying latest record #%s",
            activity_id,
            record.id,
        )
        return record

    async def attach_verification(
        self,
        activity_id: int,
        principal_id: str,
        description: str,
        photo: str | None = None,
        history_id: int | None = None,
    ) -> VerificationResult:
        """Verify a session and attach the verdict to its history record.

        Args:
            activity_id: Activity the session belongs to
            principal_id: Caller
            description: What the user says they did (required)
            photo: Optional photo reference
            history_id: Record to verify; the newest record when omitted

        Returns:
            The classifier verdict

        Raises:
            ValidationError: Empty description
            NotFoundError: Activity or record missing
            ForbiddenError: Activity owned by someone else
            ClassifierUnavailable: Classifier failed; the record stays unverified
        """
        if not description or not description.strip():
            raise ValidationError("description is required")
        await self.activities.get_owned(activity_id, principal_id)
        record = await self._target(activity_id, history_id)

        previous = await self.verifications.get_for_history(record.id)
        if previous is not None:
            logger.info("history record #%s already verified", record.id)
            return previous.to_result()

        result = await self.classifier.classify(description, photo)

        await self.verifications.create(
            activity_id=activity_id,
            history_id=record.id,
            description=description,
            image_ref=photo,
            verified=result.verified,
            confidence=result.confidence,
            result_text=result.model_dump_json(),
        )
        await self.history.set_verification(
            record.id,
            photo_url=photo,
            verified=result.verified,
            note=result.reasoning,
        )
        logger.info(
            "verified history record #%s: verified=%s confidence=%s",
            record.id,
            result.verified,
            result.confidence,
        )
        return result


def get_verification_service(classifier: Classifier | None = None) -> VerificationService:
    """Factory function to get a VerificationService instance."""
    from streakpro_cli.services.activity_service import get_activity_service
    from streakpro_cli.services.api.classifier import OpenAIClassifier
    from streakpro_cli.services.config_service import get_config_service

    config_service = get_config_service()
    storage = config_service.storage
    return VerificationService(
        get_activity_service(),
        storage.history_repository,
        storage.verification_repository,
        classifier or OpenAIClassifier(config_service.config.classifier),
    )
