"""Activity service - Business logic for activity operations."""

from __future__ import annotations

from streakpro_cli.models import Activity, ActivityCreate, ActivityUpdate
from streakpro_cli.models.exceptions import ForbiddenError, ValidationError
from streakpro_cli.repositories import ActivityRepository
from streakpro_cli.utils.logger import get_logger

logger = get_logger("activities")


class ActivityService:
    """Service for activity business logic.

    This service encapsulates ownership rules and orchestrates activity
    operations using the activity repository.
    """

    def __init__(self, activity_repository: ActivityRepository):
        """Initialize the activity service.

        Args:
            activity_repository: ActivityRepository implementation for data access
        """
        self.repository = activity_repository

    async def list_activities(self, principal_id: str) -> list[Activity]:
        """List the principal's activities."""
        return await self.repository.list_all(principal_id)

    async def get_activity(self, activity_id: int) -> Activity:
        """Get a specific activity by ID.

        Raises:
            NotFoundError: If the activity does not exist
        """
        return await self.repository.get(activity_id)

    async def get_owned(self, activity_id: int, principal_id: str) -> Activity:
        """Get an activity and check that *principal_id* owns it.

        Raises:
            NotFoundError: If the activity does not exist
            ForbiddenError: If another principal owns it
        """
        activity = await self.get_activity(activity_id)
        if activity.user_id != principal_id:
            raise ForbiddenError(f"Activity {activity_id} belongs to another user")
        return activity

    async def create_activity(
        self,
        principal_id: str,
        title: str,
        *,
        total_time: int,
        description: str = "",
        break_minutes: int = 5,
        break_count: int = 1,
    ) -> Activity:
        """Create a new activity.

        Args:
            principal_id: Owning principal
            title: Activity title (required)
            total_time: Planned focus minutes per session
            description: Optional description
            break_minutes: Length of one break in minutes
            break_count: Break budget per session

        Returns:
            Created Activity object
        """
        data = ActivityCreate(
            title=title,
            description=description,
            total_time=total_time,
            break_minutes=break_minutes,
            break_count=break_count,
        )
        return await self.repository.create(principal_id, data)

    async def update_activity(
        self, activity_id: int, principal_id: str, **updates
    ) -> Activity:
        """Apply a user edit to an activity.

        This is the only path that may change ``total_time``.
        """
        await self.get_owned(activity_id, principal_id)
        return await self.repository.update(activity_id, ActivityUpdate(**updates))

    async def delete_activity(self, activity_id: int, principal_id: str) -> bool:
        """Delete an activity owned by the principal."""
        await self.get_owned(activity_id, principal_id)
        return await self.repository.delete(activity_id)

    async def update_break_count(
        self, activity_id: int, principal_id: str, remaining: int
    ) -> None:
        """Store the remaining break budget after a break was taken."""
        if remaining < 0:
            raise ValidationError("remaining break count cannot be negative")
        await self.get_owned(activity_id, principal_id)
        await self.repository.set_break_count(activity_id, remaining)
        logger.debug("activity %s break_count -> %s", activity_id, remaining)


def get_activity_service() -> ActivityService:
    """Factory function to get an ActivityService instance."""
    from streakpro_cli.services.config_service import get_storage_strategy

    return ActivityService(get_storage_strategy().activity_repository)
