"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seedkeep.infrastructure.persistence.models import UserModel


class UserRepository:
    """Repository for user profile database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        """Create a new user profile.

        Args:
            user: User model to create.

        Returns:
            Created user model.
        """
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> UserModel | None:
        """Get a user by ID.

        Args:
            user_id: Authentication provider user ID.

        Returns:
            User model if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_users(self, approved: bool | None = None) -> list[UserModel]:
        """List users, optionally only approved or only unapproved ones.

        Args:
            approved: ``None`` for everyone, otherwise the approval state to match.
        """
        query = select(UserModel).order_by(UserModel.created_at, UserModel.email)
        if approved is not None:
            query = query.where(UserModel.approved == approved)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, user: UserModel) -> None:
        await self.session.delete(user)
        await self.session.flush()
