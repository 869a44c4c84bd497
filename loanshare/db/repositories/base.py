"""
Base repository pattern for database operations.

Provides the create, read and update operations shared by the repositories.
"""

from typing import TypeVar, Generic, Type, Optional

from sqlalchemy.orm import Session

from loanshare.db.models import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with the shared create, read and update operations.

    Generic repository pattern that can be extended for specific models.
    Repositories only flush; committing is left to the caller so several
    repository calls can share one database transaction.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Database session
        """
        self.model = model
        self.session = session

    def create(self, **kwargs) -> ModelType:
        """
        Create a new record.

        Args:
            **kwargs: Field values for the new record

        Returns:
            Created model instance

        Raises:
            IntegrityError: If unique constraint violation or foreign key error
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        self.session.flush()  # Flush to get ID without committing
        return instance

    def get_by_id(self, id: int) -> Optional[ModelType]:
        """
        Get record by primary key ID.

        Returns:
            Model instance or None if not found
        """
        return self.session.get(self.model, id)

    def update(self, id: int, **kwargs) -> Optional[ModelType]:
        """
        Update record by ID.

        Args:
            id: Primary key ID
            **kwargs: Fields to update

        Returns:
            Updated model instance or None if not found
        """
        instance = self.get_by_id(id)
        if not instance:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        self.session.flush()
        return instance
