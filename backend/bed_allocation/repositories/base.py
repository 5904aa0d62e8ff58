"""
Base repository.
Provides generic CRUD operations.
"""
from typing import TypeVar, Generic, Optional, List, Type
from sqlmodel import Session, select

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository.

    Usage:
        class WardRepository(BaseRepository[Ward]):
            def __init__(self, session: Session):
                super().__init__(session, Ward)

    `save` commits immediately. Multi-record operations use `add` and
    commit once through the session themselves.
    """

    def __init__(self, session: Session, model: Type[T]):
        """
        Initializes the repository.

        Args:
            session: Database session
            model: SQLModel table class
        """
        self.session = session
        self.model = model

    def get_by_id(self, id: str) -> Optional[T]:
        """
        Gets a record by ID.

        Args:
            id: Record ID

        Returns:
            The record or None
        """
        return self.session.get(self.model, id)

    def get_all(self) -> List[T]:
        return list(self.session.exec(select(self.model)).all())

    def add(self, obj: T) -> T:
        """
        Stages a record in the current transaction without committing.

        Args:
            obj: Record to stage

        Returns:
            The same record
        """
        self.session.add(obj)
        return obj

    def save(self, obj: T) -> T:
        """
        Saves a record and commits.

        Args:
            obj: Record to save

        Returns:
            The refreshed record
        """
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj
