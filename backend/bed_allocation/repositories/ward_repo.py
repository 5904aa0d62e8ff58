"""
Ward repository.
"""
from typing import Optional, List
from sqlmodel import Session, select, func

from bed_allocation.repositories.base import BaseRepository
from bed_allocation.models.ward import Ward


class WardRepository(BaseRepository[Ward]):
    """Repository for ward operations."""

    def __init__(self, session: Session):
        super().__init__(session, Ward)

    def get_by_name(self, name: str) -> Optional[Ward]:
        """
        Gets a ward by name, ignoring case.

        Args:
            name: Ward name (e.g. "ICU")

        Returns:
            The ward or None
        """
        query = select(Ward).where(func.lower(Ward.name) == name.strip().lower())
        return self.session.exec(query).first()

    def resolve(self, hint: str) -> Optional[Ward]:
        """
        Resolves a ward hint, which may be a ward id or a ward name.

        Args:
            hint: Ward id or name

        Returns:
            The ward or None
        """
        if not hint or not hint.strip():
            return None
        ward = self.get_by_id(hint)
        if ward:
            return ward
        return self.get_by_name(hint)

    def get_all_ordered(self) -> List[Ward]:
        query = select(Ward).order_by(Ward.name)
        return list(self.session.exec(query).all())
