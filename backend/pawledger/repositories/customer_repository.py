# backend/pawledger/repositories/customer_repository.py
"""Customer, dog and staff lookups."""

import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pawledger.core.exceptions import RepositoryException
from pawledger.models.customer import Customer, Dog, StaffUser
from pawledger.repositories.base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository[Customer]):
    def __init__(self, db: Session):
        super().__init__(db, Customer)

    def get_by_email(self, email: str) -> Optional[Customer]:
        return self.find_one_by(email=email)

    def get_dogs(self, customer_id: str, dog_ids: Optional[Sequence[str]] = None) -> List[Dog]:
        """Dogs owned by the customer, optionally restricted to ``dog_ids``."""
        try:
            query = self.db.query(Dog).filter(Dog.customer_id == customer_id)
            if dog_ids is not None:
                query = query.filter(Dog.id.in_(list(dog_ids)))
            return cast(List[Dog], query.order_by(Dog.name).all())
        except SQLAlchemyError as exc:
            logger.error("Failed to load dogs for customer %s: %s", customer_id, exc)
            raise RepositoryException(f"Failed to load dogs: {exc}") from exc

    def get_dog(self, dog_id: str) -> Optional[Dog]:
        return self.db.get(Dog, dog_id)


class StaffRepository(BaseRepository[StaffUser]):
    def __init__(self, db: Session):
        super().__init__(db, StaffUser)
