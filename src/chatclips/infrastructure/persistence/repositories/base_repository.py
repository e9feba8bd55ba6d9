"""Base repository implementation with mixin-based architecture."""

from typing import Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Base

DomainEntity = TypeVar("DomainEntity")
PersistenceModel = TypeVar("PersistenceModel", bound=Base)


class CRUDMixin(Generic[DomainEntity, PersistenceModel]):
    """Mixin providing basic CRUD operations."""

    session: AsyncSession
    model_class: Type[PersistenceModel]
    to_domain: Callable[[PersistenceModel], DomainEntity]
    to_persistence: Callable[[DomainEntity], PersistenceModel]

    async def get(self, id: int) -> Optional[DomainEntity]:
        """Get entity by ID, bypassing stale identity-map state."""
        model = await self.session.get(self.model_class, id, populate_existing=True)
        return self.to_domain(model) if model else None

    async def add(self, entity: DomainEntity) -> DomainEntity:
        """Insert a new entity and return it with its generated ID."""
        model = self.to_persistence(entity)
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self.to_domain(model)


class QueryMixin(Generic[DomainEntity, PersistenceModel]):
    """Mixin providing query capabilities."""

    session: AsyncSession
    to_domain: Callable[[PersistenceModel], DomainEntity]

    async def _find(self, stmt) -> List[DomainEntity]:
        result = await self.session.execute(stmt)
        return [self.to_domain(model) for model in result.scalars().all()]


class BaseRepository(
    CRUDMixin[DomainEntity, PersistenceModel],
    QueryMixin[DomainEntity, PersistenceModel],
):
    """Repository bound to one session; the caller owns the transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session
