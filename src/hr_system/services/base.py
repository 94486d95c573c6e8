"""Shared helpers for service classes."""

from __future__ import annotations

from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from hr_system.models import Base
from hr_system.services.errors import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


class BaseService:
    """Holds the request session and common lookup/update helpers."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_or_404(self, model: type[ModelT], entity_id: UUID, label: str) -> ModelT:
        obj = await self.session.get(model, entity_id)
        if obj is None:
            raise NotFoundError(label, entity_id)
        return obj

    @staticmethod
    def _apply(obj: Base, data: dict[str, Any]) -> None:
        """Copy provided fields onto an ORM object."""
        for key, value in data.items():
            setattr(obj, key, value)
