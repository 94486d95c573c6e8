"""Institution subscriptions with expiry-derived status."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import Row, select

from hr_system.models import Institution, Subscription
from hr_system.services.base import BaseService
from hr_system.services.expiry import document_status, expiry_window


class SubscriptionService(BaseService):
    def _select(self):
        return select(Subscription, Institution.name.label("institution_name")).outerjoin(
            Institution, Subscription.institution_id == Institution.id
        )

    async def list_subscriptions(self, institution_id: UUID | None = None) -> list[Row]:
        query = self._select()
        if institution_id is not None:
            query = query.where(Subscription.institution_id == institution_id)
        result = await self.session.execute(query.order_by(Subscription.created_at.desc()))
        return list(result.all())

    async def get_subscription(self, subscription_id: UUID) -> Row | None:
        result = await self.session.execute(
            self._select().where(Subscription.id == subscription_id)
        )
        return result.first()

    async def create_subscription(self, data: dict[str, Any]) -> Row:
        await self._get_or_404(Institution, data["institution_id"], "Institution")
        subscription = Subscription(**data)
        subscription.status = document_status(subscription.expiry_date)
        self.session.add(subscription)
        await self.session.flush()
        return await self.get_subscription(subscription.id)

    async def update_subscription(self, subscription_id: UUID, data: dict[str, Any]) -> Row:
        subscription = await self._get_or_404(Subscription, subscription_id, "Subscription")
        data.pop("institution_id", None)
        self._apply(subscription, data)
        if "expiry_date" in data:
            subscription.status = document_status(subscription.expiry_date)
        await self.session.flush()
        return await self.get_subscription(subscription_id)

    async def delete_subscription(self, subscription_id: UUID) -> None:
        subscription = await self._get_or_404(Subscription, subscription_id, "Subscription")
        await self.session.delete(subscription)
        await self.session.flush()

    async def expiring(self, days: int = 30, today: date | None = None) -> list[Row]:
        """Subscriptions expiring between today and ``days`` from now."""
        start, end = expiry_window(days, today)
        result = await self.session.execute(
            self._select()
            .where(Subscription.expiry_date.between(start, end))
            .order_by(Subscription.expiry_date.asc())
        )
        return list(result.all())
