"""Downloadable administrative forms."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import case, func, or_, select

from hr_system.models import Form
from hr_system.services.base import BaseService


class FormService(BaseService):
    async def list_forms(
        self,
        category: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> list[Form]:
        query = select(Form)
        if category:
            query = query.where(Form.category == category)
        if is_active is not None:
            query = query.where(Form.is_active.is_(is_active))
        if search:
            term = f"%{search}%"
            query = query.where(or_(Form.title.ilike(term), Form.description.ilike(term)))
        result = await self.session.execute(query.order_by(Form.category, Form.title))
        return list(result.scalars().all())

    async def get_form(self, form_id: UUID) -> Form | None:
        return await self.session.get(Form, form_id)

    async def create_form(self, data: dict[str, Any]) -> Form:
        form = Form(**data)
        self.session.add(form)
        await self.session.flush()
        return form

    async def update_form(self, form_id: UUID, data: dict[str, Any]) -> Form:
        form = await self._get_or_404(Form, form_id, "Form")
        self._apply(form, data)
        await self.session.flush()
        return form

    async def delete_form(self, form_id: UUID) -> None:
        form = await self._get_or_404(Form, form_id, "Form")
        await self.session.delete(form)
        await self.session.flush()

    async def register_download(self, form_id: UUID) -> Form:
        """Count a download and return the form with its file reference."""
        form = await self._get_or_404(Form, form_id, "Form")
        form.download_count = (form.download_count or 0) + 1
        await self.session.flush()
        return form

    async def statistics(self) -> dict[str, Any]:
        row = (
            await self.session.execute(
                select(
                    func.count(Form.id).label("total_forms"),
                    func.sum(case((Form.is_active.is_(True), 1), else_=0)).label("active_forms"),
                    func.sum(func.coalesce(Form.download_count, 0)).label("total_downloads"),
                )
            )
        ).one()
        categories = await self.session.execute(
            select(Form.category, func.count(Form.id))
            .where(Form.is_active.is_(True))
            .group_by(Form.category)
        )
        return {
            "total_forms": row.total_forms or 0,
            "active_forms_count": int(row.active_forms or 0),
            "total_downloads": int(row.total_downloads or 0),
            "category_counts": {category: count for category, count in categories.all()},
        }
