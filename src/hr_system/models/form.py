"""Downloadable administrative form model."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_system.models.base import Base, IdMixin, TimestampMixin
from hr_system.models.enums import FormCategory, check_in


class Form(Base, IdMixin, TimestampMixin):
    __tablename__ = "form"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FormCategory.GENERAL.value
    )
    icon_name: Mapped[str | None] = mapped_column(String(100))
    icon_color: Mapped[str | None] = mapped_column(String(50))
    file_path: Mapped[str | None] = mapped_column(String(500))
    file_url: Mapped[str | None] = mapped_column(String(500))
    file_name: Mapped[str | None] = mapped_column(String(255))
    file_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(100))
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(check_in("category", FormCategory), name="form_category_check"),
        CheckConstraint("download_count >= 0", name="form_download_count_check"),
    )
