"""Employee bulk upload: CSV/TSV template, file parsing and batch import.

Rows are matched on file number. A known file number updates that employee;
an unknown one creates a new employee.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from hr_system.models import EXPIRY_FIELDS, Employee, Institution
from hr_system.models.enums import InstitutionStatus, UnsponsoredReason
from hr_system.services.base import BaseService
from hr_system.services.errors import BusinessRuleError

logger = logging.getLogger(__name__)

MOBILE_PATTERN = re.compile(r"^05\d{8}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d")

UNSPONSORED = "Unsponsored"
UNSPONSORED_VALUES = frozenset({"", "-", "unsponsored", "غير مكفول"})
EXAMPLE_PREFIX = "example:"
HEADER_SCAN_ROWS = 5


@dataclass(frozen=True)
class ImportColumn:
    field: str
    label: str
    required: bool = False
    example: str = ""


IMPORT_COLUMNS: tuple[ImportColumn, ...] = (
    ImportColumn("name", "Name", True, "Ahmed Ali"),
    ImportColumn("file_number", "File Number", True, "1001"),
    ImportColumn("mobile", "Mobile", True, "0501234567"),
    ImportColumn("email", "Email", example="ahmed@example.com"),
    ImportColumn("nationality", "Nationality", True, "Egyptian"),
    ImportColumn("position", "Position", example="Driver"),
    ImportColumn("institution", "Institution", example=UNSPONSORED),
    ImportColumn("salary", "Salary", example="4500"),
    ImportColumn("iqama_number", "Iqama Number", example="2345678901"),
    ImportColumn("iqama_expiry", "Iqama Expiry (YYYY-MM-DD)", example="2027-01-31"),
    ImportColumn("work_permit_expiry", "Work Permit Expiry (YYYY-MM-DD)"),
    ImportColumn("contract_expiry", "Contract Expiry (YYYY-MM-DD)"),
    ImportColumn("insurance_expiry", "Insurance Expiry (YYYY-MM-DD)"),
    ImportColumn("health_cert_expiry", "Health Certificate Expiry (YYYY-MM-DD)"),
)
LABELS = {c.field: c.label.split(" (")[0] for c in IMPORT_COLUMNS}
REQUIRED_FIELDS = tuple(c.field for c in IMPORT_COLUMNS if c.required)


def normalize_header(value: str) -> str:
    """Lower-case a header cell, dropping required markers and "(format)" hints."""
    value = re.sub(r"\(.*?\)", "", value).replace("*", "").replace("_", " ")
    return " ".join(value.lower().split())


HEADER_ALIASES: dict[str, str] = {
    **{normalize_header(c.label): c.field for c in IMPORT_COLUMNS},
    **{normalize_header(c.field): c.field for c in IMPORT_COLUMNS},
    "employee name": "name",
    "file no": "file_number",
    "phone": "mobile",
    "mobile number": "mobile",
    "job title": "position",
    "sponsor": "institution",
    "health insurance expiry": "insurance_expiry",
    "اسم الموظف": "name",
    "الاسم": "name",
    "رقم الملف": "file_number",
    "رقم الجوال": "mobile",
    "الجوال": "mobile",
    "البريد الإلكتروني": "email",
    "الجنسية": "nationality",
    "المنصب": "position",
    "الوظيفة": "position",
    "المؤسسة / الكفيل": "institution",
    "المؤسسة": "institution",
    "الكفيل": "institution",
    "الراتب": "salary",
    "رقم الإقامة": "iqama_number",
    "انتهاء الإقامة": "iqama_expiry",
    "انتهاء رخصة العمل": "work_permit_expiry",
    "انتهاء العقد": "contract_expiry",
    "انتهاء التأمين الصحي": "insurance_expiry",
    "انتهاء الشهادة الصحية": "health_cert_expiry",
}


@dataclass
class ImportIssue:
    row: int
    field: str
    message: str
    value: Any = None


@dataclass
class ImportRow:
    row: int
    values: dict[str, Any]
    errors: list[ImportIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def add_error(self, field_name: str, message: str, value: Any = None) -> None:
        self.errors.append(ImportIssue(self.row, field_name, message, value))


@dataclass
class ImportPreview:
    rows: list[ImportRow]
    total_rows: int

    @property
    def errors(self) -> list[ImportIssue]:
        return [issue for row in self.rows for issue in row.errors]

    @property
    def valid_rows(self) -> int:
        return sum(1 for row in self.rows if not row.has_errors)

    @property
    def error_rows(self) -> int:
        return sum(1 for row in self.rows if row.has_errors)


@dataclass
class ImportResult:
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[ImportIssue] = field(default_factory=list)


def parse_date(text: str) -> date | None:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _is_unsponsored(name: str | None) -> bool:
    return name is None or name.strip().casefold() in UNSPONSORED_VALUES


class EmployeeImportService(BaseService):
    """Parses uploaded employee sheets and writes them in one batch."""

    @staticmethod
    def template(delimiter: str = ",") -> str:
        """Header row (required columns marked with *) and one example row."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=delimiter)
        writer.writerow([f"{c.label} *" if c.required else c.label for c in IMPORT_COLUMNS])
        example = [c.example for c in IMPORT_COLUMNS]
        example[0] = f"Example: {example[0]}"
        writer.writerow(example)
        return output.getvalue()

    async def _active_institutions(self) -> dict[str, tuple[UUID, str]]:
        result = await self.session.execute(
            select(Institution.id, Institution.name)
            .where(Institution.status == InstitutionStatus.ACTIVE.value)
            .order_by(Institution.name.asc())
        )
        return {name.strip().casefold(): (id_, name) for id_, name in result.all()}

    async def institution_options(self) -> list[dict[str, Any]]:
        """Values accepted in the Institution column, unsponsored first."""
        institutions = await self._active_institutions()
        return [{"id": None, "name": UNSPONSORED}] + [
            {"id": id_, "name": name} for id_, name in institutions.values()
        ]

    async def parse(self, content: bytes) -> ImportPreview:
        """Read a CSV or TSV upload into cleaned rows with per-row errors, writing nothing."""
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise BusinessRuleError("File must be UTF-8 encoded CSV or TSV") from exc

        lines = [line for line in text.splitlines() if line.strip()]
        if len(lines) < 2:
            raise BusinessRuleError("File is empty or has no data rows")
        head = "".join(lines[:HEADER_SCAN_ROWS])
        delimiter = "\t" if head.count("\t") > head.count(",") else ","

        table = list(csv.reader(lines, delimiter=delimiter))
        header_index = self._find_header(table)
        fields = [HEADER_ALIASES.get(normalize_header(cell)) for cell in table[header_index]]
        data = table[header_index + 1 :]

        institutions = await self._active_institutions()
        seen_file_numbers: set[str] = set()
        rows: list[ImportRow] = []
        for number, cells in enumerate(data, start=1):
            if not any(cell.strip() for cell in cells):
                continue
            if cells[0].strip().lower().startswith(EXAMPLE_PREFIX):
                continue
            raw = {name: cell.strip() for name, cell in zip(fields, cells) if name}
            row = self._clean(number, raw)
            self._validate(row, institutions, seen_file_numbers)
            rows.append(row)

        preview = ImportPreview(rows=rows, total_rows=len(rows))
        logger.info(
            "Parsed employee upload: %d row(s), %d with errors", len(rows), preview.error_rows
        )
        return preview

    @staticmethod
    def _find_header(table: list[list[str]]) -> int:
        for index, cells in enumerate(table[:HEADER_SCAN_ROWS]):
            if any(HEADER_ALIASES.get(normalize_header(cell)) == "name" for cell in cells):
                return index
        raise BusinessRuleError("Header row with a Name column not found")

    @staticmethod
    def _clean(number: int, raw: dict[str, str]) -> ImportRow:
        row = ImportRow(row=number, values={})
        for column in IMPORT_COLUMNS:
            text = raw.get(column.field, "")
            value: Any = text or None
            if text and column.field == "salary":
                try:
                    value = Decimal(text.replace(",", ""))
                except InvalidOperation:
                    row.add_error("salary", "Salary must be a number", text)
                    value = None
            elif text and column.field in EXPIRY_FIELDS:
                value = parse_date(text)
                if value is None:
                    row.add_error(column.field, "Invalid date, use YYYY-MM-DD", text)
            row.values[column.field] = value
        return row

    @staticmethod
    def _validate(
        row: ImportRow,
        institutions: dict[str, tuple[UUID, str]],
        seen_file_numbers: set[str],
    ) -> None:
        values = row.values
        for name in REQUIRED_FIELDS:
            if not (values.get(name) or "").strip():
                row.add_error(name, f"{LABELS[name]} is required", values.get(name))

        mobile = (values.get("mobile") or "").strip()
        if mobile and not MOBILE_PATTERN.match(mobile):
            row.add_error("mobile", "Mobile must start with 05 and have 10 digits", mobile)

        email = (values.get("email") or "").strip()
        if email and not EMAIL_PATTERN.match(email):
            row.add_error("email", "Invalid email address", email)

        salary = values.get("salary")
        if salary is not None and salary < 0:
            row.add_error("salary", "Salary cannot be negative", salary)

        institution = values.get("institution")
        if not _is_unsponsored(institution) and institution.strip().casefold() not in institutions:
            row.add_error(
                "institution",
                f"Institution '{institution}' not found; leave it blank for unsponsored",
                institution,
            )

        file_number = (values.get("file_number") or "").strip()
        if file_number:
            if file_number in seen_file_numbers:
                row.add_error("file_number", "File number appears more than once", file_number)
            seen_file_numbers.add(file_number)

    async def import_employees(self, records: list[dict[str, Any]]) -> ImportResult:
        """Validate and write each record in its own savepoint; bad rows are reported."""
        institutions = await self._active_institutions()
        seen_file_numbers: set[str] = set()
        result = ImportResult()

        for number, values in enumerate(records, start=1):
            result.processed += 1
            row = ImportRow(row=number, values=dict(values))
            self._validate(row, institutions, seen_file_numbers)
            if row.has_errors:
                result.failed += 1
                result.errors.extend(row.errors)
                continue

            try:
                async with self.session.begin_nested():
                    created = await self._upsert(row.values, institutions)
            except IntegrityError:
                logger.warning("Employee import row %d conflicts with existing data", number)
                result.failed += 1
                result.errors.append(
                    ImportIssue(
                        number, "", "Record conflicts with existing data", values.get("file_number")
                    )
                )
                continue

            if created:
                result.created += 1
            else:
                result.updated += 1

        logger.info(
            "Employee import: processed=%d created=%d updated=%d failed=%d",
            result.processed,
            result.created,
            result.updated,
            result.failed,
        )
        return result

    async def _upsert(
        self, values: dict[str, Any], institutions: dict[str, tuple[UUID, str]]
    ) -> bool:
        """Create or update one employee; returns True when a new employee was created."""
        institution = values.get("institution")
        institution_id = None
        if not _is_unsponsored(institution):
            institution_id = institutions[institution.strip().casefold()][0]
        data = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in values.items()
            if key != "institution"
        }
        data["institution_id"] = institution_id

        employee = await self.session.scalar(
            select(Employee).where(Employee.file_number == data["file_number"])
        )
        if employee is None:
            data = {key: value for key, value in data.items() if value is not None}
            if institution_id is None:
                data["unsponsored_reason"] = UnsponsoredReason.NEW.value
            self.session.add(Employee(**data))
            await self.session.flush()
            return True

        # blank cells keep what the employee already has
        changes = {key: value for key, value in data.items() if value is not None}
        moved_out = institution is not None and institution_id is None
        if moved_out and employee.institution_id is not None:
            changes["institution_id"] = None
            changes["unsponsored_reason"] = UnsponsoredReason.TRANSFERRED.value
        elif institution_id is not None:
            changes["unsponsored_reason"] = None
        self._apply(employee, changes)
        await self.session.flush()
        return False
