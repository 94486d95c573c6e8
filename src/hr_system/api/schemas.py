"""Pydantic schemas for API request/response models.

JSON bodies are camelCase on the wire; snake_case field names are accepted
on input as well.
"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Generic, Literal, TypeVar
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel
from sqlalchemy import Row

from hr_system.calculators import PayCalculator
from hr_system.models.enums import (
    ArchiveReason,
    BranchStatus,
    CompensationType,
    EmployeeStatus,
    FormCategory,
    InstitutionStatus,
    LeaveStatus,
    LeaveType,
    PayrollRunStatus,
    ReportType,
    UnsponsoredReason,
    UserRole,
    UserStatus,
)

T = TypeVar("T")

# Decimal internally, JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]
MonthStr = Annotated[str, Field(pattern=r"^\d{4}-\d{2}$", examples=["2024-05"])]


def reject_null(value: Any) -> Any:
    """Update bodies may omit a required column but not set it to null."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value


# ============================================================================
# Base schemas
# ============================================================================


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, ORM attribute access, plain enum values."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class RowModel(CamelModel):
    """Response built from a query row: the entity first, then labelled columns."""

    @classmethod
    def from_row(cls, row: Row) -> "RowModel":
        obj = cls.model_validate(row[0])
        for key, value in row._asdict().items():
            if key in cls.model_fields:
                setattr(obj, key, value)
        return obj


class ApiResponse(CamelModel, Generic[T]):
    """Standard success envelope."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ListResponse(CamelModel, Generic[T]):
    """Success envelope for collections."""

    success: bool = True
    data: list[T]
    count: int
    message: str | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Error envelope."""

    success: bool = False
    error: str
    details: Any = None


# ============================================================================
# Institution schemas
# ============================================================================


class InstitutionBase(CamelModel):
    license_number: str | None = None
    license_expiry: date | None = None
    cr_number: str | None = None
    cr_issue_date: date | None = None
    cr_expiry_date: date | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None


class InstitutionCreate(InstitutionBase):
    name: str = Field(min_length=1, max_length=255)
    status: InstitutionStatus = InstitutionStatus.ACTIVE


class InstitutionUpdate(InstitutionBase):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: InstitutionStatus | None = None

    @field_validator("name", "status", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class InstitutionResponse(RowModel, InstitutionBase):
    id: UUID
    name: str
    status: str
    employee_count: int = 0
    created_at: datetime
    updated_at: datetime


class InstitutionDocumentCreate(CamelModel):
    name: str = Field(min_length=1)
    document_type: Literal["license", "commercial_record", "tax_certificate", "other"]
    file_path: str | None = None
    file_url: str | None = None


class InstitutionDocumentResponse(CamelModel):
    id: UUID
    institution_id: UUID
    name: str
    document_type: str
    file_path: str | None = None
    file_url: str | None = None
    upload_date: date
    created_at: datetime


class InstitutionExpiryStats(CamelModel):
    institution_id: UUID
    institution_name: str
    employee_count: int
    subscriptions_total: int
    subscriptions_expired: int
    subscriptions_expiring_soon: int
    expired_documents: dict[str, int]
    expiring_documents: dict[str, int]
    total_expired_documents: int
    total_expiring_documents: int


# ============================================================================
# Subscription schemas
# ============================================================================


class SubscriptionCreate(CamelModel):
    institution_id: UUID
    name: str = Field(min_length=1, max_length=255)
    icon: str | None = None
    expiry_date: date


class SubscriptionUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    icon: str | None = None
    expiry_date: date | None = None

    @field_validator("name", "expiry_date", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class SubscriptionResponse(RowModel):
    id: UUID
    institution_id: UUID
    institution_name: str | None = None
    name: str
    icon: str | None = None
    expiry_date: date
    status: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Branch schemas
# ============================================================================


class BranchBase(CamelModel):
    code: str | None = None
    institution_id: UUID | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    manager_id: UUID | None = None


class BranchCreate(BranchBase):
    name: str = Field(min_length=1, max_length=255)
    status: BranchStatus = BranchStatus.ACTIVE


class BranchUpdate(BranchBase):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: BranchStatus | None = None

    @field_validator("name", "status", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class BranchResponse(RowModel, BranchBase):
    id: UUID
    name: str
    status: str
    institution_name: str | None = None
    manager_name: str | None = None
    employee_count: int = 0
    created_at: datetime
    updated_at: datetime


class BranchTransferRequest(CamelModel):
    employee_id: UUID
    branch_id: UUID | None = None


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeBase(CamelModel):
    mobile: str | None = None
    email: str | None = None
    file_number: str | None = None
    nationality: str | None = None
    position: str | None = None
    photo_url: str | None = None
    iqama_number: str | None = None
    iqama_expiry: date | None = None
    work_permit_expiry: date | None = None
    contract_expiry: date | None = None
    insurance_expiry: date | None = None
    health_cert_expiry: date | None = None
    hire_date: date | None = None
    institution_id: UUID | None = None
    branch_id: UUID | None = None
    unsponsored_reason: UnsponsoredReason | None = None


class EmployeeCreate(EmployeeBase):
    name: str = Field(min_length=1, max_length=255)
    salary: Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)] = Decimal("0")


class EmployeeUpdate(EmployeeBase):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    salary: Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)] | None = None
    status: EmployeeStatus | None = None

    @field_validator("name", "salary", "status", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class EmployeeResponse(RowModel, EmployeeBase):
    id: UUID
    name: str
    salary: Money
    status: str
    archive_reason: str | None = None
    archive_date: date | None = None
    archived_at: datetime | None = None
    last_status_update: datetime | None = None
    institution_name: str | None = None
    branch_name: str | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeTransferRequest(CamelModel):
    institution_id: UUID | None = None
    unsponsored_reason: UnsponsoredReason | None = None


class EmployeeArchiveResponse(CamelModel):
    id: UUID
    status: str
    archive_reason: ArchiveReason
    archive_date: date | None = None


# ============================================================================
# Employee bulk upload schemas
# ============================================================================


class EmployeeImportRecord(CamelModel):
    """One sheet row. Checked row by row on import, so nothing is required here."""

    name: str | None = None
    file_number: str | None = None
    mobile: str | None = None
    email: str | None = None
    nationality: str | None = None
    position: str | None = None
    institution: str | None = None
    salary: Money | None = None
    iqama_number: str | None = None
    iqama_expiry: date | None = None
    work_permit_expiry: date | None = None
    contract_expiry: date | None = None
    insurance_expiry: date | None = None
    health_cert_expiry: date | None = None


class EmployeeImportRequest(CamelModel):
    employees: list[EmployeeImportRecord] = Field(min_length=1)


class ImportIssueResponse(CamelModel):
    row: int
    field: str
    message: str
    value: Any = None


class ImportRowResponse(EmployeeImportRecord):
    row: int
    has_errors: bool = False
    errors: list[ImportIssueResponse] = []


class ImportPreviewResponse(CamelModel):
    rows: list[ImportRowResponse]
    errors: list[ImportIssueResponse]
    total_rows: int
    valid_rows: int
    error_rows: int


class ImportResultResponse(CamelModel):
    processed: int
    created: int
    updated: int
    failed: int
    errors: list[ImportIssueResponse]


class InstitutionOption(CamelModel):
    id: UUID | None = None
    name: str


# ============================================================================
# Document schemas
# ============================================================================


class DocumentCreate(CamelModel):
    entity_type: Literal["employee", "institution"]
    entity_id: UUID
    document_type: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    file_path: str | None = None
    file_url: str | None = None
    expiry_date: date | None = None


class DocumentRenewRequest(CamelModel):
    expiry_date: date


class DocumentResponse(CamelModel):
    id: UUID
    entity_type: str
    entity_id: UUID
    entity_name: str | None = None
    document_type: str
    file_name: str
    file_path: str | None = None
    file_url: str | None = None
    expiry_date: date | None = None
    status: str
    upload_date: date
    created_at: datetime


# ============================================================================
# Advance schemas
# ============================================================================


class AdvanceCreate(CamelModel):
    employee_id: UUID
    amount: PositiveMoney
    installments: int = Field(default=1, ge=1)
    request_date: date | None = None
    notes: str | None = None


class AdvanceUpdate(CamelModel):
    amount: PositiveMoney | None = None
    installments: int | None = Field(default=None, ge=1)
    request_date: date | None = None
    notes: str | None = None

    @field_validator("amount", "installments", "request_date", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class AdvanceApproveRequest(CamelModel):
    approved_by: str | None = None


class RejectRequest(CamelModel):
    reason: str = Field(min_length=1)


class AdvanceResponse(RowModel):
    id: UUID
    employee_id: UUID
    employee_name: str | None = None
    employee_photo_url: str | None = None
    file_number: str | None = None
    institution_name: str | None = None
    branch_name: str | None = None
    amount: Money
    installments: int
    paid_amount: Money
    remaining_amount: Money
    request_date: date
    status: str
    notes: str | None = None
    approved_by: str | None = None
    approved_date: date | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def monthly_deduction(self) -> Money:
        return PayCalculator.monthly_deduction(self.amount, self.installments)


class AdvanceStatsResponse(CamelModel):
    total_advances: int
    total_amount: Money
    total_paid: Money
    total_remaining: Money
    pending_count: int
    approved_count: int
    paid_count: int
    rejected_count: int


# ============================================================================
# Advance deduction schemas
# ============================================================================


class InstallmentResponse(CamelModel):
    advance_id: UUID
    total_amount: Money
    remaining_amount: Money
    installments: int
    monthly_deduction: Money
    this_month_deduction: Money
    approved_date: date | None = None


class AdvanceDeductionResponse(RowModel):
    id: UUID
    advance_id: UUID
    employee_id: UUID
    payroll_run_id: UUID
    payroll_month: str | None = None
    deduction_amount: Money
    remaining_amount: Money
    deduction_date: date
    created_at: datetime


class MonthlyDeductionResponse(CamelModel):
    employee_id: UUID
    monthly_deduction: Money
    active_advances: list[InstallmentResponse]


class ManualDeductionRequest(CamelModel):
    employee_id: UUID
    payroll_run_id: UUID


class ManualDeductionResponse(CamelModel):
    total_deduction: Money
    deductions_count: int
    deductions: list[AdvanceDeductionResponse]


class DeductionPreviewItem(CamelModel):
    employee_id: UUID
    employee_name: str
    institution_id: UUID | None = None
    branch_id: UUID | None = None
    monthly_deduction: Money
    active_advances: list[InstallmentResponse]


class DeductionPreviewSummary(CamelModel):
    total_employees: int
    total_deductions: Money
    average_deduction: Money


class DeductionPreviewResponse(CamelModel):
    deductions: list[DeductionPreviewItem]
    summary: DeductionPreviewSummary


# ============================================================================
# Compensation schemas
# ============================================================================


class CompensationCreate(CamelModel):
    employee_id: UUID
    type: CompensationType
    amount: PositiveMoney
    reason: str = Field(min_length=1)
    date: dt.date
    created_by: str | None = None


class CompensationUpdate(CamelModel):
    employee_id: UUID | None = None
    type: CompensationType | None = None
    amount: PositiveMoney | None = None
    reason: str | None = Field(default=None, min_length=1)
    date: dt.date | None = None

    @field_validator("employee_id", "type", "amount", "reason", "date", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class CompensationResponse(RowModel):
    id: UUID
    employee_id: UUID
    employee_name: str | None = None
    employee_photo_url: str | None = None
    institution_name: str | None = None
    branch_name: str | None = None
    type: str
    amount: Money
    reason: str
    date: dt.date
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class CompensationStatsResponse(CamelModel):
    total_rewards: Money
    total_deductions: Money
    reward_count: int
    deduction_count: int
    net_amount: Money


class CompensationMonthlySummary(CamelModel):
    month: str
    total_rewards: Money
    total_deductions: Money
    net_amount: Money


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollCalculateRequest(CamelModel):
    month: MonthStr
    institution_id: UUID | None = None


class PayrollRunCreate(CamelModel):
    month: MonthStr
    institution_id: UUID | None = None
    notes: str | None = None


class CompensationItemResponse(CamelModel):
    id: UUID
    amount: Money
    reason: str
    date: dt.date


class EmployeePayResponse(CamelModel):
    employee_id: UUID
    employee_name: str
    employee_photo_url: str | None = None
    file_number: str | None = None
    institution_id: UUID | None = None
    base_salary: Money
    rewards: Money
    deductions: Money
    advance_deduction: Money
    gross_pay: Money
    net_pay: Money
    reward_items: list[CompensationItemResponse] = []
    deduction_items: list[CompensationItemResponse] = []
    advance_items: list[InstallmentResponse] = []


class PayrollSummaryResponse(CamelModel):
    total_employees: int
    total_gross: Money
    total_deductions: Money
    total_net: Money
    total_rewards: Money
    total_advance_deductions: Money
    average_gross_pay: Money
    average_net_pay: Money


class PayrollCalculationResponse(CamelModel):
    month: str
    institution_id: UUID | None = None
    calculations: list[EmployeePayResponse]
    summary: PayrollSummaryResponse


class PayrollRunResponse(RowModel):
    id: UUID
    month: str
    institution_id: UUID | None = None
    institution_name: str | None = None
    run_date: date
    total_employees: int
    total_gross: Money
    total_deductions: Money
    total_net: Money
    status: PayrollRunStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class PayrollEntryResponse(RowModel):
    id: UUID
    payroll_run_id: UUID
    employee_id: UUID
    employee_name: str | None = None
    employee_photo_url: str | None = None
    file_number: str | None = None
    base_salary: Money
    rewards: Money
    deductions: Money
    advance_deduction: Money
    gross_pay: Money
    net_pay: Money


class PayrollRunDetailResponse(PayrollRunResponse):
    entries: list[PayrollEntryResponse] = []


class PayrollStatsResponse(CamelModel):
    total_runs: int
    total_employees: int
    total_gross: Money
    total_deductions: Money
    total_net: Money
    average_net_pay: Money


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveCreate(CamelModel):
    employee_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = None


class LeaveUpdate(CamelModel):
    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None

    @field_validator("leave_type", "start_date", "end_date", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class LeaveApproveRequest(CamelModel):
    approved_by: str | None = None


class LeaveResponse(RowModel):
    id: UUID
    employee_id: UUID
    employee_name: str | None = None
    employee_photo_url: str | None = None
    institution_name: str | None = None
    branch_name: str | None = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = None
    status: LeaveStatus
    request_date: date
    approved_by: str | None = None
    approved_date: date | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class LeaveStatsItem(CamelModel):
    leave_type: str
    request_count: int
    total_days: int


# ============================================================================
# Form schemas
# ============================================================================


class FormBase(CamelModel):
    description: str | None = None
    icon_name: str | None = None
    icon_color: str | None = None
    file_path: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = None


class FormCreate(FormBase):
    title: str = Field(min_length=1, max_length=255)
    category: FormCategory = FormCategory.GENERAL
    is_active: bool = True


class FormUpdate(FormBase):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    category: FormCategory | None = None
    is_active: bool | None = None

    @field_validator("title", "category", "is_active", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class FormResponse(FormBase):
    id: UUID
    title: str
    category: str
    download_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FormDownloadResponse(CamelModel):
    id: UUID
    file_url: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    download_count: int


class FormStatsResponse(CamelModel):
    total_forms: int
    active_forms_count: int
    total_downloads: int
    category_counts: dict[str, int]


# ============================================================================
# User & auth schemas
# ============================================================================


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    remember_me: bool = False


class UserResponse(CamelModel):
    """User without password hash or lockout bookkeeping."""

    id: UUID
    name: str
    email: str
    role: str
    status: str
    permissions: list[str] = []
    phone: str | None = None
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime


class LoginResponse(CamelModel):
    user: UserResponse
    token: str
    expires_in: int


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    role: UserRole = UserRole.EMPLOYEE
    status: UserStatus = UserStatus.ACTIVE
    permissions: list[str] | None = None
    phone: str | None = None


class UserUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8)
    role: UserRole | None = None
    status: UserStatus | None = None
    permissions: list[str] | None = None
    phone: str | None = None

    @field_validator("name", "email", "password", "role", "status", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        return reject_null(value)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("New password cannot be blank")
        return value


class UserStatsResponse(CamelModel):
    total: int
    active: int
    inactive: int
    suspended: int
    by_role: dict[str, int]


class PermissionResponse(CamelModel):
    id: str
    name: str
    category: str
    is_high: bool


class PermissionCatalogueResponse(CamelModel):
    permissions: list[PermissionResponse]
    categories: dict[str, str]


class PermissionValidateRequest(CamelModel):
    permissions: list[str]
    role: UserRole | None = None


class PermissionValidateResponse(CamelModel):
    valid: list[str]
    invalid: list[str]
    high_risk: list[str]
    allowed: list[str] | None = None


class TokenUserResponse(CamelModel):
    """Identity decoded from the access token."""

    id: UUID
    email: str
    name: str
    role: str
    permissions: list[str] = []
    is_admin: bool = False


# ============================================================================
# Report and system schemas
# ============================================================================


def _report_cell(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


ReportCell = Annotated[Any, PlainSerializer(_report_cell, when_used="json")]


class ReportFiltersSchema(CamelModel):
    institution_id: UUID | None = None
    branch_id: UUID | None = None
    employee_id: UUID | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    month: MonthStr | None = None


class ReportRequest(CamelModel):
    report_type: ReportType
    filters: ReportFiltersSchema = Field(default_factory=ReportFiltersSchema)


class ReportColumnResponse(CamelModel):
    key: str
    label: str


class ReportPreviewResponse(CamelModel):
    """Rows are keyed by column key, in the order ``columns`` lists them."""

    report_type: str
    columns: list[ReportColumnResponse]
    rows: list[dict[str, ReportCell]]
    count: int
    generated_at: datetime


class SystemStatsResponse(CamelModel):
    total_users: int
    active_users: int
    inactive_users: int
    locked_users: int
    failed_login_attempts: int
    last_login_activity: datetime | None = None
    total_employees: int
    active_employees: int
    archived_employees: int
    unsponsored_employees: int
    total_salaries: Money
    average_salary: Money
    employees_with_expired_documents: int
    employees_with_expiring_documents: int
    total_institutions: int
    active_institutions: int
    total_branches: int
    pending_advances: int
    pending_leaves: int
    completed_payroll_runs: int
    active_forms: int
