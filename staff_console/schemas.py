from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from staff_console.model import EmployeeStatus, LeaveStatus, LeaveType, Role, SalaryStatus


class ApiModel(BaseModel):
    """Backend payloads use camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Auth

class LoginRequest(ApiModel):
    email: str
    password: str


class RegisterRequest(ApiModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    role: Role = Role.EMPLOYEE


class BackendUser(ApiModel):
    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    role: str = Role.EMPLOYEE.value


class AuthResponse(ApiModel):
    token: str
    user: BackendUser


class Identity(BaseModel):
    """The signed-in user as kept in the session"""

    id: str
    name: str
    email: str
    role: Role

    @classmethod
    def from_backend_user(cls, user: BackendUser) -> "Identity":
        return cls(
            id=str(user.id),
            name=f"{user.first_name} {user.last_name}".strip() or user.email,
            email=user.email,
            role=Role.from_backend(user.role),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split() if part).upper()


# Employees

class EmployeeBase(ApiModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str = ""
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    position: str = ""
    hire_date: Optional[date] = None
    salary: float = 0
    address: str = ""
    status: EmployeeStatus = EmployeeStatus.ACTIVE


class EmployeeCreate(EmployeeBase):
    pass


class Employee(EmployeeBase):
    id: int
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# Departments

class DepartmentCreate(ApiModel):
    name: str
    description: str = ""


class Department(DepartmentCreate):
    id: int
    employee_count: int = 0


# Leave requests

class LeaveRequest(ApiModel):
    id: int
    employee_id: Optional[int] = None
    employee_name: str = ""
    type: LeaveType
    start_date: date
    end_date: date
    reason: str = ""
    status: LeaveStatus = LeaveStatus.PENDING
    comment: Optional[str] = Field(default=None, validation_alias=AliasChoices("comment", "comments"))
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("createdAt", "requestDate", "created_at")
    )

    @property
    def days(self) -> int:
        return abs((self.end_date - self.start_date).days) + 1

    @property
    def is_pending(self) -> bool:
        return self.status == LeaveStatus.PENDING


class LeaveDraft(BaseModel):
    """Form input for a new or edited leave request, not yet validated"""

    type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: str = ""

    def to_api(self, status: Optional[LeaveStatus] = None) -> dict:
        payload = {
            "type": self.type.value if self.type else None,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "reason": self.reason.strip(),
        }
        if status is not None:
            payload["status"] = status.value
        return payload


# Salaries

class SalaryCreate(ApiModel):
    employee_id: int
    base_salary: float
    bonus: float = 0
    deductions: float = 0
    month: str
    year: int
    status: SalaryStatus = SalaryStatus.PENDING
    comments: Optional[str] = None


class Salary(SalaryCreate):
    id: int
    employee_name: str = ""
    net_salary: Optional[float] = None

    @model_validator(mode="after")
    def fill_net_salary(self):
        # Older backend builds leave netSalary out of the response
        if self.net_salary is None:
            self.net_salary = self.base_salary + self.bonus - self.deductions
        return self


# Views

class LeaveSummary(BaseModel):
    annual_allowance: int
    sick_allowance: int
    used_days: int
    pending: int
    approved: int
    rejected: int


class AdminStats(BaseModel):
    total_employees: int
    active_employees: int
    total_departments: int
    pending_leave_requests: int
    average_salary: int
