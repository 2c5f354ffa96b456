from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"

    @classmethod
    def from_backend(cls, value) -> "Role":
        """Map a backend role name, falling back to the least privileged role"""
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.EMPLOYEE


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LeaveType(str, Enum):
    VACATION = "VACATION"
    SICK = "SICK"
    PERSONAL = "PERSONAL"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value):
        # "ANNUAL" is the older spelling of VACATION
        if isinstance(value, str):
            normalized = value.strip().upper()
            if normalized == "ANNUAL":
                return cls.VACATION
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SalaryStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
