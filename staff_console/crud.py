import logging
import math
import re
from typing import List, Optional

from staff_console.exceptions import ValidationError
from staff_console.gateway import ApiGateway
from staff_console.schemas import (
    Department,
    DepartmentCreate,
    Employee,
    EmployeeCreate,
    LeaveRequest,
    Salary,
    SalaryCreate,
)

logger = logging.getLogger("staff_console.records")

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _matches(term: str, *values) -> bool:
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in str(value or "").lower() for value in values)


# Employee CRUD
async def get_employees(gateway: ApiGateway) -> List[Employee]:
    data = await gateway.get("/employees")
    return [Employee.model_validate(item) for item in data or []]


async def get_employee(gateway: ApiGateway, employee_id: int) -> Employee:
    return Employee.model_validate(await gateway.get(f"/employees/{employee_id}"))


async def _with_department_name(gateway: ApiGateway, employee: EmployeeCreate) -> EmployeeCreate:
    """Resolve the denormalized department name from the department id"""
    if employee.department_id is None:
        return employee.model_copy(update={"department_name": None})
    department = await get_department(gateway, employee.department_id)
    return employee.model_copy(update={"department_name": department.name})


async def create_employee(gateway: ApiGateway, employee: EmployeeCreate) -> Employee:
    employee = await _with_department_name(gateway, employee)
    created = Employee.model_validate(await gateway.post("/employees", json=employee.to_api()))
    logger.info("Created employee %s", created.id)
    return created


async def update_employee(gateway: ApiGateway, employee_id: int, employee: EmployeeCreate) -> Employee:
    employee = await _with_department_name(gateway, employee)
    data = await gateway.put(f"/employees/{employee_id}", json=employee.to_api())
    return Employee.model_validate(data)


async def delete_employee(gateway: ApiGateway, employee_id: int) -> None:
    await gateway.delete(f"/employees/{employee_id}")
    logger.info("Deleted employee %s", employee_id)


def search_employees(employees: List[Employee], term: str) -> List[Employee]:
    return [
        e for e in employees
        if _matches(term, e.full_name, e.email, e.position, e.department_name)
    ]


# Department CRUD
async def get_departments(gateway: ApiGateway) -> List[Department]:
    data = await gateway.get("/departments")
    return [Department.model_validate(item) for item in data or []]


async def get_department(gateway: ApiGateway, department_id: int) -> Department:
    return Department.model_validate(await gateway.get(f"/departments/{department_id}"))


def validate_department(department: DepartmentCreate) -> None:
    if not department.name.strip():
        raise ValidationError("Department name is required", field="name")
    if not department.description.strip():
        raise ValidationError("Description is required", field="description")


async def create_department(gateway: ApiGateway, department: DepartmentCreate) -> Department:
    validate_department(department)
    return Department.model_validate(await gateway.post("/departments", json=department.to_api()))


async def update_department(gateway: ApiGateway, department_id: int, department: DepartmentCreate) -> Department:
    validate_department(department)
    data = await gateway.put(f"/departments/{department_id}", json=department.to_api())
    return Department.model_validate(data)


def department_delete_warning(department: Department) -> Optional[str]:
    if department.employee_count > 0:
        return (
            f"{department.name} still has {department.employee_count} employee(s); "
            "they may be unassigned or removed by the server."
        )
    return None


async def delete_department(gateway: ApiGateway, department: Department) -> Optional[str]:
    """Delete a department and return the warning shown for non-empty ones"""
    warning = department_delete_warning(department)
    if warning:
        logger.warning("Deleting department %s with %s employees", department.id, department.employee_count)
    await gateway.delete(f"/departments/{department.id}")
    return warning


# Leave request CRUD
async def get_leave_requests(gateway: ApiGateway) -> List[LeaveRequest]:
    data = await gateway.get("/leave-requests")
    return [LeaveRequest.model_validate(item) for item in data or []]


async def get_my_leave_requests(gateway: ApiGateway) -> List[LeaveRequest]:
    data = await gateway.get("/leave-requests/my")
    return [LeaveRequest.model_validate(item) for item in data or []]


async def get_leave_request(gateway: ApiGateway, request_id: int) -> LeaveRequest:
    return LeaveRequest.model_validate(await gateway.get(f"/leave-requests/{request_id}"))


async def create_leave_request(gateway: ApiGateway, payload: dict) -> LeaveRequest:
    return LeaveRequest.model_validate(await gateway.post("/leave-requests", json=payload))


async def update_leave_request(gateway: ApiGateway, request_id: int, payload: dict) -> LeaveRequest:
    return LeaveRequest.model_validate(await gateway.put(f"/leave-requests/{request_id}", json=payload))


async def delete_leave_request(gateway: ApiGateway, request_id: int) -> None:
    await gateway.delete(f"/leave-requests/{request_id}")


# Salary CRUD
async def get_salaries(gateway: ApiGateway) -> List[Salary]:
    data = await gateway.get("/salaries")
    return [Salary.model_validate(item) for item in data or []]


async def get_salary(gateway: ApiGateway, salary_id: int) -> Salary:
    return Salary.model_validate(await gateway.get(f"/salaries/{salary_id}"))


async def get_employee_salaries(gateway: ApiGateway, employee_id: int) -> List[Salary]:
    data = await gateway.get(f"/salaries/employee/{employee_id}")
    return [Salary.model_validate(item) for item in data or []]


async def get_salaries_for_month(gateway: ApiGateway, month: int, year: int) -> List[Salary]:
    data = await gateway.get(f"/salaries/month/{month}/year/{year}")
    return [Salary.model_validate(item) for item in data or []]


def validate_salary(salary: SalaryCreate) -> None:
    if salary.employee_id < 1:
        raise ValidationError("Employee is required", field="employee_id")
    for field in ("base_salary", "bonus", "deductions"):
        if not math.isfinite(getattr(salary, field)) or getattr(salary, field) < 0:
            raise ValidationError("Amount must be a positive number", field=field)
    if not _MONTH_PATTERN.match(salary.month):
        raise ValidationError("Month must look like YYYY-MM", field="month")
    if salary.year < 2000:
        raise ValidationError("Year must be valid", field="year")
    if int(salary.month[:4]) != salary.year:
        raise ValidationError("Month and year do not match", field="year")


async def create_salary(gateway: ApiGateway, salary: SalaryCreate) -> Salary:
    validate_salary(salary)
    return Salary.model_validate(await gateway.post("/salaries", json=salary.to_api()))


async def update_salary(gateway: ApiGateway, salary_id: int, salary: SalaryCreate) -> Salary:
    validate_salary(salary)
    return Salary.model_validate(await gateway.put(f"/salaries/{salary_id}", json=salary.to_api()))


async def delete_salary(gateway: ApiGateway, salary_id: int) -> None:
    await gateway.delete(f"/salaries/{salary_id}")


def search_salaries(salaries: List[Salary], term: str) -> List[Salary]:
    return [s for s in salaries if _matches(term, s.employee_name, s.month, s.status.value)]
