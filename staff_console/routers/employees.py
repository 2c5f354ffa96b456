import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as SchemaError

from staff_console import crud
from staff_console.access import Action, Section
from staff_console.dependencies import get_gateway, require_action, require_section
from staff_console.exceptions import RequiredFieldMissing, ValidationError
from staff_console.gateway import ApiGateway
from staff_console.model import EmployeeStatus
from staff_console.schemas import EmployeeCreate, Identity
from staff_console.templating import flash, render

router = APIRouter(tags=["employees"])

_REQUIRED = ("first_name", "last_name", "email")


def _employee_from_form(form: dict) -> EmployeeCreate:
    for field in _REQUIRED:
        if not (form.get(field) or "").strip():
            raise RequiredFieldMissing(field=field)

    try:
        hire_date = date.fromisoformat(form["hire_date"]) if form.get("hire_date") else None
    except ValueError:
        raise ValidationError("Enter a valid date (YYYY-MM-DD)", field="hire_date")
    try:
        salary = float(form.get("salary") or 0)
    except ValueError:
        raise ValidationError("Salary must be a number", field="salary")
    if not math.isfinite(salary):
        raise ValidationError("Salary must be a number", field="salary")
    if salary < 0:
        raise ValidationError("Salary must be a positive number", field="salary")
    try:
        department_id = int(form["department_id"]) if form.get("department_id") else None
    except ValueError:
        raise ValidationError("Choose a department", field="department_id")
    try:
        status = EmployeeStatus(form.get("status") or EmployeeStatus.ACTIVE.value)
    except ValueError:
        raise ValidationError("Unknown status", field="status")

    try:
        return EmployeeCreate(
            first_name=form["first_name"].strip(),
            last_name=form["last_name"].strip(),
            email=form["email"].strip(),
            phone=form.get("phone", "").strip(),
            department_id=department_id,
            position=form.get("position", "").strip(),
            hire_date=hire_date,
            salary=salary,
            address=form.get("address", "").strip(),
            status=status,
        )
    except SchemaError:
        raise ValidationError("Enter a valid email address", field="email")


async def _form_context(gateway: ApiGateway, form: dict, employee_id: Optional[int] = None) -> dict:
    return {
        "form": form,
        "employee_id": employee_id,
        "departments": await crud.get_departments(gateway),
        "statuses": list(EmployeeStatus),
    }


async def _read_form(request: Request) -> dict:
    data = await request.form()
    return {key: str(value) for key, value in data.items()}


@router.get("/employees")
async def list_employees(
    request: Request,
    q: str = "",
    current_user: Identity = Depends(require_section(Section.EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    employees = await crud.get_employees(gateway)
    return render(request, "employees.html", {
        "employees": crud.search_employees(employees, q),
        "q": q,
    })


@router.get("/employees/new")
async def new_employee(
    request: Request,
    current_user: Identity = Depends(require_action(Action.MANAGE_EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    return render(request, "employee_form.html", await _form_context(gateway, {"status": "ACTIVE"}))


@router.post("/employees")
async def create_employee(
    request: Request,
    current_user: Identity = Depends(require_action(Action.MANAGE_EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    form = await _read_form(request)
    try:
        employee = await crud.create_employee(gateway, _employee_from_form(form))
    except ValidationError as e:
        context = await _form_context(gateway, form)
        context["errors"] = {e.field: e.message}
        return render(request, "employee_form.html", context, status_code=400)

    flash(request, f"{employee.full_name} was added", "success")
    return RedirectResponse(url="/employees", status_code=303)


@router.get("/employees/{employee_id}/edit")
async def edit_employee(
    request: Request,
    employee_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    employee = await crud.get_employee(gateway, employee_id)
    form = employee.model_dump(mode="json")
    form["salary"] = employee.salary
    return render(request, "employee_form.html", await _form_context(gateway, form, employee_id))


@router.post("/employees/{employee_id}/edit")
async def update_employee(
    request: Request,
    employee_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    form = await _read_form(request)
    try:
        employee = await crud.update_employee(gateway, employee_id, _employee_from_form(form))
    except ValidationError as e:
        context = await _form_context(gateway, form, employee_id)
        context["errors"] = {e.field: e.message}
        return render(request, "employee_form.html", context, status_code=400)

    flash(request, f"{employee.full_name} was updated", "success")
    return RedirectResponse(url="/employees", status_code=303)


@router.post("/employees/{employee_id}/delete")
async def delete_employee(
    request: Request,
    employee_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_EMPLOYEES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    await crud.delete_employee(gateway, employee_id)
    flash(request, "Employee deleted", "success")
    return RedirectResponse(url="/employees", status_code=303)


@router.get("/directory")
async def directory(
    request: Request,
    q: str = "",
    current_user: Identity = Depends(require_section(Section.DIRECTORY)),
    gateway: ApiGateway = Depends(get_gateway),
):
    employees = await crud.get_employees(gateway)
    return render(request, "directory.html", {
        "employees": crud.search_employees(employees, q),
        "q": q,
    })
