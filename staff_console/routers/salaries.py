import math
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as SchemaError

from staff_console import crud
from staff_console.access import Action, Section
from staff_console.dependencies import get_gateway, require_action, require_section
from staff_console.exceptions import RequiredFieldMissing, ValidationError
from staff_console.gateway import ApiGateway
from staff_console.model import SalaryStatus
from staff_console.schemas import Identity, SalaryCreate
from staff_console.templating import flash, render

router = APIRouter(prefix="/salary", tags=["salary"])

_NUMBER_FIELDS = ("base_salary", "bonus", "deductions")


def _salary_from_form(form: dict) -> SalaryCreate:
    for field in ("employee_id", "base_salary", "month"):
        if not (form.get(field) or "").strip():
            raise RequiredFieldMissing(field=field)

    values = {}
    for field in _NUMBER_FIELDS:
        try:
            values[field] = float(form.get(field) or 0)
        except ValueError:
            raise ValidationError("Enter a number", field=field)
        if not math.isfinite(values[field]):
            raise ValidationError("Enter a number", field=field)
    try:
        employee_id = int(form["employee_id"])
    except ValueError:
        raise ValidationError("Employee is required", field="employee_id")

    month = form["month"].strip()
    try:
        year = int(form.get("year") or month[:4])
    except ValueError:
        raise ValidationError("Year must be valid", field="year")

    try:
        return SalaryCreate(
            employee_id=employee_id,
            month=month,
            year=year,
            status=SalaryStatus(form.get("status") or SalaryStatus.PENDING.value),
            comments=form.get("comments", "").strip() or None,
            **values,
        )
    except (SchemaError, ValueError):
        raise ValidationError("Unknown salary status", field="status")


async def _read_form(request: Request) -> dict:
    data = await request.form()
    return {key: str(value) for key, value in data.items()}


async def _form_context(gateway: ApiGateway, form: dict, salary_id: Optional[int] = None) -> dict:
    return {
        "form": form,
        "salary_id": salary_id,
        "employees": await crud.get_employees(gateway),
        "statuses": list(SalaryStatus),
    }


@router.get("")
async def list_salaries(
    request: Request,
    q: str = "",
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[int] = None,
    current_user: Identity = Depends(require_section(Section.SALARY)),
    gateway: ApiGateway = Depends(get_gateway),
):
    if employee_id is not None:
        salaries = await crud.get_employee_salaries(gateway, employee_id)
    elif month is not None and year is not None:
        salaries = await crud.get_salaries_for_month(gateway, month, year)
    else:
        salaries = await crud.get_salaries(gateway)
    return render(request, "salary.html", {
        "salaries": crud.search_salaries(salaries, q),
        "q": q,
        "month": month,
        "year": year,
    })


@router.get("/new")
async def new_salary(
    request: Request,
    current_user: Identity = Depends(require_action(Action.MANAGE_SALARIES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    return render(request, "salary_form.html", await _form_context(gateway, {"status": "PENDING"}))


@router.post("")
async def create_salary(
    request: Request,
    current_user: Identity = Depends(require_action(Action.MANAGE_SALARIES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    form = await _read_form(request)
    try:
        salary = await crud.create_salary(gateway, _salary_from_form(form))
    except ValidationError as e:
        context = await _form_context(gateway, form)
        context["errors"] = {e.field: e.message}
        return render(request, "salary_form.html", context, status_code=400)

    flash(request, f"Salary record for {salary.month} created", "success")
    return RedirectResponse(url="/salary", status_code=303)


@router.get("/{salary_id}/edit")
async def edit_salary(
    request: Request,
    salary_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_SALARIES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    salary = await crud.get_salary(gateway, salary_id)
    form = salary.model_dump(mode="json")
    return render(request, "salary_form.html", await _form_context(gateway, form, salary_id))


@router.post("/{salary_id}/edit")
async def update_salary(
    request: Request,
    salary_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_SALARIES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    form = await _read_form(request)
    try:
        await crud.update_salary(gateway, salary_id, _salary_from_form(form))
    except ValidationError as e:
        context = await _form_context(gateway, form, salary_id)
        context["errors"] = {e.field: e.message}
        return render(request, "salary_form.html", context, status_code=400)

    flash(request, "Salary record updated", "success")
    return RedirectResponse(url="/salary", status_code=303)


@router.post("/{salary_id}/delete")
async def delete_salary(
    request: Request,
    salary_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_SALARIES)),
    gateway: ApiGateway = Depends(get_gateway),
):
    await crud.delete_salary(gateway, salary_id)
    flash(request, "Salary record deleted", "success")
    return RedirectResponse(url="/salary", status_code=303)
