from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from staff_console import crud
from staff_console.access import Action, Section
from staff_console.dependencies import get_gateway, require_action, require_section
from staff_console.exceptions import ValidationError
from staff_console.gateway import ApiGateway
from staff_console.schemas import DepartmentCreate, Identity
from staff_console.templating import flash, render

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("")
async def list_departments(
    request: Request,
    current_user: Identity = Depends(require_section(Section.DEPARTMENTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    departments = await crud.get_departments(gateway)
    return render(request, "departments.html", {
        "departments": departments,
        "warnings": {d.id: crud.department_delete_warning(d) for d in departments},
        "form": {},
    })


@router.post("")
async def create_department(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    current_user: Identity = Depends(require_action(Action.MANAGE_DEPARTMENTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    department = DepartmentCreate(name=name.strip(), description=description.strip())
    try:
        created = await crud.create_department(gateway, department)
    except ValidationError as e:
        departments = await crud.get_departments(gateway)
        return render(request, "departments.html", {
            "departments": departments,
            "warnings": {d.id: crud.department_delete_warning(d) for d in departments},
            "form": {"name": name, "description": description},
            "errors": {e.field: e.message},
        }, status_code=400)

    flash(request, f"Department {created.name} created", "success")
    return RedirectResponse(url="/departments", status_code=303)


@router.get("/{department_id}/edit")
async def edit_department(
    request: Request,
    department_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_DEPARTMENTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    department = await crud.get_department(gateway, department_id)
    return render(request, "department_form.html", {
        "department_id": department_id,
        "form": {"name": department.name, "description": department.description},
    })


@router.post("/{department_id}/edit")
async def update_department(
    request: Request,
    department_id: int,
    name: str = Form(""),
    description: str = Form(""),
    current_user: Identity = Depends(require_action(Action.MANAGE_DEPARTMENTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    department = DepartmentCreate(name=name.strip(), description=description.strip())
    try:
        updated = await crud.update_department(gateway, department_id, department)
    except ValidationError as e:
        return render(request, "department_form.html", {
            "department_id": department_id,
            "form": {"name": name, "description": description},
            "errors": {e.field: e.message},
        }, status_code=400)

    flash(request, f"Department {updated.name} updated", "success")
    return RedirectResponse(url="/departments", status_code=303)


@router.post("/{department_id}/delete")
async def delete_department(
    request: Request,
    department_id: int,
    current_user: Identity = Depends(require_action(Action.MANAGE_DEPARTMENTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    department = await crud.get_department(gateway, department_id)
    warning = await crud.delete_department(gateway, department)
    if warning:
        flash(request, warning, "warning")
    flash(request, f"Department {department.name} deleted", "success")
    return RedirectResponse(url="/departments", status_code=303)
