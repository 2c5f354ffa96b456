from datetime import date

from fastapi import APIRouter, Depends, Request

from staff_console import crud
from staff_console.access import Section
from staff_console.auth import SessionStore
from staff_console.dependencies import get_gateway, get_session_store, require_section
from staff_console.gateway import ApiGateway
from staff_console.lifecycle import upcoming_leave
from staff_console.model import EmployeeStatus, LeaveStatus
from staff_console.schemas import AdminStats, Identity
from staff_console.templating import render

router = APIRouter(tags=["home"])

RECENT_LIMIT = 5


def admin_stats(employees, departments, leave_requests) -> AdminStats:
    total_salary = sum(e.salary for e in employees)
    return AdminStats(
        total_employees=len(employees),
        active_employees=sum(1 for e in employees if e.status == EmployeeStatus.ACTIVE),
        total_departments=len(departments),
        pending_leave_requests=sum(1 for r in leave_requests if r.status == LeaveStatus.PENDING),
        average_salary=round(total_salary / (len(employees) or 1)),
    )


@router.get("/dashboard")
async def dashboard(
    request: Request,
    current_user: Identity = Depends(require_section(Section.DASHBOARD)),
    gateway: ApiGateway = Depends(get_gateway),
):
    if current_user.is_admin:
        employees = await crud.get_employees(gateway)
        departments = await crud.get_departments(gateway)
        leave_requests = await crud.get_leave_requests(gateway)
        return render(request, "dashboard.html", {
            "stats": admin_stats(employees, departments, leave_requests),
            "recent": leave_requests[:RECENT_LIMIT],
            "departments": departments,
        })

    my_requests = await crud.get_my_leave_requests(gateway)
    counts = {status.value: sum(1 for r in my_requests if r.status == status) for status in LeaveStatus}
    return render(request, "dashboard.html", {
        "counts": counts,
        "total": len(my_requests),
        "upcoming": upcoming_leave(my_requests, date.today()),
        "recent": my_requests[:RECENT_LIMIT],
    })


@router.get("/profile")
async def profile(
    request: Request,
    current_user: Identity = Depends(require_section(Section.PROFILE)),
    session: SessionStore = Depends(get_session_store),
    gateway: ApiGateway = Depends(get_gateway),
):
    identity = await session.refresh_identity(gateway)
    return render(request, "profile.html", {"profile": identity})
