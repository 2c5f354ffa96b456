from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from staff_console import crud
from staff_console.access import Action, Section
from staff_console.config import get_settings
from staff_console.dependencies import get_gateway, get_lifecycle, require_action, require_section
from staff_console.exceptions import ValidationError
from staff_console.gateway import ApiGateway
from staff_console.lifecycle import LeaveLifecycle, filter_requests, parse_draft, summarize
from staff_console.model import LeaveStatus, LeaveType
from staff_console.schemas import Identity
from staff_console.templating import flash, render

router = APIRouter(tags=["leaves"])

STATUS_FILTERS = ["ALL"] + [s.value for s in LeaveStatus]


def _is_editable(existing, user: Identity) -> bool:
    return existing.is_pending and str(existing.employee_id) == user.id


async def _my_leave_page(request: Request, gateway: ApiGateway, form: dict, errors: dict, status_code: int = 200):
    settings = get_settings()
    requests = await crud.get_my_leave_requests(gateway)
    return render(request, "my_leave.html", {
        "requests": requests,
        "summary": summarize(requests, settings.ANNUAL_LEAVE_DAYS, settings.SICK_LEAVE_DAYS),
        "leave_types": list(LeaveType),
        "form": form,
        "errors": errors,
    }, status_code=status_code)


@router.get("/my-leave")
async def my_leave(
    request: Request,
    current_user: Identity = Depends(require_section(Section.MY_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
):
    return await _my_leave_page(request, gateway, {"type": LeaveType.VACATION.value}, {})


@router.post("/my-leave")
async def submit_leave(
    request: Request,
    type: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form(""),
    reason: str = Form(""),
    current_user: Identity = Depends(require_action(Action.SUBMIT_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
    lifecycle: LeaveLifecycle = Depends(get_lifecycle),
):
    form = {"type": type, "start_date": start_date, "end_date": end_date, "reason": reason}
    try:
        created = await lifecycle.submit(parse_draft(type, start_date, end_date, reason))
    except ValidationError as e:
        return await _my_leave_page(request, gateway, form, {e.field: e.message}, status_code=400)

    flash(request, f"Leave request submitted ({created.days} days)", "success")
    return RedirectResponse(url="/my-leave", status_code=303)


@router.get("/my-leave/{request_id}/edit")
async def edit_leave_page(
    request: Request,
    request_id: int,
    current_user: Identity = Depends(require_action(Action.EDIT_OWN_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
):
    existing = await crud.get_leave_request(gateway, request_id)
    form = {
        "type": existing.type.value,
        "start_date": existing.start_date.isoformat(),
        "end_date": existing.end_date.isoformat(),
        "reason": existing.reason,
    }
    return render(request, "leave_form.html", {
        "leave": existing,
        "editable": _is_editable(existing, current_user),
        "leave_types": list(LeaveType),
        "form": form,
    })


@router.post("/my-leave/{request_id}/edit")
async def edit_leave(
    request: Request,
    request_id: int,
    type: str = Form(""),
    start_date: str = Form(""),
    end_date: str = Form(""),
    reason: str = Form(""),
    current_user: Identity = Depends(require_action(Action.EDIT_OWN_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
    lifecycle: LeaveLifecycle = Depends(get_lifecycle),
):
    existing = await crud.get_leave_request(gateway, request_id)
    lifecycle.ensure_editable(existing)

    form = {"type": type, "start_date": start_date, "end_date": end_date, "reason": reason}
    try:
        await lifecycle.edit(existing, parse_draft(type, start_date, end_date, reason))
    except ValidationError as e:
        return render(request, "leave_form.html", {
            "leave": existing,
            "editable": _is_editable(existing, current_user),
            "leave_types": list(LeaveType),
            "form": form,
            "errors": {e.field: e.message},
        }, status_code=400)

    flash(request, "Leave request updated", "success")
    return RedirectResponse(url="/my-leave", status_code=303)


@router.post("/my-leave/{request_id}/withdraw")
async def withdraw_leave(
    request: Request,
    request_id: int,
    current_user: Identity = Depends(require_action(Action.WITHDRAW_OWN_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
    lifecycle: LeaveLifecycle = Depends(get_lifecycle),
):
    existing = await crud.get_leave_request(gateway, request_id)
    await lifecycle.withdraw(existing)
    flash(request, "Leave request withdrawn", "success")
    return RedirectResponse(url="/my-leave", status_code=303)


@router.get("/leave-requests")
async def leave_requests(
    request: Request,
    q: str = "",
    status: str = "ALL",
    current_user: Identity = Depends(require_section(Section.LEAVE_REQUESTS)),
    gateway: ApiGateway = Depends(get_gateway),
):
    all_requests = await crud.get_leave_requests(gateway)
    status = status.upper() if status.upper() in STATUS_FILTERS else "ALL"
    return render(request, "leave_requests.html", {
        "requests": filter_requests(all_requests, q, status),
        "filtered": bool(q.strip()) or status != "ALL",
        "q": q,
        "status": status,
        "status_filters": STATUS_FILTERS,
    })


@router.post("/leave-requests/{request_id}/decision")
async def decide_leave(
    request: Request,
    request_id: int,
    outcome: str = Form(...),
    comment: str = Form(""),
    current_user: Identity = Depends(require_action(Action.DECIDE_LEAVE)),
    gateway: ApiGateway = Depends(get_gateway),
    lifecycle: LeaveLifecycle = Depends(get_lifecycle),
):
    existing = await crud.get_leave_request(gateway, request_id)
    decided = await lifecycle.decide(existing, outcome.upper(), comment)
    flash(request, f"Leave request {decided.status.value.lower()} successfully", "success")
    return RedirectResponse(url="/leave-requests", status_code=303)
