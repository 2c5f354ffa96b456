"""
Leave request lifecycle.

    PENDING --decide--> APPROVED | REJECTED   (admins only, terminal)
    PENDING --edit / withdraw-->              (owning employee only)

Drafts are validated here, before anything is sent to the backend.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional

from staff_console import crud
from staff_console.access import Action, require
from staff_console.auth import SessionStore
from staff_console.exceptions import (
    AlreadyDecided,
    InvalidDateRange,
    NotEditable,
    PastStartDate,
    ReasonTooShort,
    RequiredFieldMissing,
    UnauthorizedActor,
    ValidationError,
)
from staff_console.gateway import ApiGateway
from staff_console.model import LeaveStatus, LeaveType
from staff_console.schemas import Identity, LeaveDraft, LeaveRequest, LeaveSummary

logger = logging.getLogger("staff_console.lifecycle")

MIN_REASON_LENGTH = 5
DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


def days_requested(start_date: date, end_date: date) -> int:
    """Inclusive number of calendar days between two dates"""
    return abs((end_date - start_date).days) + 1


def used_leave(requests: Iterable[LeaveRequest], employee_id=None) -> int:
    """Days taken by approved requests, optionally for one employee"""
    return sum(
        r.days for r in requests
        if r.status == LeaveStatus.APPROVED
        and (employee_id is None or str(r.employee_id) == str(employee_id))
    )


def summarize(requests: List[LeaveRequest], annual_allowance: int, sick_allowance: int) -> LeaveSummary:
    return LeaveSummary(
        annual_allowance=annual_allowance,
        sick_allowance=sick_allowance,
        used_days=used_leave(requests),
        pending=sum(1 for r in requests if r.status == LeaveStatus.PENDING),
        approved=sum(1 for r in requests if r.status == LeaveStatus.APPROVED),
        rejected=sum(1 for r in requests if r.status == LeaveStatus.REJECTED),
    )


def filter_requests(requests: Iterable[LeaveRequest], search: str = "", status: str = "ALL") -> List[LeaveRequest]:
    """Case-insensitive search over employee name, reason and type plus a status filter"""
    needle = (search or "").strip().lower()
    wanted = (status or "ALL").upper()
    result = []
    for r in requests:
        if wanted != "ALL" and r.status.value != wanted:
            continue
        if needle and not any(needle in value.lower() for value in (r.employee_name, r.reason, r.type.value)):
            continue
        result.append(r)
    return result


def upcoming_leave(requests: Iterable[LeaveRequest], today: date) -> Optional[LeaveRequest]:
    approved = [r for r in requests if r.status == LeaveStatus.APPROVED and r.start_date > today]
    return min(approved, key=lambda r: r.start_date, default=None)


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    if not value or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Enter a valid date (YYYY-MM-DD)", field=field)


def parse_draft(type: Optional[str], start_date: Optional[str], end_date: Optional[str], reason: Optional[str]) -> LeaveDraft:
    """Build a draft from raw form values"""
    leave_type = None
    if type and type.strip():
        try:
            leave_type = LeaveType(type)
        except ValueError:
            raise ValidationError("Unknown leave type", field="type")
    return LeaveDraft(
        type=leave_type,
        start_date=_parse_date(start_date, "start_date"),
        end_date=_parse_date(end_date, "end_date"),
        reason=reason or "",
    )


def validate_draft(draft: LeaveDraft, today: date) -> None:
    if draft.type is None:
        raise RequiredFieldMissing("Leave type is required", field="type")
    if draft.start_date is None:
        raise RequiredFieldMissing("Start date is required", field="start_date")
    if draft.end_date is None:
        raise RequiredFieldMissing("End date is required", field="end_date")
    if draft.start_date > draft.end_date:
        raise InvalidDateRange(field="end_date")
    if draft.start_date < today:
        raise PastStartDate(field="start_date")
    if len(draft.reason.strip()) < MIN_REASON_LENGTH:
        raise ReasonTooShort(field="reason")


class LeaveLifecycle:
    def __init__(self, gateway: ApiGateway, session: SessionStore, today: Callable[[], date] = date.today):
        self._gateway = gateway
        self._session = session
        self._today = today

    def _actor(self) -> Identity:
        identity = self._session.current_identity()
        if identity is None:
            raise UnauthorizedActor("Please log in to continue")
        return identity

    def _require_editable(self, existing: LeaveRequest, action: Action) -> Identity:
        identity = self._actor()
        require(identity, action)
        if existing.status != LeaveStatus.PENDING or str(existing.employee_id) != identity.id:
            raise NotEditable()
        return identity

    def ensure_editable(self, existing: LeaveRequest) -> Identity:
        """Raise NotEditable unless the signed-in user owns this PENDING request"""
        return self._require_editable(existing, Action.EDIT_OWN_LEAVE)

    async def submit(self, draft: LeaveDraft) -> LeaveRequest:
        """Create a new PENDING request for the signed-in user"""
        identity = self._actor()
        require(identity, Action.SUBMIT_LEAVE)
        validate_draft(draft, self._today())

        created = await crud.create_leave_request(self._gateway, draft.to_api())
        updates = {"status": LeaveStatus.PENDING, "comment": None}
        if not created.employee_name:
            updates["employee_name"] = identity.name
        created = created.model_copy(update=updates)
        logger.info("User %s submitted leave request %s (%s days)", identity.id, created.id, created.days)
        return created

    async def edit(self, existing: LeaveRequest, draft: LeaveDraft) -> LeaveRequest:
        identity = self._require_editable(existing, Action.EDIT_OWN_LEAVE)
        validate_draft(draft, self._today())

        updated = await crud.update_leave_request(
            self._gateway, existing.id, draft.to_api(status=LeaveStatus.PENDING)
        )
        logger.info("User %s edited leave request %s", identity.id, existing.id)
        return updated

    async def withdraw(self, existing: LeaveRequest) -> None:
        identity = self._require_editable(existing, Action.WITHDRAW_OWN_LEAVE)
        await crud.delete_leave_request(self._gateway, existing.id)
        logger.info("User %s withdrew leave request %s", identity.id, existing.id)

    async def decide(self, existing: LeaveRequest, outcome, comment: Optional[str] = None) -> LeaveRequest:
        """Approve or reject a pending request"""
        identity = self._actor()
        require(identity, Action.DECIDE_LEAVE)

        try:
            outcome = LeaveStatus(outcome)
        except ValueError:
            raise ValidationError("Outcome must be APPROVED or REJECTED", field="outcome")
        if outcome not in DECISIONS:
            raise ValidationError("Outcome must be APPROVED or REJECTED", field="outcome")
        if existing.status != LeaveStatus.PENDING:
            raise AlreadyDecided()

        comment = (comment or "").strip() or None
        payload = {"status": outcome.value}
        if comment:
            payload["comment"] = comment

        decided = await crud.update_leave_request(self._gateway, existing.id, payload)
        decided = decided.model_copy(update={"status": outcome, "comment": decided.comment or comment})
        logger.info("Admin %s marked leave request %s as %s", identity.id, existing.id, outcome.value)
        return decided
