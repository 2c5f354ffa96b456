"""
Role-based access guard.

Each role maps to a fixed capability set made of navigation sections and
record actions. Views never compare roles directly; they ask the guard.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Union

from staff_console.exceptions import UnauthorizedActor
from staff_console.model import Role
from staff_console.schemas import Identity


class Section(str, Enum):
    DASHBOARD = "dashboard"
    EMPLOYEES = "employees"
    DEPARTMENTS = "departments"
    LEAVE_REQUESTS = "leave-requests"
    SALARY = "salary"
    PROFILE = "profile"
    MY_LEAVE = "my-leave"
    DIRECTORY = "directory"


class Action(str, Enum):
    MANAGE_EMPLOYEES = "manage-employees"
    MANAGE_DEPARTMENTS = "manage-departments"
    MANAGE_SALARIES = "manage-salaries"
    DECIDE_LEAVE = "decide-leave"
    SUBMIT_LEAVE = "submit-leave"
    EDIT_OWN_LEAVE = "edit-own-leave"
    WITHDRAW_OWN_LEAVE = "withdraw-own-leave"


Target = Union[Section, Action]

_EMPLOYEE_CAPABILITIES: FrozenSet[Target] = frozenset({
    Section.DASHBOARD,
    Section.PROFILE,
    Section.MY_LEAVE,
    Section.DIRECTORY,
    Action.SUBMIT_LEAVE,
    Action.EDIT_OWN_LEAVE,
    Action.WITHDRAW_OWN_LEAVE,
})

_CAPABILITIES = {
    Role.ADMIN: frozenset(Section) | frozenset(Action),
    Role.EMPLOYEE: _EMPLOYEE_CAPABILITIES,
}

_NAV_LABELS = {
    Section.DASHBOARD: "Dashboard",
    Section.EMPLOYEES: "Employees",
    Section.DEPARTMENTS: "Departments",
    Section.LEAVE_REQUESTS: "Leave Requests",
    Section.SALARY: "Salary",
    Section.PROFILE: "My Profile",
    Section.MY_LEAVE: "My Leave",
    Section.DIRECTORY: "Directory",
}

# Menu entries per role, in display order
_MENUS = {
    Role.ADMIN: (
        Section.DASHBOARD,
        Section.EMPLOYEES,
        Section.DEPARTMENTS,
        Section.LEAVE_REQUESTS,
        Section.SALARY,
    ),
    Role.EMPLOYEE: (
        Section.DASHBOARD,
        Section.PROFILE,
        Section.MY_LEAVE,
        Section.DIRECTORY,
    ),
}


@dataclass(frozen=True)
class NavItem:
    section: Section
    label: str

    @property
    def path(self) -> str:
        return f"/{self.section.value}"


def _coerce(target: Union[Target, str]) -> Optional[Target]:
    if isinstance(target, (Section, Action)):
        return target
    for enum_cls in (Section, Action):
        try:
            return enum_cls(target)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class Capabilities:
    role: Optional[Role]
    allowed: FrozenSet[Target]

    def can(self, target: Union[Target, str]) -> bool:
        """Usable from templates with plain strings, e.g. caps.can('decide-leave')"""
        resolved = _coerce(target)
        return resolved is not None and resolved in self.allowed

    def __contains__(self, target) -> bool:
        return self.can(target)


def capabilities(role: Optional[Role]) -> Capabilities:
    if role is None:
        return Capabilities(role=None, allowed=frozenset())
    return Capabilities(role=role, allowed=_CAPABILITIES.get(role, frozenset()))


def capabilities_for(identity: Optional[Identity]) -> Capabilities:
    return capabilities(identity.role if identity else None)


def permits(role: Optional[Role], target: Union[Target, str]) -> bool:
    return capabilities(role).can(target)


def require(identity: Optional[Identity], target: Union[Target, str]) -> None:
    """Raise UnauthorizedActor unless the identity may use ``target``"""
    if not permits(identity.role if identity else None, target):
        raise UnauthorizedActor()


def navigation(role: Optional[Role]) -> List[NavItem]:
    if role is None:
        return []
    allowed = capabilities(role)
    return [
        NavItem(section=section, label=_NAV_LABELS[section])
        for section in _MENUS.get(role, ())
        if allowed.can(section)
    ]
