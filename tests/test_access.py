"""
Tests for staff_console/access.py - role capabilities and menus.
"""
import pytest

from staff_console.access import Action, Section, capabilities, navigation, permits, require
from staff_console.exceptions import UnauthorizedActor
from staff_console.model import Role
from staff_console.schemas import Identity


class TestCapabilities:

    def test_admin_has_every_section_and_action(self):
        caps = capabilities(Role.ADMIN)
        assert all(caps.can(s) for s in Section)
        assert all(caps.can(a) for a in Action)

    @pytest.mark.parametrize("target", [
        Action.DECIDE_LEAVE,
        Action.MANAGE_EMPLOYEES,
        Action.MANAGE_DEPARTMENTS,
        Action.MANAGE_SALARIES,
        Section.EMPLOYEES,
        Section.LEAVE_REQUESTS,
        Section.SALARY,
    ])
    def test_employee_is_denied_admin_targets(self, target):
        assert not permits(Role.EMPLOYEE, target)

    def test_employee_own_leave_actions(self):
        caps = capabilities(Role.EMPLOYEE)
        assert caps.can(Action.SUBMIT_LEAVE)
        assert caps.can("edit-own-leave")
        assert "withdraw-own-leave" in caps

    def test_anonymous_has_nothing(self):
        assert not permits(None, Section.DASHBOARD)

    def test_unknown_target_is_denied(self):
        assert not capabilities(Role.ADMIN).can("launch-rockets")


class TestRequire:

    def test_raises_for_employee_decision(self):
        employee = Identity(id="7", name="Jane Doe", email="jane@example.com", role=Role.EMPLOYEE)
        with pytest.raises(UnauthorizedActor, match="Insufficient permissions"):
            require(employee, Action.DECIDE_LEAVE)

    def test_passes_for_admin(self):
        admin = Identity(id="1", name="Ada Admin", email="ada@example.com", role=Role.ADMIN)
        require(admin, Action.DECIDE_LEAVE)


class TestNavigation:

    def test_admin_menu(self):
        assert [item.label for item in navigation(Role.ADMIN)] == [
            "Dashboard", "Employees", "Departments", "Leave Requests", "Salary",
        ]

    def test_employee_menu(self):
        items = navigation(Role.EMPLOYEE)
        assert [item.path for item in items] == ["/dashboard", "/profile", "/my-leave", "/directory"]

    def test_no_menu_when_anonymous(self):
        assert navigation(None) == []


class TestRoleParsing:

    @pytest.mark.parametrize("raw, expected", [
        ("ADMIN", Role.ADMIN),
        ("admin", Role.ADMIN),
        ("EMPLOYEE", Role.EMPLOYEE),
        ("HR", Role.EMPLOYEE),
        (None, Role.EMPLOYEE),
    ])
    def test_from_backend(self, raw, expected):
        assert Role.from_backend(raw) == expected
