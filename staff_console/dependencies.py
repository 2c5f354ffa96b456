from fastapi import Depends, Request

from staff_console.access import Action, Section, permits
from staff_console.auth import SessionStore
from staff_console.gateway import ApiGateway
from staff_console.lifecycle import LeaveLifecycle
from staff_console.schemas import Identity


class LoginRequired(Exception):
    """Raised for anonymous access to a protected route"""

    def __init__(self, next_path: str = "/dashboard"):
        super().__init__(next_path)
        self.next_path = next_path


class AccessDenied(Exception):
    """Raised when the signed-in role may not open a route"""

    def __init__(self, target: str):
        super().__init__(target)
        self.target = target


def get_session_store(request: Request) -> SessionStore:
    return SessionStore(request.session)


def get_gateway(request: Request, session: SessionStore = Depends(get_session_store)) -> ApiGateway:
    return ApiGateway(request.app.state.http_client, session)


def get_lifecycle(
    gateway: ApiGateway = Depends(get_gateway),
    session: SessionStore = Depends(get_session_store),
) -> LeaveLifecycle:
    return LeaveLifecycle(gateway, session)


async def get_current_user(request: Request, session: SessionStore = Depends(get_session_store)) -> Identity:
    """Dependency to get the signed-in identity or bounce to the login page"""
    identity = session.current_identity()
    if identity is None:
        raise LoginRequired(request.url.path)
    return identity


def require_section(section: Section):
    """Dependency to require access to a navigation section"""
    async def section_checker(user: Identity = Depends(get_current_user)) -> Identity:
        if not permits(user.role, section):
            raise AccessDenied(section.value)
        return user
    return section_checker


def require_action(action: Action):
    """Dependency to require a record-level action"""
    async def action_checker(user: Identity = Depends(get_current_user)) -> Identity:
        if not permits(user.role, action):
            raise AccessDenied(action.value)
        return user
    return action_checker
