from pathlib import Path
from typing import List, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from staff_console.access import capabilities_for, navigation
from staff_console.auth import SessionStore
from staff_console.config import get_settings

BASE_DIR = Path(__file__).resolve().parent
NOTICES_KEY = "notices"

templates = Jinja2Templates(directory=BASE_DIR / "templates")


def flash(request: Request, message: str, category: str = "info") -> None:
    """Queue a dismissable notice for the next rendered page"""
    notices = list(request.session.get(NOTICES_KEY, []))
    notices.append({"message": message, "category": category})
    request.session[NOTICES_KEY] = notices


def pop_notices(request: Request) -> List[dict]:
    return request.session.pop(NOTICES_KEY, None) or []


def render(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200):
    identity = SessionStore(request.session).current_identity()
    base = {
        "identity": identity,
        "caps": capabilities_for(identity),
        "nav": navigation(identity.role if identity else None),
        "notices": pop_notices(request),
        "app_name": get_settings().PROJECT_NAME,
        "current_path": request.url.path,
        "errors": {},
    }
    base.update(context or {})
    return templates.TemplateResponse(request, name, base, status_code=status_code)
