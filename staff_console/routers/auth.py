from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as SchemaError
from slowapi import Limiter
from slowapi.util import get_remote_address

from staff_console.auth import SessionStore
from staff_console.config import get_settings
from staff_console.dependencies import get_gateway, get_session_store
from staff_console.exceptions import AuthError, RequiredFieldMissing
from staff_console.gateway import ApiGateway
from staff_console.model import Role
from staff_console.schemas import RegisterRequest
from staff_console.templating import flash, render

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(tags=["auth"])


def _auth_rate_limit() -> str:
    return get_settings().LOGIN_RATE_LIMIT


def safe_next(next_path: Optional[str]) -> str:
    """Only follow local redirect targets"""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return "/dashboard"


@router.get("/", include_in_schema=False)
async def index():
    return RedirectResponse(url="/dashboard")


@router.get("/login", name="login_page")
async def login_page(
    request: Request,
    next: str = "/dashboard",
    session: SessionStore = Depends(get_session_store),
):
    if session.is_authenticated:
        return RedirectResponse(url=safe_next(next), status_code=303)
    return render(request, "login.html", {"next": safe_next(next), "email": ""})


@router.post("/login")
@limiter.limit(_auth_rate_limit)
async def login_endpoint(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/dashboard"),
    session: SessionStore = Depends(get_session_store),
    gateway: ApiGateway = Depends(get_gateway),
):
    """Sign in and continue to the page that asked for it"""
    context = {"next": safe_next(next), "email": email}
    if not email.strip() or not password:
        context["errors"] = {"email": "Email and password are required"}
        return render(request, "login.html", context, status_code=400)

    try:
        identity = await session.login(gateway, email, password)
    except AuthError as e:
        flash(request, e.message, "danger")
        return render(request, "login.html", context, status_code=401)

    flash(request, f"Welcome back, {identity.name}!", "success")
    return RedirectResponse(url=safe_next(next), status_code=303)


@router.get("/register")
async def register_page(request: Request, session: SessionStore = Depends(get_session_store)):
    if session.is_authenticated:
        return RedirectResponse(url="/dashboard", status_code=303)
    return render(request, "register.html", {"form": {}})


@router.post("/register")
@limiter.limit(_auth_rate_limit)
async def register_endpoint(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    first_name: str = Form(""),
    last_name: str = Form(""),
    session: SessionStore = Depends(get_session_store),
    gateway: ApiGateway = Depends(get_gateway),
):
    form = {"email": email, "first_name": first_name, "last_name": last_name}
    context = {"form": form}

    try:
        for field, value in (("first_name", first_name), ("last_name", last_name), ("password", password)):
            if not value.strip():
                raise RequiredFieldMissing(field=field)
        registration = RegisterRequest(
            email=email.strip(),
            password=password,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            role=Role.EMPLOYEE,
        )
    except RequiredFieldMissing as e:
        context["errors"] = {e.field: e.message}
        return render(request, "register.html", context, status_code=400)
    except SchemaError:
        context["errors"] = {"email": "Enter a valid email address"}
        return render(request, "register.html", context, status_code=400)

    try:
        identity = await session.register(gateway, registration)
    except AuthError as e:
        flash(request, e.message, "danger")
        return render(request, "register.html", context, status_code=400)

    flash(request, f"Welcome, {identity.name}!", "success")
    return RedirectResponse(url="/dashboard", status_code=303)


@router.post("/logout")
async def logout(request: Request, session: SessionStore = Depends(get_session_store)):
    session.logout()
    flash(request, "Logged out successfully", "success")
    return RedirectResponse(url="/login", status_code=303)
