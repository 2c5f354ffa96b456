import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from staff_console.config import Settings, get_settings
from staff_console.dependencies import AccessDenied, LoginRequired
from staff_console.exceptions import ConsoleError, NetworkError, NotFoundError, SessionExpired, StateError
from staff_console.gateway import create_http_client
from staff_console.logging_config import configure_logging
from staff_console.routers import auth, departments, employees, home, leaves, salaries
from staff_console.templating import BASE_DIR, flash, render

logger = logging.getLogger("staff_console.app")


def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Build the console application.

    ``http_client`` lets callers supply the backend client; otherwise one is
    opened at startup and closed at shutdown.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = create_http_client(settings)
        logger.info("Console started against %s", settings.API_BASE_URL)
        yield
        if owns_client:
            await app.state.http_client.aclose()
            app.state.http_client = None

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.http_client = http_client
    app.state.limiter = auth.limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # Added last so it wraps everything, including the middleware above
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=settings.HTTPS_ONLY,
    )

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url=f"/login?next={quote(exc.next_path)}", status_code=303)

    @app.exception_handler(AccessDenied)
    async def access_denied_handler(request: Request, exc: AccessDenied):
        logger.info("Denied %s on %s", exc.target, request.url.path)
        flash(request, "You do not have permission to open that page.", "warning")
        return RedirectResponse(url="/dashboard", status_code=303)

    @app.exception_handler(SessionExpired)
    async def session_expired_handler(request: Request, exc: SessionExpired):
        # The gateway has already cleared the session
        flash(request, exc.message, "warning")
        return RedirectResponse(url="/login", status_code=303)

    @app.exception_handler(ConsoleError)
    async def console_error_handler(request: Request, exc: ConsoleError):
        flash(request, exc.message, "danger")
        if request.method != "GET":
            # Back to the section the form was posted from
            section = request.url.path.strip("/").split("/")[0] or "dashboard"
            return RedirectResponse(url=f"/{section}", status_code=303)

        if isinstance(exc, NotFoundError):
            status_code = 404
        elif isinstance(exc, StateError):
            status_code = 403
        elif isinstance(exc, NetworkError):
            status_code = 502
        else:
            status_code = 400
        return render(request, "error.html", status_code=status_code)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return render(request, "not_found.html", status_code=404)
        return await http_exception_handler(request, exc)

    # Include routers
    app.include_router(auth.router)
    app.include_router(home.router)
    app.include_router(employees.router)
    app.include_router(departments.router)
    app.include_router(leaves.router)
    app.include_router(salaries.router)

    return app


app = create_app()


def run() -> None:
    import uvicorn
    uvicorn.run("staff_console.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
