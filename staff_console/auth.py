import logging
from typing import TYPE_CHECKING, Any, MutableMapping, Optional

from pydantic import ValidationError as SchemaError

from staff_console.exceptions import InvalidCredentials, NetworkError, RegistrationRejected
from staff_console.schemas import AuthResponse, BackendUser, Identity, LoginRequest, RegisterRequest

if TYPE_CHECKING:
    from staff_console.gateway import ApiGateway

logger = logging.getLogger("staff_console.auth")

# Keys of the persisted session state
USER_KEY = "user"
TOKEN_KEY = "token"


class SessionStore:
    """Owns the signed-in identity and its bearer token.

    ``storage`` is the persisted mapping for one browser (the cookie-backed
    ``request.session``). Only this class writes the ``user`` and ``token``
    keys, and it always writes or clears them together.
    """

    def __init__(self, storage: MutableMapping[str, Any]):
        self._storage = storage

    def current_identity(self) -> Optional[Identity]:
        """Return the signed-in identity, or None when anonymous"""
        user = self._storage.get(USER_KEY)
        token = self._storage.get(TOKEN_KEY)
        if not user or not token:
            if user or token:
                # Half a session is no session
                self._clear()
            return None
        try:
            return Identity.model_validate(user)
        except SchemaError:
            logger.warning("Discarding unreadable stored identity")
            self._clear()
            return None

    @property
    def token(self) -> Optional[str]:
        if self.current_identity() is None:
            return None
        return self._storage.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.current_identity() is not None

    async def login(self, gateway: "ApiGateway", email: str, password: str) -> Identity:
        """Authenticate against the backend and persist the session"""
        payload = LoginRequest(email=email.strip(), password=password).to_api()
        try:
            data = await gateway.post("/auth/login", json=payload)
        except NetworkError as e:
            if e.status_code is not None and 400 <= e.status_code < 500:
                logger.info("Login rejected by the backend (%s)", e.status_code)
                raise InvalidCredentials() from e
            raise

        return self._establish(self._parse_auth_response(data, InvalidCredentials))

    async def register(self, gateway: "ApiGateway", registration: RegisterRequest) -> Identity:
        """Create an account and sign in with it"""
        try:
            data = await gateway.post("/auth/register", json=registration.to_api())
        except NetworkError as e:
            if e.status_code is not None and 400 <= e.status_code < 500:
                logger.info("Registration rejected by the backend (%s)", e.status_code)
                raise RegistrationRejected(e.server_message) from e
            raise

        return self._establish(self._parse_auth_response(data, RegistrationRejected))

    async def refresh_identity(self, gateway: "ApiGateway") -> Identity:
        """Re-read the profile of the signed-in user from /auth/me"""
        data = await gateway.get("/auth/me")
        identity = Identity.from_backend_user(BackendUser.model_validate(data))
        token = self._storage.get(TOKEN_KEY)
        if token:
            self._storage[USER_KEY] = identity.model_dump(mode="json")
        return identity

    def logout(self) -> None:
        """Clear the session; never fails"""
        identity = self.current_identity()
        self._clear()
        if identity is not None:
            logger.info("User %s logged out", identity.id)

    def terminate(self, reason: str = "authentication failure") -> None:
        """Forced termination after the backend refused the credential"""
        had_session = self._storage.get(TOKEN_KEY) is not None
        self._clear()
        if had_session:
            logger.info("Session terminated: %s", reason)

    def _establish(self, auth: AuthResponse) -> Identity:
        identity = Identity.from_backend_user(auth.user)
        self._storage[USER_KEY] = identity.model_dump(mode="json")
        self._storage[TOKEN_KEY] = auth.token
        logger.info("User %s signed in as %s", identity.id, identity.role.value)
        return identity

    def _clear(self) -> None:
        self._storage.pop(USER_KEY, None)
        self._storage.pop(TOKEN_KEY, None)

    @staticmethod
    def _parse_auth_response(data, error_cls) -> AuthResponse:
        try:
            return AuthResponse.model_validate(data)
        except SchemaError as e:
            logger.warning("Unexpected auth response shape: %s", e)
            raise error_cls() from e
