"""reqcraft auth - Authorization header values from auth configs."""

import base64
import binascii
import logging
from collections.abc import Iterable

from reqcraft.models import AuthConfig, BasicAuth, BearerAuth, NoAuth, Variable
from reqcraft.variables import substitute_text

logger = logging.getLogger(__name__)


def resolve_auth(auth: AuthConfig, environment: Iterable[Variable]) -> AuthConfig:
    """Return a copy of ``auth`` with every credential field substituted."""
    environment = list(environment)
    match auth:
        case NoAuth():
            return auth
        case BearerAuth(token=token):
            return BearerAuth(token=substitute_text(token, environment))
        case BasicAuth(username=username, password=password):
            return BasicAuth(
                username=substitute_text(username, environment),
                password=substitute_text(password, environment),
            )
    raise TypeError(f"Unknown auth config: {auth!r}")


def auth_header_value(auth: AuthConfig) -> str | None:
    """Build the Authorization header value, or None when there is nothing to send.

    - bearer: "Bearer <token>" when the token is non-empty
    - basic:  "Basic <b64(user:password)>" when either field is non-empty
    """
    match auth:
        case NoAuth():
            return None
        case BearerAuth(token=token):
            return f"Bearer {token}" if token else None
        case BasicAuth(username=username, password=password):
            if not (username or password):
                return None
            credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
            return f"Basic {credentials}"
    raise TypeError(f"Unknown auth config: {auth!r}")


def auth_from_header(value: str) -> AuthConfig:
    """Recover an auth config from an Authorization header value.

    Unknown schemes and undecodable Basic credentials give NoAuth.
    """
    scheme, _, credentials = value.strip().partition(" ")
    credentials = credentials.strip()
    if not credentials:
        return NoAuth()

    if scheme.lower() == "bearer":
        return BearerAuth(token=credentials)

    if scheme.lower() == "basic":
        try:
            decoded = base64.b64decode(credentials, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            logger.debug("Could not decode Basic credentials, leaving auth unset")
            return NoAuth()
        username, _, password = decoded.partition(":")
        return BasicAuth(username=username, password=password)

    return NoAuth()


def has_header(headers: Iterable, name: str) -> bool:
    """Case-insensitive check over (key, value) pairs or Variable rows."""
    lowered = name.lower()
    for header in headers:
        key = header.key if isinstance(header, Variable) else header[0]
        if key.lower() == lowered:
            return True
    return False
