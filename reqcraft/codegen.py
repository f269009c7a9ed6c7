"""reqcraft codegen - export a request template as a curl command."""

from urllib.parse import urlencode

from reqcraft.auth import auth_header_value, has_header, resolve_auth
from reqcraft.materialize import build_url, resolve_form, resolve_headers
from reqcraft.models import BODYLESS_METHODS, BodyType, Request, Variable
from reqcraft.shell import shell_quote
from reqcraft.variables import substitute_text

LINE_CONTINUATION = " \\\n  "


def generate_curl_command(request: Request, environment: list[Variable]) -> str:
    """Serialize ``request`` as a multi-line, shell-safe curl command.

    Placeholders are resolved against ``environment`` first. Clauses come
    in a fixed order: method, URL, synthesized Authorization header, user
    headers, then the body for methods that carry one.
    """
    environment = list(environment)
    method = request.method.upper()
    url = build_url(request.url, request.params, environment)
    headers = resolve_headers(request.headers, environment)

    clauses = [f"curl --request {method}", f"--url {shell_quote(url)}"]

    authorization = auth_header_value(resolve_auth(request.auth, environment))
    if authorization and not has_header(headers, "Authorization"):
        clauses.append(f"--header {shell_quote(f'Authorization: {authorization}')}")

    for key, value in headers:
        if request.body_type == BodyType.FORM_DATA and key.lower() == "content-type":
            continue
        clauses.append(f"--header {shell_quote(f'{key}: {value}')}")

    if method not in BODYLESS_METHODS:
        clauses.extend(_body_clauses(request, environment))

    return LINE_CONTINUATION.join(clauses)


def _body_clauses(request: Request, environment: list[Variable]) -> list[str]:
    match request.body_type:
        case BodyType.FORM_DATA:
            return [
                f"--form {shell_quote(f'{key}={value}')}"
                for key, value in resolve_form(request.form_data, environment)
            ]
        case BodyType.URL_ENCODED:
            fields = resolve_form(request.form_data, environment)
            return [f"--data {shell_quote(urlencode(fields))}"] if fields else []
        case BodyType.RAW:
            body = substitute_text(request.body, environment)
            return [f"--data {shell_quote(body)}"] if body else []
    raise TypeError(f"Unknown body type: {request.body_type!r}")
