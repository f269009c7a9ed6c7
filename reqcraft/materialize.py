"""reqcraft materialize - resolve a request template into a sendable request."""

import hashlib
import json
from collections.abc import Iterable
from urllib.parse import parse_qsl, urlencode

from urllib3 import encode_multipart_formdata

from reqcraft.auth import auth_header_value, has_header, resolve_auth
from reqcraft.models import (
    BODYLESS_METHODS,
    BodyType,
    KeyValue,
    MaterializedRequest,
    Request,
    Variable,
)
from reqcraft.variables import substitute_text

URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _set_param(pairs: list[tuple[str, str]], key: str, value: str) -> None:
    """Replace the first ``key`` pair and drop the rest, or append."""
    for index, (existing, _) in enumerate(pairs):
        if existing == key:
            pairs[index] = (key, value)
            pairs[index + 1 :] = [p for p in pairs[index + 1 :] if p[0] != key]
            return
    pairs.append((key, value))


def build_url(url: str, params: Iterable[KeyValue], environment: list[Variable]) -> str:
    """Resolve a template URL and merge the params list into its query.

    Query pairs already present in the URL come first, with their values
    substituted. Enabled params then overwrite pairs with the same key or
    are appended.
    """
    base, _, query = url.partition("?")
    final_base = substitute_text(base, environment)

    pairs: list[tuple[str, str]] = [
        (key, substitute_text(value, environment))
        for key, value in parse_qsl(query, keep_blank_values=True)
    ]
    for param in params:
        if param.enabled and param.key:
            _set_param(pairs, param.key, substitute_text(param.value, environment))

    final_query = urlencode(pairs)
    return f"{final_base}?{final_query}" if final_query else final_base


def resolve_headers(
    headers: Iterable[KeyValue],
    environment: list[Variable],
) -> list[tuple[str, str]]:
    """Substitute values of the enabled, keyed headers."""
    return [
        (h.key, substitute_text(h.value, environment))
        for h in headers
        if h.enabled and h.key
    ]


def resolve_form(
    entries: Iterable[KeyValue],
    environment: list[Variable],
) -> list[tuple[str, str]]:
    """Substitute values of the enabled, keyed form entries."""
    return [
        (e.key, substitute_text(e.value, environment))
        for e in entries
        if e.enabled and e.key
    ]


def encode_multipart(fields: list[tuple[str, str]]) -> tuple[str, str]:
    """Encode text fields as multipart/form-data.

    The boundary is derived from the fields so identical input always
    produces identical bytes. Returns (body, content_type).
    """
    digest = hashlib.sha1(json.dumps(fields).encode()).hexdigest()
    body, content_type = encode_multipart_formdata(fields, boundary=f"reqcraft-{digest}")
    return body.decode("utf-8"), content_type


def materialize_request(request: Request, environment: list[Variable]) -> MaterializedRequest:
    """Resolve every placeholder in ``request`` against ``environment``.

    Returns a MaterializedRequest whose URL carries the merged query, whose
    headers include a synthesized Authorization header unless one was set
    explicitly, and whose body is the literal wire payload for the body
    type (None for GET/HEAD or when there is nothing to send).
    """
    environment = list(environment)
    method = request.method.upper()
    url = build_url(request.url, request.params, environment)
    headers = resolve_headers(request.headers, environment)

    authorization = auth_header_value(resolve_auth(request.auth, environment))
    if authorization is not None and not has_header(headers, "Authorization"):
        headers.append(("Authorization", authorization))

    body: str | None = None
    if method not in BODYLESS_METHODS:
        match request.body_type:
            case BodyType.RAW:
                body = substitute_text(request.body, environment) or None
            case BodyType.URL_ENCODED:
                fields = resolve_form(request.form_data, environment)
                if fields:
                    body = urlencode(fields)
                    if not has_header(headers, "Content-Type"):
                        headers.append(("Content-Type", URLENCODED_CONTENT_TYPE))
            case BodyType.FORM_DATA:
                fields = resolve_form(request.form_data, environment)
                if fields:
                    body, content_type = encode_multipart(fields)
                    headers = [h for h in headers if h[0].lower() != "content-type"]
                    headers.append(("Content-Type", content_type))
            case _:
                raise TypeError(f"Unknown body type: {request.body_type!r}")

    return MaterializedRequest(method=method, url=url, headers=headers, body=body)
