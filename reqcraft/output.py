"""reqcraft output - terminal formatting of responses and materialized requests."""

from __future__ import annotations

import json

import yaml

from reqcraft.models import MaterializedRequest, Request


def format_output(
    result,  # RequestResult from executor.py
    verbose: bool = False,
    raw: bool = False,
) -> str:
    """Format the request result for CLI output.

    Default output is a compact block:
        STATUS: 200 OK
        TIME: 45ms
        SIZE: 18B
        BODY:
        {...}

    verbose adds a HEADERS section; raw prints the body only.
    """
    if result.error:
        return f"ERROR: {result.error}"

    body = _render_body(result)
    if raw:
        return body

    status = f"{result.status_code} {result.status_text}".rstrip()
    lines: list[str] = [
        f"STATUS: {status}",
        f"TIME: {int(result.elapsed_ms)}ms",
        f"SIZE: {result.size}B",
    ]

    if verbose and result.headers:
        lines.append("HEADERS:")
        for key, value in result.headers.items():
            lines.append(f"  {key}: {value}")

    if body:
        lines.append("BODY:")
        lines.append(body)

    return "\n".join(lines)


def _render_body(result) -> str:
    if result.kind in ("image", "binary"):
        return f"<{result.kind} {result.size} bytes, {result.content_type or 'unknown type'}>"
    body = result.body
    if isinstance(body, dict | list):
        return json.dumps(body, indent=2, ensure_ascii=False)
    return "" if body is None else str(body)


def format_materialized(request: MaterializedRequest) -> str:
    """Render a materialized request the way it would go on the wire."""
    lines = [f"{request.method} {request.url}"]
    for key, value in request.headers:
        lines.append(f"{key}: {value}")
    if request.body is not None:
        lines.append("")
        lines.append(request.body)
    return "\n".join(lines)


def format_request(request: Request) -> str:
    """Dump a request template as YAML."""
    return yaml.safe_dump(request.to_dict(), sort_keys=False, allow_unicode=True)
