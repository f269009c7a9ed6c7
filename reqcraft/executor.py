"""reqcraft executor - send materialized requests over HTTP."""

import json
import logging
import time
from typing import Any

import requests

from reqcraft.models import MaterializedRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class RequestResult:
    """Result of an HTTP request."""

    def __init__(self):
        self.status_code: int = 0
        self.status_text: str = ""
        self.headers: dict[str, str] = {}
        self.body_bytes: bytes = b""
        self.content_type: str = ""
        self.kind: str = "text"  # json | html | xml | text | image | binary
        self.body: Any = None  # parsed JSON, text, or None for binary
        self.elapsed_ms: float = 0
        self.error: str | None = None

    @property
    def size(self) -> int:
        return len(self.body_bytes)


def classify_content(content_type: str) -> str:
    """Map a Content-Type header to the kind of body it announces."""
    ct = content_type.lower()
    if "json" in ct:
        return "json"
    if ct.startswith("image/"):
        return "image"
    if "text/html" in ct:
        return "html"
    if "xml" in ct:
        return "xml"
    if not ct or ct.startswith("text/") or "javascript" in ct or "urlencoded" in ct:
        return "text"
    return "binary"


def _decode_body(result: RequestResult, encoding: str | None) -> None:
    if result.kind in ("image", "binary"):
        result.body = None
        return
    text = result.body_bytes.decode(encoding or "utf-8", errors="replace")
    if result.kind == "json":
        try:
            result.body = json.loads(text)
            return
        except ValueError:
            logger.debug("Response announced JSON but did not parse, keeping text")
            result.kind = "text"
    result.body = text


def execute_request(
    request: MaterializedRequest,
    timeout: int = DEFAULT_TIMEOUT,
) -> RequestResult:
    """Execute a materialized request and return a structured result.

    - Follows redirects
    - Classifies the response body by Content-Type and parses JSON
    - Captures timing
    - Never raises - always returns RequestResult with error field set
    """
    result = RequestResult()
    logger.info("%s %s", request.method, request.url)

    try:
        start = time.monotonic()
        resp = requests.request(
            method=request.method,
            url=request.url,
            headers=dict(request.headers),
            data=request.body.encode("utf-8") if request.body is not None else None,
            timeout=timeout,
            allow_redirects=True,
        )
        result.elapsed_ms = (time.monotonic() - start) * 1000

        result.status_code = resp.status_code
        result.status_text = resp.reason or ""
        result.headers = dict(resp.headers)
        result.body_bytes = resp.content or b""
        result.content_type = resp.headers.get("Content-Type", "")
        result.kind = classify_content(result.content_type)
        _decode_body(result, resp.encoding)

    except requests.exceptions.Timeout:
        result.error = f"Request timed out after {timeout}s"
    except requests.exceptions.ConnectionError as e:
        result.error = f"Connection error: {e}"
    except requests.exceptions.RequestException as e:
        result.error = f"Request failed: {e}"

    if result.error:
        logger.warning("%s %s failed: %s", request.method, request.url, result.error)
    return result
