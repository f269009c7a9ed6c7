"""reqcraft curl parser - turn a pasted curl command into a request template."""

import logging
from urllib.parse import parse_qsl, unquote_plus

from reqcraft.auth import auth_from_header
from reqcraft.models import BasicAuth, BodyType, HttpMethod, KeyValue, NoAuth, Request
from reqcraft.shell import tokenize, unquote

logger = logging.getLogger(__name__)

METHOD_FLAGS = ("-X", "--request")
HEADER_FLAGS = ("-H", "--header")
DATA_FLAGS = ("-d", "--data", "--data-raw", "--data-binary", "--data-urlencode")
FORM_FLAGS = ("-F", "--form")
USER_FLAGS = ("-u", "--user")
JSON_FLAG = "--json"
URL_FLAG = "--url"

# Flags we act on that take a value in the next token.
VALUE_FLAGS = frozenset(
    METHOD_FLAGS + HEADER_FLAGS + DATA_FLAGS + FORM_FLAGS + USER_FLAGS + (JSON_FLAG, URL_FLAG),
)

# Flags we ignore but whose value must not be mistaken for the URL.
IGNORED_VALUE_FLAGS = frozenset(
    {
        "-o",
        "--output",
        "-A",
        "--user-agent",
        "-b",
        "--cookie",
        "-c",
        "--cookie-jar",
        "-e",
        "--referer",
        "-m",
        "--max-time",
        "--connect-timeout",
        "-w",
        "--write-out",
        "-x",
        "--proxy",
        "--retry",
        "--cacert",
        "--cert",
        "--key",
        "-T",
        "--upload-file",
        "--resolve",
        "--max-redirs",
    },
)

FILE_PLACEHOLDER = "<file upload not supported: {path}>"


class ParseError(ValueError):
    """Raised when a command cannot be imported as a curl request."""


def _find_url(tokens: list[str]) -> str:
    """Return the URL token: --url VALUE, else the first bare positional."""
    for i, tok in enumerate(tokens[:-1]):
        if tok == URL_FLAG:
            return unquote(tokens[i + 1])

    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok in VALUE_FLAGS or tok in IGNORED_VALUE_FLAGS:
            i += 2
            continue
        if not tok.startswith("-"):
            return unquote(tok)
        i += 1
    return ""


def split_url(raw_url: str) -> tuple[str, list[KeyValue]]:
    """Split a URL into its base and a list of enabled query params."""
    base, _, query = raw_url.partition("?")
    if not query:
        base = base.partition("#")[0]
        return base, []
    query = query.partition("#")[0]
    params = [
        KeyValue(key=key, value=value)
        for key, value in parse_qsl(query, keep_blank_values=True)
    ]
    return base, params


def _split_pair(text: str) -> tuple[str, str]:
    key, _, value = text.partition("=")
    return key, value


def _urlencoded_entries(part: str) -> list[KeyValue]:
    entries = []
    for chunk in part.split("&"):
        if not chunk:
            continue
        key, value = _split_pair(chunk)
        entries.append(KeyValue(key=unquote_plus(key), value=unquote_plus(value)))
    return entries


def _form_entry(part: str) -> KeyValue | None:
    if "=" not in part:
        logger.debug("Skipping form field without '=': %r", part)
        return None
    key, value = _split_pair(part)
    if value.startswith("@"):
        logger.debug("Form field %r references a file, stored disabled", key)
        return KeyValue(key=key, value=FILE_PLACEHOLDER.format(path=value[1:]), enabled=False)
    return KeyValue(key=key, value=value)


def _header_value(headers: list[KeyValue], name: str) -> str | None:
    lowered = name.lower()
    for header in headers:
        if header.key.lower() == lowered:
            return header.value
    return None


def parse_curl(command: str) -> Request:
    """Parse a curl command string into a request template.

    Handles -X, -H, -d and its variants, --json, -F/--form, -u, --url and
    quoted values spread over backslash-continued lines. Unknown flags are
    ignored. Raises ParseError when the command is not a curl command or no
    URL can be found; every other malformed piece is skipped.
    """
    tokens = tokenize(command)
    if not tokens or tokens[0] != "curl":
        raise ParseError("Command must start with 'curl'.")

    raw_url = _find_url(tokens)
    if not raw_url:
        raise ParseError("Could not find a URL in the command.")

    request = Request()
    request.url, request.params = split_url(raw_url)

    explicit_method = False
    json_body = False
    data_parts: list[tuple[str, str]] = []

    i = 1
    while i < len(tokens):
        tok = tokens[i]
        takes_value = tok in VALUE_FLAGS or tok in IGNORED_VALUE_FLAGS
        if takes_value and i + 1 >= len(tokens):
            logger.debug("Flag %s has no value, ignoring", tok)
            break
        value = unquote(tokens[i + 1]) if takes_value else ""

        if tok in METHOD_FLAGS:
            request.method = value.upper()
            explicit_method = True
        elif tok in HEADER_FLAGS:
            key, sep, header_value = value.partition(":")
            if sep:
                request.headers.append(KeyValue(key=key.strip(), value=header_value.strip()))
            else:
                logger.debug("Skipping header without ':': %r", value)
        elif tok in FORM_FLAGS:
            data_parts.append(("form", value))
        elif tok in DATA_FLAGS:
            data_parts.append(("data", value))
        elif tok == JSON_FLAG:
            data_parts.append(("data", value))
            json_body = True
        elif tok in USER_FLAGS:
            username, _, password = value.partition(":")
            request.auth = BasicAuth(username=username, password=password)
        elif tok.startswith("-") and tok not in (URL_FLAG, "-L", "--location"):
            logger.debug("Ignoring unsupported flag %s", tok)

        i += 2 if takes_value else 1

    if json_body:
        for name in ("Content-Type", "Accept"):
            if _header_value(request.headers, name) is None:
                request.headers.append(KeyValue(key=name, value="application/json"))

    if data_parts:
        if not explicit_method:
            request.method = HttpMethod.POST.value
        _apply_body(request, data_parts)
    elif not explicit_method:
        request.method = HttpMethod.GET.value

    if isinstance(request.auth, NoAuth):
        authorization = _header_value(request.headers, "Authorization")
        if authorization:
            request.auth = auth_from_header(authorization)

    return request


def _apply_body(request: Request, data_parts: list[tuple[str, str]]) -> None:
    """Classify accumulated data parts into a body type."""
    if any(kind == "form" for kind, _ in data_parts):
        request.body_type = BodyType.FORM_DATA
        for kind, part in data_parts:
            if kind == "form":
                entry = _form_entry(part)
                if entry is not None:
                    request.form_data.append(entry)
            else:
                request.form_data.extend(_urlencoded_entries(part))
        return

    content_type = _header_value(request.headers, "Content-Type") or ""
    if "application/json" in content_type.lower():
        request.body_type = BodyType.RAW
        request.body = "&".join(part for _, part in data_parts)
        return

    request.body_type = BodyType.URL_ENCODED
    for _, part in data_parts:
        request.form_data.extend(_urlencoded_entries(part))
