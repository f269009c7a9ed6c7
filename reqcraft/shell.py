"""reqcraft shell - quote-aware tokenizing and quoting of command lines.

Only the subset of shell syntax that pasted curl commands rely on is
understood: whitespace separation, single quotes, double quotes with
backslash escapes, and backslash-newline continuations. Nothing here
raises; malformed input is tokenized best-effort.
"""

import re

_CONTINUATION_RE = re.compile(r"\s*\\\r?\n\s*")
_DOUBLE_QUOTE_ESCAPE_RE = re.compile(r'\\(["\\])')
_QUOTES = ("'", '"')


def join_continuations(line: str) -> str:
    """Collapse backslash-newline continuations into a single space."""
    return _CONTINUATION_RE.sub(" ", line)


def _closing_quote(line: str, start: int) -> int:
    """Index of the quote closing the span opened at ``start``, or -1."""
    quote = line[start]
    i = start + 1
    while i < len(line):
        char = line[i]
        if quote == '"' and char == "\\" and i + 1 < len(line) and line[i + 1] in '"\\':
            i += 2
            continue
        if char == quote:
            return i
        i += 1
    return -1


def tokenize(line: str) -> list[str]:
    """Split a command line on unquoted whitespace.

    Quoted spans stay attached to their token with the quotes retained,
    e.g. ``curl 'a b'`` gives ``["curl", "'a b'"]``; use unquote() on a
    token to get its value. A backslash outside quotes keeps the next
    character in the token. An unterminated quote is kept as a literal
    character.
    """
    line = join_continuations(line).strip()
    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    i = 0

    while i < len(line):
        char = line[i]

        if char in _QUOTES:
            end = _closing_quote(line, i)
            in_token = True
            if end == -1:
                current.append(char)
                i += 1
            else:
                current.append(line[i : end + 1])
                i = end + 1
            continue

        if char == "\\" and i + 1 < len(line):
            current.append(line[i : i + 2])
            in_token = True
            i += 2
            continue

        if char.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
            i += 1
            continue

        current.append(char)
        in_token = True
        i += 1

    if in_token:
        tokens.append("".join(current))
    return tokens


def unquote(token: str) -> str:
    """Remove the quoting from a token that starts with a quote.

    Double-quoted content has ``\\"`` and ``\\\\`` unescaped; single-quoted
    content is returned as is. Adjacent spans are joined the way a shell
    joins them, so ``'it'\\''s'`` (what shell_quote produces) gives
    ``it's``. Tokens that do not start with a quote are returned unchanged.
    """
    if not token or token[0] not in _QUOTES:
        return token

    parts: list[str] = []
    i = 0
    while i < len(token):
        char = token[i]
        if char in _QUOTES:
            end = _closing_quote(token, i)
            if end == -1:
                parts.append(token[i:])
                break
            inner = token[i + 1 : end]
            if char == '"':
                inner = _DOUBLE_QUOTE_ESCAPE_RE.sub(r"\1", inner)
            parts.append(inner)
            i = end + 1
        elif char == "\\" and i + 1 < len(token):
            parts.append(token[i + 1])
            i += 2
        else:
            parts.append(char)
            i += 1
    return "".join(parts)


def shell_quote(value: str) -> str:
    """Wrap value in single quotes, escaping embedded single quotes as '\\''."""
    return "'" + value.replace("'", "'\\''") + "'"
