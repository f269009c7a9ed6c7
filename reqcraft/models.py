"""reqcraft models - request templates, variables, auth and body types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class VariableType(str, Enum):
    AUTO = "auto"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"

    @classmethod
    def parse(cls, value: Any) -> VariableType:
        """Accept enum values or names in any case; anything else is AUTO."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.AUTO


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


# Methods that never carry a request body.
BODYLESS_METHODS = frozenset({HttpMethod.GET.value, HttpMethod.HEAD.value})


class BodyType(str, Enum):
    RAW = "raw"
    FORM_DATA = "form-data"
    URL_ENCODED = "x-www-form-urlencoded"

    @classmethod
    def parse(cls, value: Any) -> BodyType:
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.value, member.name, member.name.lower()):
                return member
        return cls.RAW


@dataclass
class Variable:
    """A key/value row with an enable flag.

    Used for environment variables as well as params, headers and form
    entries. The value is always stored as text; ``type`` only matters
    when the row is cast for substitution.
    """

    key: str
    value: str = ""
    enabled: bool = True
    type: VariableType = VariableType.AUTO

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "enabled": self.enabled,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Variable:
        value = data.get("value")
        return cls(
            key=str(data.get("key") or ""),
            value="" if value is None else _text(value),
            enabled=bool(data.get("enabled", True)),
            type=VariableType.parse(data.get("type")),
        )


KeyValue = Variable
Environment = list[Variable]


# ── Auth ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NoAuth:
    pass


@dataclass(frozen=True)
class BearerAuth:
    token: str = ""


@dataclass(frozen=True)
class BasicAuth:
    username: str = ""
    password: str = ""


AuthConfig = NoAuth | BearerAuth | BasicAuth


def auth_to_dict(auth: AuthConfig) -> dict[str, str]:
    match auth:
        case NoAuth():
            return {"type": "none"}
        case BearerAuth(token=token):
            return {"type": "bearer", "token": token}
        case BasicAuth(username=username, password=password):
            return {"type": "basic", "username": username, "password": password}
    raise TypeError(f"Unknown auth config: {auth!r}")


def auth_from_dict(data: dict[str, Any] | None) -> AuthConfig:
    """Build an AuthConfig from its dict form. Unknown types yield NoAuth.

    Also reads the camelCase shape used by exported workspaces:
    {"type": "Bearer Token", "bearerToken": ...} and
    {"type": "Basic Auth", "basicUsername": ..., "basicPassword": ...}.
    """
    if not data:
        return NoAuth()
    auth_type = str(data.get("type", "")).lower()
    if auth_type in ("bearer", "bearer token"):
        return BearerAuth(token=_text(data.get("token") or data.get("bearerToken") or ""))
    if auth_type in ("basic", "basic auth"):
        return BasicAuth(
            username=_text(data.get("username") or data.get("basicUsername") or ""),
            password=_text(data.get("password") or data.get("basicPassword") or ""),
        )
    return NoAuth()


# ── Requests ─────────────────────────────────────────────────────────────


@dataclass
class Request:
    """A request template, possibly containing {{variable}} placeholders."""

    method: str = HttpMethod.GET.value
    url: str = ""
    params: list[KeyValue] = field(default_factory=list)
    headers: list[KeyValue] = field(default_factory=list)
    auth: AuthConfig = field(default_factory=NoAuth)
    body: str = ""
    body_type: BodyType = BodyType.RAW
    form_data: list[KeyValue] = field(default_factory=list)
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "params": [p.to_dict() for p in self.params],
            "headers": [h.to_dict() for h in self.headers],
            "auth": auth_to_dict(self.auth),
            "body": self.body,
            "body_type": self.body_type.value,
            "form_data": [f.to_dict() for f in self.form_data],
        }
        if self.name:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Request:
        return cls(
            method=str(data.get("method") or HttpMethod.GET.value).upper(),
            url=_text(data.get("url") or ""),
            params=_rows(data.get("params")),
            headers=_rows(data.get("headers")),
            auth=auth_from_dict(data.get("auth")),
            body=_text(data.get("body") or ""),
            body_type=BodyType.parse(data.get("body_type") or data.get("bodyType")),
            form_data=_rows(data.get("form_data") or data.get("formData")),
            name=data.get("name"),
        )


@dataclass
class MaterializedRequest:
    """A fully resolved request, ready to hand to the transport."""

    method: str
    url: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str | None = None

    def header(self, name: str) -> str | None:
        """Case-insensitive lookup of the first header called ``name``."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "url": self.url,
            "headers": [[k, v] for k, v in self.headers],
            "body": self.body,
        }


def _text(value: Any) -> str:
    # YAML happily turns `value: 42` into an int; rows store text only
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _rows(items: Any) -> list[KeyValue]:
    """Accept a list of row dicts or a plain {key: value} mapping."""
    if not items:
        return []
    if isinstance(items, dict):
        return [Variable(key=str(k), value="" if v is None else _text(v)) for k, v in items.items()]
    return [Variable.from_dict(item) for item in items if isinstance(item, dict)]
