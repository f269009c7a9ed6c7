"""reqcraft workspace - config, environments, request files and history."""

import datetime
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from reqcraft.models import Request, Variable
from reqcraft.variables import environment_from_mapping

logger = logging.getLogger(__name__)

GLOBAL_DIR = Path.home() / ".reqcraft"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"
HISTORY_FILE = Path.home() / ".reqcraft_history.json"
MAX_HISTORY = 50

CWD_CONFIG_CANDIDATES = [
    ".reqcraft.yaml",
    ".reqcraft.yml",
    "reqcraft.yaml",
    "reqcraft.yml",
]

DEFAULT_COLLECTIONS_FILE = "collections.yaml"


class WorkspaceError(Exception):
    """A file the user asked for could not be read or understood."""


def resolve_path(
    candidates: list[Path],
    default: Path | None = None,
) -> Path | None:
    """Return the first existing path from candidates, else default."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return default


def resolve_config_path(config_file: str | None) -> Path | None:
    """Find the config file to use.

    Resolution order:
      1. Explicit -c flag (hard — no fallthrough if missing)
      2. .reqcraft.yaml (variants) in CWD
      3. ~/.reqcraft/config.yaml
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Load the YAML config file. Missing files give empty defaults.

    Stores '_config_dir' so relative paths in the config (env_file,
    collections_file) resolve against the config file's directory.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    data = _read_structured(path)
    if not isinstance(data, dict):
        data = {}
    return {
        "defaults": data.get("defaults") or {},
        "_config_dir": path.resolve().parent,
    }


def config_relative(config: dict, value: str) -> Path:
    """Resolve a path from the config relative to the config file."""
    p = Path(value)
    config_dir = config.get("_config_dir")
    if not p.is_absolute() and config_dir:
        p = Path(config_dir) / p
    return p


def _read_structured(path: Path) -> Any:
    """Read a YAML or JSON file (by suffix), raising WorkspaceError on failure."""
    try:
        text = path.read_text()
    except OSError as e:
        raise WorkspaceError(f"Could not read {path}: {e}") from e
    try:
        if path.suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise WorkspaceError(f"Could not parse {path}: {e}") from e


def _write_structured(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".json":
        path.write_text(json.dumps(data, indent=2))
    else:
        path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True))


# ── Environments ─────────────────────────────────────────────────────────


def parse_environment(data: Any) -> list[Variable]:
    """Build an environment from a list of variable dicts or a plain mapping.

    A mapping gives AUTO variables; a list may carry `enabled` and `type`
    per variable. Anything else is an empty environment.
    """
    if isinstance(data, dict):
        return environment_from_mapping(data)
    if isinstance(data, list):
        return [Variable.from_dict(item) for item in data if isinstance(item, dict)]
    return []


def load_environment_file(path: str | Path) -> list[Variable]:
    """Load an environment from YAML/JSON, or a .env file via python-dotenv."""
    path = Path(path)
    if not path.exists():
        raise WorkspaceError(f"Environment file not found: {path}")
    if path.name.startswith(".env") or path.suffix == ".env":
        values = dotenv_values(str(path))
        return environment_from_mapping({k: v for k, v in values.items() if v is not None})
    return parse_environment(_read_structured(path))


def load_environment(
    config: dict,
    env_file: str | None = None,
    cli_vars: dict[str, str] | None = None,
) -> list[Variable]:
    """Assemble the environment used for substitution.

    Lookup takes the first enabled match, so sources are stacked in
    precedence order:
      1. -v key=value pairs
      2. --env file
      3. `environment` from the config defaults
      4. `env_file` (.env) from the config defaults
    """
    defaults = config.get("defaults", {})
    environment: list[Variable] = []

    if cli_vars:
        environment.extend(environment_from_mapping(cli_vars))

    if env_file:
        environment.extend(load_environment_file(env_file))

    environment.extend(parse_environment(defaults.get("environment")))

    dotenv_file = defaults.get("env_file")
    if dotenv_file:
        dotenv_path = config_relative(config, dotenv_file)
        if dotenv_path.exists():
            values = dotenv_values(str(dotenv_path))
            environment.extend(
                environment_from_mapping({k: v for k, v in values.items() if v is not None}),
            )
        else:
            logger.debug("env_file %s does not exist, skipping", dotenv_path)

    return environment


def parse_var_pairs(pairs: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Parse -v key=value pairs. Pairs without '=' are ignored."""
    variables: dict[str, str] = {}
    for pair in pairs:
        if "=" in pair:
            k, v = pair.split("=", 1)
            variables[k.strip()] = v.strip()
    return variables


# ── Request files ────────────────────────────────────────────────────────


def load_request(path: str | Path) -> Request:
    """Load a request template from a YAML or JSON file."""
    path = Path(path)
    if not path.exists():
        raise WorkspaceError(f"Request file not found: {path}")
    data = _read_structured(path)
    if not isinstance(data, dict):
        raise WorkspaceError(f"{path} does not contain a request mapping")
    request = Request.from_dict(data)
    if request.name is None:
        request.name = path.stem
    return request


def save_request(request: Request, path: str | Path) -> Path:
    """Write a request template to YAML or JSON (by suffix)."""
    path = Path(path)
    _write_structured(path, request.to_dict())
    return path


# ── History ──────────────────────────────────────────────────────────────


def load_history() -> list[dict]:
    """Return history entries, newest first. A broken file reads as empty."""
    try:
        if HISTORY_FILE.exists():
            data = json.loads(HISTORY_FILE.read_text())
            if isinstance(data, list):
                return data
    except (OSError, ValueError) as e:
        logger.warning("Could not read history %s: %s", HISTORY_FILE, e)
    return []


def save_to_history(request: Request) -> None:
    """Prepend a request template to history, capped at MAX_HISTORY.

    Authorization headers are not written to disk.
    """
    entry = request.to_dict()
    entry["headers"] = [
        h for h in entry["headers"] if h["key"].lower() != "authorization"
    ]
    entry["timestamp"] = datetime.datetime.now().isoformat()
    hist = [entry] + load_history()
    try:
        HISTORY_FILE.write_text(json.dumps(hist[:MAX_HISTORY], indent=2))
    except OSError as e:
        logger.warning("Could not write history %s: %s", HISTORY_FILE, e)


def history_request(index: int) -> Request:
    """Return the request template stored at ``index`` in history."""
    hist = load_history()
    if index < 0 or index >= len(hist):
        raise WorkspaceError(f"Invalid index {index}. Use --history to list.")
    return Request.from_dict(hist[index])


# ── Collections ──────────────────────────────────────────────────────────


def collections_path(config: dict) -> Path:
    defaults = config.get("defaults", {})
    value = defaults.get("collections_file")
    if value:
        return config_relative(config, value)
    return Path(DEFAULT_COLLECTIONS_FILE)


def load_collections_data(path: Path) -> list[dict]:
    """Read the raw collections tree. A missing file is an empty tree."""
    if not path.exists():
        return []
    data = _read_structured(path)
    if isinstance(data, dict):
        data = data.get("collections")
    return data if isinstance(data, list) else []


def save_collections_data(path: Path, items: list[dict]) -> Path:
    _write_structured(path, {"collections": items})
    return path
