"""reqcraft CLI - request templates, curl import/export and sending."""

import logging
import sys

import click

TOOL_HELP = """\
reqcraft — API-testing client with typed templates and curl interop.

\b
MODES
─────
  Send a template:   reqcraft REQUEST_FILE [-e ENV] [-v key=value]
  Import curl:       reqcraft --import-curl "curl ..." [-o FILE] [--send]
  Export curl:       reqcraft REQUEST_FILE --to-curl
  Dry run:           reqcraft REQUEST_FILE --dry-run
  Collections:       reqcraft --collection "Folder/Request"
  Save to folder:    reqcraft REQUEST_FILE --save-to-collection "Folder/Request"

\b
REQUEST FILES
─────────────
  YAML or JSON files holding a request template:

  \b
  method: POST
  url: "{{base_url}}/users?page=1"
  params:
    - {key: page, value: "{{page}}"}
  headers:
    - {key: Content-Type, value: application/json}
  auth: {type: bearer, token: "{{token}}"}
  body_type: raw              # raw | form-data | x-www-form-urlencoded
  body: "{{payload}}"
  form_data: []

  Entries in params win over same-named pairs already in the URL.

\b
VARIABLES
─────────
  {{name}} placeholders are resolved from the environment.
  A value that is exactly one placeholder keeps the variable's type,
  so body: "{{payload}}" with a JSON variable sends that JSON.
  Anywhere else the variable is interpolated as text.

  Variable types: auto | string | number | boolean | json

  Environment sources, first match wins:
  \b
  1. -v key=value          (CLI flag)
  2. -e/--env FILE         (YAML/JSON list or mapping, or a .env file)
  3. defaults.environment  (config file)
  4. defaults.env_file     (.env file from config)

\b
CURL IMPORT
───────────
  Understands -X, -H, -d/--data/--data-raw/--data-binary/--data-urlencode,
  --json, -F/--form, -u, --url and -L. Other flags are ignored.
  Use --import-curl - to read the command from stdin.

\b
CONFIG FILE FORMAT (.reqcraft.yaml)
───────────────────────────────────
  Config resolution order:
    1. -c/--config flag (explicit path)
    2. .reqcraft.yaml / .reqcraft.yml / reqcraft.yaml / reqcraft.yml in CWD
    3. ~/.reqcraft/config.yaml (global)

  \b
  defaults:
    timeout: 30
    env_file: .env
    collections_file: collections.yaml
    environment:
      - {key: base_url, value: "http://localhost:8000"}
      - {key: page, value: "2", type: number}

\b
COLLECTIONS (defaults.collections_file, default collections.yaml)
───────────
  reqcraft --list-collections                               Show the tree
  reqcraft --collection "Users/Create"                      Use a saved request
  reqcraft REQUEST_FILE --save-to-collection "Users/Create" Save or replace
  reqcraft --remove-from-collection "Users"                 Delete request or folder

\b
HISTORY
───────
  reqcraft --history          Show recent requests
  reqcraft --replay 0         Replay request at index 0
"""


@click.command(
    cls=click.Command,
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.argument("request_file", required=False)
@click.option(
    "-c",
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .reqcraft.yaml in CWD, then ~/.reqcraft/config.yaml.",
)
@click.option(
    "-e",
    "--env",
    "env_file",
    default=None,
    help="Environment file (YAML/JSON variables, or a .env file).",
)
@click.option(
    "-v",
    "--var",
    multiple=True,
    help="Variable as key=value. Takes precedence over every other source. Repeatable.",
)
@click.option(
    "--import-curl",
    "import_curl",
    default=None,
    help="Parse a curl command string ('-' reads stdin).",
)
@click.option(
    "--collection",
    "collection_path",
    default=None,
    metavar="PATH",
    help="Use a saved request from the collections file, e.g. 'Users/Create'.",
)
@click.option(
    "--save-to-collection",
    "save_collection_path",
    default=None,
    metavar="PATH",
    help="Save the request into the collections file at PATH, creating folders as needed.",
)
@click.option(
    "--remove-from-collection",
    "remove_collection_path",
    default=None,
    metavar="PATH",
    help="Delete a saved request or folder from the collections file.",
)
@click.option(
    "--list-collections",
    "show_list_collections",
    is_flag=True,
    default=False,
    help="List folders and saved requests in the collections file.",
)
@click.option("--to-curl", is_flag=True, default=False, help="Print the request as a curl command.")
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the materialized request without sending it.",
)
@click.option(
    "--send",
    is_flag=True,
    default=False,
    help="Send an imported or collection-saved request instead of only storing it.",
)
@click.option(
    "-o",
    "--output",
    "output_file",
    default=None,
    help="Save the request template to a YAML/JSON file.",
)
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="Request timeout in seconds. Default: 30.",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Include response headers in output.",
)
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Output the response body only. Useful for piping.",
)
@click.option("--history", is_flag=True, default=False, help="Show request history.")
@click.option(
    "--replay",
    type=int,
    default=None,
    metavar="INDEX",
    help="Replay a request from history by index.",
)
@click.option("--debug", is_flag=True, default=False, help="Log debug information to stderr.")
def main(
    request_file,
    config_file,
    env_file,
    var,
    import_curl,
    collection_path,
    save_collection_path,
    remove_collection_path,
    show_list_collections,
    to_curl,
    dry_run,
    send,
    output_file,
    timeout,
    verbose,
    raw,
    history,
    replay,
    debug,
):
    """Send, import and export request templates."""
    from reqcraft.curl_parser import ParseError
    from reqcraft.workspace import (
        WorkspaceError,
        load_config,
        load_environment,
        parse_var_pairs,
        resolve_config_path,
    )

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    try:
        config = load_config(resolve_config_path(config_file))
        defaults = config.get("defaults", {})

        if history:
            _cmd_history()
            return

        if show_list_collections:
            _cmd_list_collections(config)
            return

        if remove_collection_path:
            _cmd_remove_from_collection(config, remove_collection_path)
            return

        request = _load_request(
            request_file,
            import_curl,
            collection_path,
            replay,
            config,
        )
        if request is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            ctx.exit(1)

        if output_file:
            from reqcraft.workspace import save_request

            path = save_request(request, output_file)
            click.echo(f"Saved request: {path}", err=True)

        if save_collection_path:
            _cmd_save_to_collection(config, request, save_collection_path)
            if not (send or to_curl or dry_run):
                return

        environment = load_environment(config, env_file, parse_var_pairs(var))
    except (ParseError, WorkspaceError) as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    if to_curl:
        _cmd_to_curl(request, environment)
        return

    if dry_run:
        _cmd_dry_run(request, environment)
        return

    if import_curl and not send:
        if not output_file:
            from reqcraft.output import format_request

            click.echo(format_request(request), nl=False)
        return

    _cmd_send(request, environment, timeout or defaults.get("timeout"), verbose, raw)


# ── Subcommand implementations ──────────────────────────────────────────


def _load_request(request_file, import_curl, collection_path, replay, config):
    """Pick the request template from whichever source was given."""
    from reqcraft.workspace import WorkspaceError, history_request, load_request

    if import_curl:
        from reqcraft.curl_parser import parse_curl

        command = import_curl
        if command == "-":
            command = click.get_text_stream("stdin").read()
        return parse_curl(command)

    if replay is not None:
        return history_request(replay)

    if collection_path:
        from reqcraft.collection_tree import find_request_by_path, items_from_data
        from reqcraft.workspace import collections_path, load_collections_data

        path = collections_path(config)
        items = items_from_data(load_collections_data(path))
        found = find_request_by_path(items, collection_path)
        if found is None:
            raise WorkspaceError(f"No saved request '{collection_path}' in {path}")
        return found.request

    if request_file:
        return load_request(request_file)

    return None


def _cmd_history():
    from reqcraft.workspace import load_history

    hist = load_history()
    if not hist:
        click.echo("No request history.")
        return
    click.echo("Request history:\n")
    for i, entry in enumerate(hist):
        ts = entry.get("timestamp", "")
        m = entry.get("method", "?")
        u = entry.get("url", "?")
        name = entry.get("name")
        label = f"[{name}] {u}" if name else u
        click.echo(f"  [{i}] {m:<7} {label}  ({ts})")


def _cmd_list_collections(config):
    from reqcraft.collection_tree import CollectionFolder, items_from_data, walk
    from reqcraft.workspace import collections_path, load_collections_data

    path = collections_path(config)
    items = items_from_data(load_collections_data(path))
    if not items:
        click.echo(f"No collections found in: {path}")
        return
    click.echo(f"Collections from: {path}\n")
    for depth, item in walk(items):
        indent = "  " * (depth + 1)
        if isinstance(item, CollectionFolder):
            click.echo(f"{indent}{item.name}/")
        else:
            click.echo(f"{indent}{item.name}  ({item.request.method} {item.request.url})")


def _cmd_to_curl(request, environment):
    from reqcraft.codegen import generate_curl_command

    click.echo(generate_curl_command(request, environment))


def _cmd_dry_run(request, environment):
    from reqcraft.materialize import materialize_request
    from reqcraft.output import format_materialized

    click.echo(format_materialized(materialize_request(request, environment)))


def _cmd_send(request, environment, timeout, verbose, raw):
    from reqcraft.executor import DEFAULT_TIMEOUT, execute_request
    from reqcraft.materialize import materialize_request
    from reqcraft.output import format_output
    from reqcraft.workspace import save_to_history

    materialized = materialize_request(request, environment)
    result = execute_request(materialized, timeout=timeout or DEFAULT_TIMEOUT)
    if result.error:
        click.echo(f"ERROR: {result.error}", err=True)
        sys.exit(1)
    click.echo(format_output(result, verbose=verbose, raw=raw))
    save_to_history(request)


def _cmd_save_to_collection(config, request, path_arg):
    from reqcraft.collection_tree import (
        find_item_path,
        item_to_dict,
        items_from_data,
        save_request_at_path,
    )
    from reqcraft.workspace import (
        WorkspaceError,
        collections_path,
        load_collections_data,
        save_collections_data,
    )

    path = collections_path(config)
    items = items_from_data(load_collections_data(path))
    try:
        items, item_id = save_request_at_path(items, path_arg, request)
    except ValueError as e:
        raise WorkspaceError(str(e)) from e
    save_collections_data(path, [item_to_dict(item) for item in items])
    saved_at = "/".join(find_item_path(items, item_id))
    click.echo(f"Saved to collection: {saved_at} ({path})", err=True)


def _cmd_remove_from_collection(config, path_arg):
    from reqcraft.collection_tree import (
        find_item_and_parent,
        find_item_by_path,
        item_to_dict,
        items_from_data,
        remove_item,
    )
    from reqcraft.workspace import (
        WorkspaceError,
        collections_path,
        load_collections_data,
        save_collections_data,
    )

    path = collections_path(config)
    items = items_from_data(load_collections_data(path))
    found = find_item_by_path(items, path_arg)
    if found is None:
        raise WorkspaceError(f"Nothing saved at '{path_arg}' in {path}")
    _, parent = find_item_and_parent(items, found.id)
    save_collections_data(path, [item_to_dict(item) for item in remove_item(items, found.id)])
    where = parent.name if parent else "top level"
    click.echo(f"Removed '{found.name}' from {where} ({path})")
