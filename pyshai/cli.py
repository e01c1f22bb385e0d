"""CLI interface for shai."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import ShaiClient
from .auth import get_token, require_auth
from .config import Config
from .credentials import Credentials
from .exceptions import (
    EXIT_AUTH_REQUIRED,
    EXIT_INVALID_INPUT,
    EXIT_NOT_FOUND,
    ConfigurationAlreadyInstalledError,
    ShaiAuthenticationError,
    ShaiConfigError,
    ShaiError,
    ShaiNotFoundError,
)
from .output import OutputFormatter
from .prompts import ClickPrompter, Prompter
from .sync import DEFAULT_INCLUDE, SyncEngine, load_manifest, manifest_exists
from .sync.manifest import MANIFEST_FILE_NAME, read_manifest_slug
from .utils import format_date, parse_configuration_name, time_ago

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("name", "description", "visibility")
VISIBILITIES = ("private", "public")


def create_client(ctx: Any) -> ShaiClient:
    return ShaiClient(ctx.obj["config"], token=get_token(ctx))


def create_engine(ctx: Any, client: ShaiClient, base_path: Path) -> SyncEngine:
    credentials: Credentials = ctx.obj["credentials"]
    return SyncEngine(
        client,
        base_path,
        output=ctx.obj["out"],
        prompter=ctx.obj["prompter"],
        username=credentials.username,
    )


def fail(ctx: Any, error: ShaiError, identifier: Optional[str] = None) -> None:
    """Print an error and exit with the error's exit code.

    Args:
        ctx: Click context
        error: The error that ended the command
        identifier: Configuration the command was working on, used for a
            friendlier not-found message
    """
    out: OutputFormatter = ctx.obj["out"]
    if isinstance(error, ShaiNotFoundError) and identifier:
        out.error(f"Configuration '{identifier}' not found.")
    else:
        out.error(str(error))
    logger.debug(f"Command failed: {error!r}")
    ctx.exit(error.exit_code)


def display_configuration(
    out: OutputFormatter, configuration: dict[str, Any], detailed: bool = False
) -> None:
    """Show one configuration entry of a list or search result."""
    name = configuration.get("slug") or configuration.get("name")
    owner = configuration.get("owner")
    owner_name = owner.get("username") if isinstance(owner, dict) else owner
    full_name = f"{owner_name}/{name}" if owner_name else name

    line = f"  {full_name}"
    if configuration.get("visibility") == "private":
        line += " (private)"
    stars = configuration.get("stars_count") or 0
    if stars > 0:
        line += f" ★ {stars}"
    out.print(line)

    description = configuration.get("description")
    if description:
        out.indent(description)

    if detailed:
        tags = configuration.get("tags") or []
        if tags:
            out.indent(f"Tags: {', '.join(tags)}")


def configurations_from(response: Any) -> list[dict[str, Any]]:
    if isinstance(response, list):
        return response
    return (response or {}).get("configurations") or []


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__, prog_name="shai")
@click.pass_context
def main(ctx: Any, quiet: bool, no_color: bool, verbose: bool) -> None:
    """shai - Manage AI agent configurations.

    Install configurations shared by others, or author your own and push
    them to shai.dev.
    """
    ctx.ensure_object(dict)
    out = OutputFormatter(quiet=quiet, color=not no_color)
    ctx.obj["out"] = out
    ctx.obj["verbose"] = verbose
    ctx.obj.setdefault("prompter", ClickPrompter())

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyshai").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = Config.from_env()
    except ShaiConfigError as e:
        out.error(str(e))
        ctx.exit(e.exit_code)
    ctx.obj["config"] = config
    if not config.color:
        ctx.obj["out"] = OutputFormatter(quiet=quiet, color=False)
    ctx.obj["credentials"] = Credentials(config.credentials_path)


# =========================
# Authentication
# =========================


@main.command()
@click.pass_context
def login(ctx: Any) -> None:
    """Log in to shai.dev.

    Stores a session token in the shai config directory.
    """
    out: OutputFormatter = ctx.obj["out"]
    prompter: Prompter = ctx.obj["prompter"]
    config: Config = ctx.obj["config"]
    credentials: Credentials = ctx.obj["credentials"]

    identifier = prompter.ask("Email or username")
    password = prompter.ask_secret("Password")
    out.blank()

    try:
        with ShaiClient(config) as client:
            with out.spinner("Logging in..."):
                response = client.login(identifier, password)
    except ShaiAuthenticationError:
        out.error("Invalid credentials")
        ctx.exit(EXIT_AUTH_REQUIRED)
    except ShaiError as e:
        fail(ctx, e)

    data = response.get("data") or {}
    if not data.get("token"):
        out.error("Login response did not contain a token")
        ctx.exit(1)

    credentials.save(
        token=data["token"],
        expires_at=data.get("expires_at"),
        user=data.get("user") or {},
    )
    out.success(f"Logged in as {credentials.username}")
    out.indent(f"Token expires: {format_date(credentials.expires_at)}")
    out.indent(f"Token stored in {config.credentials_path}")


@main.command()
@click.pass_context
def logout(ctx: Any) -> None:
    """Log out and remove stored credentials."""
    out: OutputFormatter = ctx.obj["out"]
    credentials: Credentials = ctx.obj["credentials"]

    credentials.clear()
    out.success("Logged out successfully")


@main.command()
@click.pass_context
def whoami(ctx: Any) -> None:
    """Show current authentication status."""
    out: OutputFormatter = ctx.obj["out"]
    credentials: Credentials = ctx.obj["credentials"]

    if credentials.authenticated:
        name = credentials.display_name or credentials.username
        out.info(f"Logged in as {credentials.username} ({name})")
        out.info(f"Token expires: {format_date(credentials.expires_at)}")
    elif credentials.token:
        out.info("Session expired. Run `shai login` to authenticate.")
    else:
        out.info("Not logged in. Run `shai login` to authenticate.")


# =========================
# Discovery
# =========================


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def list_configurations(ctx: Any, as_json: bool) -> None:
    """List your configurations."""
    out: OutputFormatter = ctx.obj["out"]
    require_auth(ctx)

    try:
        with create_client(ctx) as client:
            with out.spinner("Fetching configurations..."):
                configurations = configurations_from(client.list_configurations())
    except ShaiError as e:
        fail(ctx, e)

    if as_json:
        out.output_json(configurations)
        return

    if not configurations:
        out.info("You don't have any configurations yet.")
        out.info("Run `shai init` to create one.")
        return

    out.header("Your configurations:")
    out.blank()
    for configuration in configurations:
        display_configuration(out, configuration)
        out.indent(f"Updated: {time_ago(configuration.get('updated_at'))}")
        out.blank()


@main.command()
@click.argument("query", required=False)
@click.option("--tag", "-t", "tags", multiple=True, help="Filter by tag (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
@click.pass_context
def search(ctx: Any, query: Optional[str], tags: tuple[str, ...], as_json: bool) -> None:
    """Search public configurations.

    Examples:
        shai search "claude code"
        shai search --tag python --tag testing
    """
    out: OutputFormatter = ctx.obj["out"]

    if not query and not tags:
        out.error("Please provide a search query or tags")
        ctx.exit(EXIT_INVALID_INPUT)

    try:
        with create_client(ctx) as client:
            with out.spinner("Searching..."):
                response = client.search_configurations(query=query, tags=list(tags))
    except ShaiError as e:
        fail(ctx, e)

    configurations = configurations_from(response)
    if as_json:
        out.output_json(configurations)
        return

    search_term = f'"{query}"' if query else f"tags: {', '.join(tags)}"
    if not configurations:
        out.info(f"No configurations found for {search_term}")
        return

    out.header(f"Search results for {search_term}:")
    out.blank()
    for configuration in configurations:
        display_configuration(out, configuration, detailed=True)
        out.blank()
    out.info(
        f"Found {len(configurations)} configuration(s). "
        "Use `shai install <name>` to install."
    )


# =========================
# Using configurations
# =========================


@main.command()
@click.argument("identifier")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing files")
@click.option("--dry-run", is_flag=True, help="Show what would be installed")
@click.option(
    "--path",
    "-p",
    type=click.Path(file_okay=False),
    default=".",
    help="Install to specific directory",
)
@click.pass_context
def install(ctx: Any, identifier: str, force: bool, dry_run: bool, path: str) -> None:
    """Install a configuration to the local project.

    IDENTIFIER: Configuration slug or owner/slug
    """
    out: OutputFormatter = ctx.obj["out"]
    base_path = Path(path).resolve()

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            engine.install(identifier, force=force, dry_run=dry_run)
    except ConfigurationAlreadyInstalledError as e:
        existing = e.existing_slug or "unknown"
        out.error(str(e))
        out.indent(f"Existing: {existing}")
        out.blank()
        out.info("To install a different configuration:")
        out.indent(
            f"1. Run `shai uninstall {existing}` to remove the current configuration"
        )
        out.indent(f"2. Then run `shai install {identifier}`")
        out.blank()
        out.info("Or use --force to install anyway (may cause conflicts)")
        ctx.exit(e.exit_code)
    except ShaiError as e:
        fail(ctx, e, identifier)


@main.command()
@click.argument("identifier")
@click.option("--dry-run", is_flag=True, help="Show what would be removed")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--path",
    "-p",
    type=click.Path(file_okay=False),
    default=".",
    help="Path where the configuration is installed",
)
@click.pass_context
def uninstall(
    ctx: Any, identifier: str, dry_run: bool, yes: bool, path: str
) -> None:
    """Remove an installed configuration from the local project.

    Only files and folders of the configuration are removed; folders that
    still contain other files are kept.
    """
    base_path = Path(path).resolve()

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            engine.uninstall(identifier, dry_run=dry_run, assume_yes=yes)
    except ShaiError as e:
        fail(ctx, e, identifier)


# =========================
# Authoring configurations
# =========================


@main.command()
@click.option("--name", "-n", help="Configuration name")
@click.option("--description", "-d", help="Configuration description")
@click.option(
    "--visibility",
    type=click.Choice(VISIBILITIES),
    default=None,
    help="Configuration visibility",
)
@click.option(
    "--include",
    "-i",
    "include",
    multiple=True,
    help="Include glob pattern (repeatable)",
)
@click.pass_context
def init(
    ctx: Any,
    name: Optional[str],
    description: Optional[str],
    visibility: Optional[str],
    include: tuple[str, ...],
) -> None:
    """Initialize a new configuration in the current directory.

    Creates the configuration on shai.dev and writes a .shairc file. Missing
    options are asked for interactively.
    """
    out: OutputFormatter = ctx.obj["out"]
    prompter: Prompter = ctx.obj["prompter"]
    config: Config = ctx.obj["config"]
    credentials: Credentials = ctx.obj["credentials"]
    base_path = Path.cwd()
    require_auth(ctx)

    if manifest_exists(base_path):
        out.error(f"A {MANIFEST_FILE_NAME} file already exists in this directory.")
        out.info("Use `shai push` to upload changes to the existing configuration.")
        ctx.exit(EXIT_INVALID_INPUT)

    if not name:
        name = prompter.ask("Configuration name")
    if description is None:
        description = prompter.ask("Description (optional)", default="")
    if not visibility:
        visibility = prompter.select_one(
            "Visibility",
            [(value, value) for value in VISIBILITIES],
            default="private",
        )
    if include:
        include_patterns = list(include)
    else:
        answer = prompter.ask(
            "Include paths (glob patterns, comma-separated)",
            default=",".join(DEFAULT_INCLUDE),
        )
        include_patterns = [p.strip() for p in answer.split(",") if p.strip()]
    out.blank()

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            manifest = engine.init(
                name,
                description=description,
                visibility=visibility,
                include_patterns=include_patterns,
            )
    except ShaiError as e:
        fail(ctx, e)

    out.success(f"Created {manifest.slug}")
    out.indent(f"Remote: {config.web_url(credentials.username, manifest.slug)}")
    out.blank()
    out.info("Next steps:")
    out.indent("1. Add or modify files matching your include patterns")
    out.indent("2. Run `shai push` to upload your configuration")


@main.command()
@click.option("--dry-run", is_flag=True, help="Show what would be pushed")
@click.pass_context
def push(ctx: Any, dry_run: bool) -> None:
    """Push local files to the remote configuration.

    The remote tree is replaced by the files matching the .shairc include
    patterns.
    """
    out: OutputFormatter = ctx.obj["out"]
    config: Config = ctx.obj["config"]
    credentials: Credentials = ctx.obj["credentials"]
    base_path = Path.cwd()
    require_auth(ctx)

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            stats = engine.push(dry_run=dry_run)
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(base_path))

    if not stats["dry_run"]:
        slug = load_manifest(base_path).slug
        owner, slug = parse_configuration_name(slug)
        out.indent(f"View at: {config.web_url(owner or credentials.username, slug)}")


@main.command()
@click.option("--dry-run", is_flag=True, help="Show what would be pulled")
@click.option(
    "--force", "-f", is_flag=True, help="Overwrite locally modified files"
)
@click.pass_context
def pull(ctx: Any, dry_run: bool, force: bool) -> None:
    """Pull remote changes into the current directory.

    New remote files are created. Files that differ locally are only
    overwritten after confirmation (or with --force). Local files are never
    deleted.
    """
    base_path = Path.cwd()

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            engine.pull(dry_run=dry_run, force=force)
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(base_path))


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Show local changes compared to the remote configuration."""
    out: OutputFormatter = ctx.obj["out"]
    base_path = Path.cwd()
    require_auth(ctx)

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            changes = engine.status()
            display_name = engine.display_name(load_manifest(base_path).slug)
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(base_path))

    out.header(f"Configuration: {display_name}")

    if not changes.has_changes:
        out.info("Status: Up to date")
        out.blank()
        out.info("No local changes detected.")
        return

    out.info("Status: Local changes")
    out.blank()
    for title, paths in (
        ("Modified:", changes.modified),
        ("New:", changes.created),
        ("Deleted (remote only):", changes.removed),
    ):
        if paths:
            out.info(title)
            for path in paths:
                out.indent(path)
            out.blank()
    out.info("Run `shai push` to upload changes.")


@main.command()
@click.option(
    "--context", "-U", "context_lines", type=int, default=3, show_default=True,
    help="Number of context lines",
)
@click.pass_context
def diff(ctx: Any, context_lines: int) -> None:
    """Show differences between remote and local files."""
    base_path = Path.cwd()
    require_auth(ctx)

    try:
        with create_client(ctx) as client:
            engine = create_engine(ctx, client, base_path)
            engine.diff(context_lines=context_lines)
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(base_path))


@main.group("config")
def config_group() -> None:
    """Manage configuration metadata."""


@config_group.command("show")
@click.pass_context
def config_show(ctx: Any) -> None:
    """Show details of the configuration in the current directory."""
    out: OutputFormatter = ctx.obj["out"]
    config: Config = ctx.obj["config"]
    credentials: Credentials = ctx.obj["credentials"]
    require_auth(ctx)

    try:
        slug = load_manifest(Path.cwd()).slug
        with create_client(ctx) as client:
            with out.spinner("Fetching configuration..."):
                response = client.get_configuration(slug)
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(Path.cwd()))

    configuration = response.get("configuration") or response
    owner = configuration.get("owner")
    owner_name = owner.get("username") if isinstance(owner, dict) else owner
    owner_name = owner_name or credentials.username

    out.info(f"Configuration: {configuration.get('slug')}")
    out.info(f"Name: {configuration.get('name')}")
    out.info(f"Description: {configuration.get('description') or '(none)'}")
    out.info(f"Visibility: {configuration.get('visibility')}")
    out.info(f"Owner: {owner_name}")
    out.info(f"Stars: {configuration.get('stars_count') or 0}")
    out.info(f"URL: {config.web_url(owner_name, configuration.get('slug') or slug)}")
    out.info(f"Created: {format_date(configuration.get('created_at'), '(unknown)')}")
    out.info(f"Updated: {format_date(configuration.get('updated_at'), '(unknown)')}")


@config_group.command("set")
@click.argument("key")
@click.argument("value", nargs=-1, required=True)
@click.pass_context
def config_set(ctx: Any, key: str, value: tuple[str, ...]) -> None:
    """Update configuration metadata.

    KEY is one of name, description or visibility.
    """
    out: OutputFormatter = ctx.obj["out"]
    require_auth(ctx)
    text = " ".join(value)

    if key not in CONFIG_KEYS:
        out.error(f"Invalid key: {key}")
        out.info(f"Valid keys: {', '.join(CONFIG_KEYS)}")
        ctx.exit(EXIT_INVALID_INPUT)

    if key == "visibility" and text not in VISIBILITIES:
        out.error("Visibility must be 'public' or 'private'")
        ctx.exit(EXIT_INVALID_INPUT)

    try:
        slug = load_manifest(Path.cwd()).slug
        with create_client(ctx) as client:
            with out.spinner("Updating..."):
                client.update_configuration(slug, **{key: text})
    except ShaiError as e:
        fail(ctx, e, read_manifest_slug(Path.cwd()))

    out.success(f"Updated {key} to '{text}'")


@main.command()
@click.argument("slug")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx: Any, slug: str, yes: bool) -> None:
    """Delete a configuration from shai.dev."""
    out: OutputFormatter = ctx.obj["out"]
    prompter: Prompter = ctx.obj["prompter"]
    require_auth(ctx)

    question = f"Are you sure you want to delete '{slug}'? This cannot be undone."
    if not yes and not prompter.ask_yes_no(question):
        out.info("Cancelled")
        return

    try:
        with create_client(ctx) as client:
            with out.spinner("Deleting..."):
                client.delete_configuration(slug)
    except ShaiNotFoundError:
        out.error(f"Configuration '{slug}' not found.")
        ctx.exit(EXIT_NOT_FOUND)
    except ShaiError as e:
        fail(ctx, e, slug)

    out.success(f"Configuration '{slug}' deleted")


if __name__ == "__main__":
    main()
