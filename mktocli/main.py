"""Main entry point for the mktocli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
Dependencies are created on first use, so importing this module has no side effects.
"""

import asyncio
import logging
import sys
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from mktocli.core.command_handler import EXIT_ERROR, CommandHandler

# --- Domain Layer ---
from mktocli.domain.exceptions import ConfigurationError

# --- Infrastructure Layer ---
from mktocli.infrastructure.cli.display import ConsoleDisplay
from mktocli.infrastructure.clients.marketo_client import MarketoClient
from mktocli.infrastructure.config.settings import (
    get_client_id,
    get_client_secret,
    get_config,
    get_default_partition_id,
    get_delay_seconds,
    get_endpoint,
    get_timeout,
    load_configuration,
)
from mktocli.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, setup_logging
from mktocli.infrastructure.transport.http_transport import HttpTransport

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies(verbose: bool = False, delay_seconds: Optional[float] = None) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.

    Args:
        verbose: Forces DEBUG logging regardless of configuration.
        delay_seconds: Overrides the configured inter-call delay when set.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First
    load_configuration()
    log_level = 'DEBUG' if verbose else str(get_config('logging.level', 'WARNING')).upper()
    setup_logging(
        log_level=log_level,
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        log_file=get_config('logging.file'),
    )
    logger.info("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters
    dependencies['ui'] = ConsoleDisplay()
    try:
        dependencies['transport'] = HttpTransport(
            endpoint=get_endpoint(),
            client_id=get_client_id(),
            client_secret=get_client_secret(),
            timeout=get_timeout(),
        )
    except ConfigurationError as e:
        logger.error(f"Fatal Error during application initialization: {e}")
        dependencies['ui'].display_error(str(e))
        sys.exit(EXIT_ERROR)

    delay = delay_seconds if delay_seconds is not None else get_delay_seconds()
    dependencies['client'] = MarketoClient(dependencies['transport'], delay_seconds=delay)

    # 3. Instantiate Command Handler
    dependencies['command_handler'] = CommandHandler(
        client=dependencies['client'],
        ui=dependencies['ui'],
        default_partition_id=get_default_partition_id(),
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


_dependencies: Optional[Dict[str, Any]] = None
_cli_options: Dict[str, Any] = {'verbose': False, 'delay': None}


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies(verbose=_cli_options['verbose'], delay_seconds=_cli_options['delay'])
    return _dependencies


def reset_dependencies() -> None:
    global _dependencies
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="mktocli",
    help="mktocli: rate-limited command line access to the Marketo REST API.",
    add_completion=False,
)

# --- Helpers ---

def run_async(coro: Coroutine[Any, Any, int]) -> int:
    """Runs a handler coroutine to completion and returns its exit code.

    The transport is closed inside the same event loop once the command ends.
    """
    dependencies = get_dependencies()

    async def _run() -> int:
        try:
            return await coro
        finally:
            transport = dependencies.get('transport')
            if transport is not None:
                await transport.aclose()

    try:
        return asyncio.run(_run())
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Command execution failed: {e}")
        return EXIT_ERROR


def parse_key_values(pairs: Optional[List[str]], option_name: str = "--field") -> Dict[str, str]:
    """Turns repeated ``key=value`` options into a dict."""
    result: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{pair}'.", param_hint=option_name)
        result[key.strip()] = value
    return result


def finish(exit_code: int) -> None:
    raise typer.Exit(code=exit_code)

# --- CLI Commands ---

FieldOption = Annotated[
    Optional[List[str]],
    typer.Option("--field", "-f", help="Field value as key=value. Repeat for several fields.")
]

@app.command(name="create-lead")
def create_lead_command(
    email: Annotated[str, typer.Argument(help="Email address of the new lead.")],
    field: FieldOption = None,
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Target lead partition id.")] = None,
):
    """Create a lead."""
    fields = parse_key_values(field)
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_create_lead(email, fields, partition_id)))

@app.command(name="create-or-update-lead")
def create_or_update_lead_command(
    email: Annotated[str, typer.Argument(help="Email address of the lead.")],
    field: FieldOption = None,
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Target lead partition id.")] = None,
):
    """Create a lead, or update the lead that already has this email."""
    fields = parse_key_values(field)
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_create_or_update_lead(email, fields, partition_id)))

@app.command(name="update-lead")
def update_lead_command(
    reference: Annotated[str, typer.Argument(help="Email address or id of the lead.")],
    field: FieldOption = None,
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Lead partition id.")] = None,
):
    """Update an existing lead."""
    fields = parse_key_values(field)
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_update_lead(reference, fields, partition_id)))

@app.command(name="lead-field")
def lead_field_command(
    email: Annotated[str, typer.Argument(help="Email address of the lead.")],
    field: Annotated[str, typer.Argument(help="Lead field API name.")],
    expected: Annotated[str, typer.Argument(help="Expected value.")],
    operator: Annotated[str, typer.Option("--operator", help="be, not be, contain, not contain, be greater than, be less than.")] = "be",
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Lead partition id.")] = None,
):
    """Check a field on a lead."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_lead_field(email, field, expected, operator, partition_id)))

@app.command(name="delete-lead")

def delete_lead_command(
    email: Annotated[str, typer.Argument(help="Email address of the lead to delete.")],
):
    """Delete the lead with the given email."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_delete_lead(email)))

@app.command(name="check-activity")
def check_activity_command(
    email: Annotated[str, typer.Argument(help="Email address of the lead.")],
    activity: Annotated[str, typer.Argument(help="Activity type id or name.")],
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=1, help="Look-back window in minutes.")],
    attr: Annotated[Optional[List[str]], typer.Option("--attr", help="Expected attribute as key=value.")] = None,
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Lead partition id.")] = None,
):
    """Check that a lead has an activity of a type in the last N minutes."""
    attributes = parse_key_values(attr, "--attr")
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_check_activity(email, activity, minutes, attributes, partition_id)))

@app.command(name="check-activity-by-id")
def check_activity_by_id_command(
    lead_id: Annotated[str, typer.Argument(help="Id of the lead.")],
    activity: Annotated[str, typer.Argument(help="Activity type id or name.")],
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=1, help="Look-back window in minutes.")],
    attr: Annotated[Optional[List[str]], typer.Option("--attr", help="Expected attribute as key=value.")] = None,
    absent: Annotated[bool, typer.Option("--absent", help="Pass only when no such activity exists.")] = False,
    partition_id: Annotated[Optional[int], typer.Option("--partition-id", help="Lead partition id.")] = None,
):
    """Check whether the lead with an id has an activity of a type in the last N minutes."""
    attributes = parse_key_values(attr, "--attr")
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_check_activity_by_id(lead_id, activity, minutes, attributes, absent, partition_id)))

@app.command(name="lead-activities")

def lead_activities_command(
    lead_ids: Annotated[str, typer.Argument(help="Comma-separated lead ids.")],
    activity: Annotated[str, typer.Argument(help="Activity type id or name.")],
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=1, help="Look-back window in minutes.")],
):
    """Fetch activities of a type for many leads (batched and paged)."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_lead_activities(lead_ids, activity, minutes)))

@app.command(name="send-sample-email")
def send_sample_email_command(
    asset: Annotated[str, typer.Argument(help="Email asset id or name.")],
    address: Annotated[str, typer.Argument(help="Recipient email address.")],
    workspace: Annotated[Optional[str], typer.Option("--workspace", help="Workspace of the email asset.")] = None,
    program: Annotated[Optional[str], typer.Option("--program", help="Program (folder) of the email asset.")] = None,
):
    """Send a sample of an email asset."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_send_sample_email(asset, address, workspace, program)))

@app.command(name="list-emails")
def list_emails_command():
    """List email assets, sorted by name."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_list_emails()))

@app.command(name="static-list-add")
def static_list_add_command(
    name: Annotated[str, typer.Argument(help="Static list name.")],
    lead_ids: Annotated[str, typer.Argument(help="Comma-separated lead ids.")],
):
    """Add leads to a static list."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_static_list_add(name, lead_ids)))

@app.command(name="static-list-remove")
def static_list_remove_command(
    name: Annotated[str, typer.Argument(help="Static list name.")],
    lead_ids: Annotated[str, typer.Argument(help="Comma-separated lead ids.")],
):
    """Remove leads from a static list."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_static_list_remove(name, lead_ids)))

@app.command(name="static-list-count")
def static_list_count_command(
    name: Annotated[str, typer.Argument(help="Static list name.")],
    operator: Annotated[str, typer.Option("--operator", help="be, not be, be greater than, be less than, be set, not be set.")] = "be set",
    expected: Annotated[Optional[str], typer.Option("--expected", help="Expected member count.")] = None,
):
    """Check the number of members of a static list."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_static_list_count(name, operator, expected)))

@app.command(name="custom-object-upsert")
def custom_object_upsert_command(
    name: Annotated[str, typer.Argument(help="Custom object API name.")],
    link_email: Annotated[str, typer.Argument(help="Email of the linked lead.")],
    field: FieldOption = None,
):
    """Create or update a custom object record linked to a lead."""
    fields = parse_key_values(field)
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_custom_object_upsert(name, link_email, fields)))

@app.command(name="custom-object-delete")
def custom_object_delete_command(
    name: Annotated[str, typer.Argument(help="Custom object API name.")],
    link_email: Annotated[str, typer.Argument(help="Email of the linked lead.")],
):
    """Delete the custom object record linked to a lead."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_custom_object_delete(name, link_email)))

@app.command(name="custom-object-field")
def custom_object_field_command(
    name: Annotated[str, typer.Argument(help="Custom object API name.")],
    link_email: Annotated[str, typer.Argument(help="Email of the linked lead.")],
    field: Annotated[str, typer.Argument(help="Custom object field to check.")],
    expected: Annotated[str, typer.Argument(help="Expected value.")],
    operator: Annotated[str, typer.Option("--operator", help="be, not be, contain, not contain, be greater than, be less than.")] = "be",
    dedupe: Annotated[Optional[List[str]], typer.Option("--dedupe", help="Dedupe field value as key=value, to pick one record.")] = None,
):
    """Check a field on the custom object record linked to a lead."""
    dedupe_fields = parse_key_values(dedupe, "--dedupe")
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_custom_object_field(name, link_email, field, expected, operator, dedupe_fields)))

@app.command(name="describe-object")

def describe_object_command(
    name: Annotated[str, typer.Argument(help="Custom object API name.")],
):
    """Show the fields of a custom object."""
    handler: CommandHandler = get_dependencies()['command_handler']
    finish(run_async(handler.handle_describe_object(name)))

@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging.")] = False,
    delay: Annotated[Optional[float], typer.Option("--delay", min=0, help="Seconds to wait before every API call.")] = None,
):
    """Rate-limited access to the Marketo REST API."""
    _cli_options['verbose'] = verbose
    _cli_options['delay'] = delay
    logger.debug(f"main_callback called: verbose={verbose}, delay={delay}")

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
