from __future__ import annotations

import logging
import sys
import webbrowser
from typing import Any

import click
import typer
from rich.console import Console

from . import __version__
from .config import CciConfig
from .contexts import Contexts
from .errors import CciError, RemoteDetectionError
from .formatters import context_table, environment_variable_table, pipeline_table
from .models import Remote, TriggerParameters
from .paths import project_url
from .pipelines import Pipelines
from .remote import infer_project_from_git_remotes
from .rest import RestClient

logger = logging.getLogger(__name__)

GIT_REPOSITORY_REQUIRED = "this command must be run from inside a git repository"

OPEN_ERROR_MESSAGE = (
    "Unable to detect which URL should be opened. This command is intended to be run from "
    "a git repository with a remote named 'origin' that is hosted on GitHub or Bitbucket"
)

_ERROR_CONSOLE = Console(stderr=True)

app = typer.Typer(
    name="cci",
    help="Command-line client for the CircleCI API.",
    no_args_is_help=True,
    add_completion=False,
)
pipeline_app = typer.Typer(help="Operate on pipelines.", no_args_is_help=True)
context_app = typer.Typer(help="Manage contexts and their secrets.", no_args_is_help=True)
app.add_typer(pipeline_app, name="pipeline")
app.add_typer(context_app, name="context")


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {msg}", highlight=False, soft_wrap=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cci {__version__}")
        raise typer.Exit(code=0)


@app.callback()
def app_callback(
    ctx: typer.Context,
    host: str = typer.Option("", "--host", help="CircleCI host, e.g. https://circleci.com"),
    token: str = typer.Option("", "--token", help="Personal API token"),
    debug: bool = typer.Option(False, "--debug", help="Log HTTP requests and responses"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"host": host.strip() or None, "token": token.strip() or None}


def _config(ctx: typer.Context) -> CciConfig:
    root = ctx.find_root()
    obj: dict[str, Any] = root.obj if isinstance(root.obj, dict) else {}
    if "config" not in obj:
        obj["config"] = CciConfig(host=obj.get("host"), token=obj.get("token"))
        root.obj = obj
    return obj["config"]


def _rest_client(ctx: typer.Context) -> RestClient:
    return RestClient.from_config(_config(ctx))


def _infer_remote(message: str) -> Remote:
    try:
        return infer_project_from_git_remotes()
    except RemoteDetectionError as e:
        raise RemoteDetectionError(
            f"{message}: {e}", context=e.context, original_exception=e
        ) from e


def _print(renderable: Any) -> None:
    Console().print(renderable)


@pipeline_app.command("trigger", help="Trigger a pipeline for the current project.")
def trigger_pipeline(
    ctx: typer.Context,
    branch: str = typer.Option("", "--branch", help="Branch to build (default branch if omitted)"),
) -> None:
    remote = _infer_remote(GIT_REPOSITORY_REQUIRED)
    typer.echo(
        f'Triggering pipeline for: VCS="{remote.vcs_type.value}" '
        f'organization="{remote.organization}" project="{remote.project}"'
    )

    with _rest_client(ctx) as rest_client:
        pipeline = Pipelines(rest_client).trigger(remote, TriggerParameters(branch=branch or None))
    _print(pipeline_table([pipeline]))


@pipeline_app.command("list", help="List all pipelines for the current project.")
def list_pipelines(ctx: typer.Context) -> None:
    remote = _infer_remote(GIT_REPOSITORY_REQUIRED)

    with _rest_client(ctx) as rest_client:
        pipelines = Pipelines(rest_client).get(remote)
    _print(pipeline_table(pipelines))


pipeline_app.command("ls", help="Alias for list.", hidden=True)(list_pipelines)


@app.command("open", help="Open the current project in the browser.")
def open_project(ctx: typer.Context) -> None:
    remote = _infer_remote(OPEN_ERROR_MESSAGE)
    url = project_url(remote, _config(ctx).app_host)
    logger.info(f"Opening {url}")
    if not webbrowser.open(url):
        raise CciError(f"Could not open a browser for {url}", error_code="CCI_BROWSER_ERROR")


@context_app.command("list", help="List all contexts of an organization.")
def list_contexts(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
) -> None:
    with _rest_client(ctx) as rest_client:
        contexts = Contexts(rest_client).list_contexts(vcs_type, org_name)
    _print(context_table(contexts))


@context_app.command("show", help="Show the environment variables stored in a context.")
def show_context(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
) -> None:
    with _rest_client(ctx) as rest_client:
        contexts = Contexts(rest_client)
        context = contexts.get_by_name(vcs_type, org_name, context_name)
        variables = contexts.environment_variables(context.id)
    typer.echo(f"Context: {context.name}")
    _print(environment_variable_table(variables))


@context_app.command("create", help="Create a new context.")
def create_context(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
) -> None:
    with _rest_client(ctx) as rest_client:
        context = Contexts(rest_client).create(vcs_type, org_name, context_name)
    _print(context_table([context]))


@context_app.command("delete", help="Delete a context and all of its secrets.")
def delete_context(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    force: bool = typer.Option(False, "--force", "-f", help="Delete without confirmation"),
) -> None:
    with _rest_client(ctx) as rest_client:
        contexts = Contexts(rest_client)
        context = contexts.get_by_name(vcs_type, org_name, context_name)
        if not force:
            typer.confirm(f"Are you sure that you want to delete context '{context.name}'?", abort=True)
        contexts.delete(context.id)
    typer.echo(f"Deleted context {context.name}")


@context_app.command("store-secret", help="Store a new environment variable in a context.")
def store_secret(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    secret_name: str = typer.Argument(..., help="Environment variable name"),
    value: str = typer.Option(..., "--value", prompt="Enter secret value", hide_input=True),
) -> None:
    with _rest_client(ctx) as rest_client:
        contexts = Contexts(rest_client)
        context = contexts.get_by_name(vcs_type, org_name, context_name)
        contexts.create_environment_variable(context.id, secret_name, value)
    typer.echo(f"Stored {secret_name} in context {context.name}")


@context_app.command("remove-secret", help="Remove an environment variable from a context.")
def remove_secret(
    ctx: typer.Context,
    vcs_type: str = typer.Argument(..., help="github or bitbucket"),
    org_name: str = typer.Argument(..., help="Organization name"),
    context_name: str = typer.Argument(..., help="Context name"),
    secret_name: str = typer.Argument(..., help="Environment variable name"),
) -> None:
    with _rest_client(ctx) as rest_client:
        contexts = Contexts(rest_client)
        context = contexts.get_by_name(vcs_type, org_name, context_name)
        contexts.delete_environment_variable(context.id, secret_name)
    typer.echo(f"Removed {secret_name} from context {context.name}")


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        result = app(args=argv, prog_name="cci", standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.exceptions.Abort:
        _rich_error("aborted")
        return 1
    except click.ClickException as e:
        _rich_error(e.format_message())
        return int(e.exit_code)
    except ValueError as e:
        _rich_error(str(e))
        return 2
    except CciError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
