"""Main entry point for the streamclient command line."""

import asyncio
import sys
from pathlib import Path
from typing import Any

import typer

from streamclient import form
from streamclient._version import __version__
from streamclient.client import HTTPClient
from streamclient.config.constants import FORM_URLENCODED
from streamclient.config.settings import Settings
from streamclient.core.errors import StreamClientError
from streamclient.core.logging import get_logger, setup_logging
from streamclient.options import RequestOptions
from streamclient.response import ClientResponse

from .helpers import build_options, get_rich_toolkit, parse_form_field
from .options import (
    compress_option,
    config_option,
    follow_option,
    header_option,
    include_option,
    json_logs_option,
    log_level_option,
    max_redirects_option,
    output_option,
    preserve_method_option,
    progress_option,
    scheme_option,
)
from .progress import transfer_progress


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"streamclient {__version__}", tag="version")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = config_option(),
) -> None:
    """streamclient - HTTP requests with streaming compression, progress and redirect control."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


def load_settings(
    ctx: typer.Context, log_level: str | None, json_logs: bool
) -> Settings:
    """Load settings for a command and configure logging from them."""
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    logging_overrides: dict[str, Any] = {}
    if log_level:
        logging_overrides["level"] = log_level
    if json_logs:
        logging_overrides["format"] = "json"

    overrides = {"logging": logging_overrides} if logging_overrides else {}
    settings = Settings.from_config(config_path, **overrides)
    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
    )
    return settings


def build_client(settings: Settings) -> HTTPClient:
    return HTTPClient(settings=settings)


async def _send(
    settings: Settings,
    method: str,
    url: str,
    payload: Any,
    options: RequestOptions,
    show_progress: bool,
) -> ClientResponse:
    with transfer_progress(show_progress) as bars:
        if bars is not None:
            options.on_upload(bars.callback("upload"))
            options.on_download(bars.callback("download"))
        async with build_client(settings) as client:
            return await client.custom(method, url, payload, options)


def _print_response(response: ClientResponse, include: bool) -> None:
    toolkit = get_rich_toolkit()
    if include:
        for hop in response.history:
            toolkit.print(f"{hop.status} -> {hop.location}", tag="redirect")
        toolkit.print(f"{response.http_version} {response.status}", tag="status")
        for name, value in response.headers.multi_items():
            toolkit.print(f"{name}: {value}", tag="header")

    if response.output_path is not None:
        toolkit.print(
            f"{response.content_length} bytes written to {response.output_path}",
            tag="saved",
        )
    elif response.body:
        typer.echo(response.text(), nl=False)


def run_request(
    ctx: typer.Context,
    method: str,
    url: str,
    *,
    data: str | None = None,
    file: Path | None = None,
    form_fields: list[str] | None = None,
    headers: list[str] | None = None,
    output: Path | None = None,
    compress: str | None = None,
    follow: bool | None = None,
    preserve_method: bool = False,
    max_redirects: int | None = None,
    scheme: str | None = None,
    show_progress: bool = False,
    include: bool = False,
    log_level: str | None = None,
    json_logs: bool = False,
) -> None:
    """Execute one request for a CLI command and render the result."""
    toolkit = get_rich_toolkit()

    if sum(value is not None and value != [] for value in (data, file, form_fields)) > 1:
        raise typer.BadParameter("use only one of --data, --file and --form")

    try:
        settings = load_settings(ctx, log_level, json_logs)
        options = build_options(
            headers=headers,
            compress=compress,
            follow=follow,
            preserve_method=preserve_method or None,
            max_redirects=max_redirects,
            scheme=scheme,
            output=str(output) if output else None,
        )

        payload: Any = data
        if file is not None:
            payload = options.prepare_file(file)
        elif form_fields:
            payload = form.encode(dict(parse_form_field(raw) for raw in form_fields))
            options.set_header("Content-Type", FORM_URLENCODED)

        response = asyncio.run(
            _send(settings, method.upper(), url, payload, options, show_progress)
        )
    except StreamClientError as e:
        logger.debug("cli_request_failed", error_type=e.error_type, error=e.message)
        toolkit.print(e.message, tag="error")
        raise typer.Exit(1) from e

    _print_response(response, include)


@app.command()
def request(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST"),
    url: str = typer.Argument(..., help="Target URL (https is assumed without a scheme)"),
    data: str | None = typer.Option(
        None, "--data", "-d", help="Request body text", rich_help_panel="Request"
    ),
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Upload this file as the request body",
        exists=True,
        dir_okay=False,
        readable=True,
        rich_help_panel="Request",
    ),
    form_fields: list[str] | None = typer.Option(
        None,
        "--form",
        "-F",
        help="URL-encoded form field 'key=value' (repeatable)",
        rich_help_panel="Request",
    ),
    header: list[str] | None = header_option(),
    output: Path | None = output_option(),
    compress: str | None = compress_option(),
    follow: bool | None = follow_option(),
    preserve_method: bool = preserve_method_option(),
    max_redirects: int | None = max_redirects_option(),
    scheme: str | None = scheme_option(),
    progress: bool = progress_option(),
    include: bool = include_option(),
    log_level: str | None = log_level_option(),
    json_logs: bool = json_logs_option(),
) -> None:
    """Send a request with any method."""
    run_request(
        ctx,
        method,
        url,
        data=data,
        file=file,
        form_fields=form_fields,
        headers=header,
        output=output,
        compress=compress,
        follow=follow,
        preserve_method=preserve_method,
        max_redirects=max_redirects,
        scheme=scheme,
        show_progress=progress,
        include=include,
        log_level=log_level,
        json_logs=json_logs,
    )


@app.command()
def get(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Target URL"),
    header: list[str] | None = header_option(),
    output: Path | None = output_option(),
    follow: bool | None = follow_option(),
    max_redirects: int | None = max_redirects_option(),
    scheme: str | None = scheme_option(),
    progress: bool = progress_option(),
    include: bool = include_option(),
    log_level: str | None = log_level_option(),
    json_logs: bool = json_logs_option(),
) -> None:
    """Send a GET request."""
    run_request(
        ctx,
        "GET",
        url,
        headers=header,
        output=output,
        follow=follow,
        max_redirects=max_redirects,
        scheme=scheme,
        show_progress=progress,
        include=include,
        log_level=log_level,
        json_logs=json_logs,
    )


@app.command()
def download(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Target URL"),
    path: Path = typer.Argument(..., dir_okay=False, help="Destination file"),
    header: list[str] | None = header_option(),
    follow: bool | None = follow_option(),
    max_redirects: int | None = max_redirects_option(),
    scheme: str | None = scheme_option(),
    progress: bool = typer.Option(
        True,
        "--progress/--no-progress",
        help="Show a download progress bar",
        rich_help_panel="Response",
    ),
    log_level: str | None = log_level_option(),
    json_logs: bool = json_logs_option(),
) -> None:
    """Download a URL into a file."""
    run_request(
        ctx,
        "GET",
        url,
        headers=header,
        output=path,
        follow=follow,
        max_redirects=max_redirects,
        scheme=scheme,
        show_progress=progress,
        log_level=log_level,
        json_logs=json_logs,
    )


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    sys.exit(app())
