"""Reusable CLI option definitions."""

from typing import Any

import typer


def config_option() -> Any:
    """Configuration file parameter."""
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        rich_help_panel="Configuration",
    )


def log_level_option() -> Any:
    return typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        rich_help_panel="Configuration",
    )


def json_logs_option() -> Any:
    return typer.Option(
        False,
        "--json-logs",
        help="Render logs as JSON lines",
        rich_help_panel="Configuration",
    )


def header_option() -> Any:
    return typer.Option(
        None,
        "--header",
        "-H",
        help="Request header 'Name: value' (repeatable)",
        rich_help_panel="Request",
    )


def output_option() -> Any:
    return typer.Option(
        None,
        "--output",
        "-o",
        help="Write the response body to this file instead of stdout",
        dir_okay=False,
        rich_help_panel="Response",
    )


def compress_option() -> Any:
    return typer.Option(
        None,
        "--compress",
        help="Compress the request body: gzip, deflate or br",
        rich_help_panel="Request",
    )


def follow_option() -> Any:
    return typer.Option(
        None,
        "--follow/--no-follow",
        help="Follow redirects (default from configuration)",
        show_default=False,
        rich_help_panel="Redirects",
    )


def preserve_method_option() -> Any:
    return typer.Option(
        False,
        "--preserve-method",
        help="Re-send method and body on redirects instead of switching to GET",
        rich_help_panel="Redirects",
    )


def max_redirects_option() -> Any:
    return typer.Option(
        None,
        "--max-redirects",
        min=0,
        help="Maximum requests in one redirect chain",
        rich_help_panel="Redirects",
    )


def scheme_option() -> Any:
    return typer.Option(
        None,
        "--scheme",
        help="Force a URL scheme, e.g. http",
        rich_help_panel="Request",
    )


def progress_option() -> Any:
    return typer.Option(
        False,
        "--progress/--no-progress",
        help="Show upload and download progress bars",
        rich_help_panel="Response",
    )


def include_option() -> Any:
    return typer.Option(
        False,
        "--include",
        "-i",
        help="Print status line and response headers",
        rich_help_panel="Response",
    )
