"""CLI helper utilities."""

from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle

from streamclient.compression import CompressionType
from streamclient.core.errors import ConfigurationError
from streamclient.options import RequestOptions


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            "tag.title": "white on #2a6f97",
            "tag": "white on #1f5673",
            "placeholder": "grey85",
            "text": "white",
            "selected": "#1f5673",
            "result": "grey85",
            "progress": "on #1f5673",
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            "version": "cyan",
            "status": "bright_cyan",
            "header": "dim white",
            "saved": "green",
            "redirect": "magenta",
        },
    )

    return RichToolkit(theme=theme)


def bold(text: str) -> str:
    return f"[bold]{text}[/bold]"


def dim(text: str) -> str:
    return f"[dim]{text}[/dim]"


def code(text: str) -> str:
    return f"[cyan]{text}[/cyan]"


def parse_header(raw: str) -> tuple[str, str]:
    """Parse ``"Name: value"``."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise ConfigurationError(f"invalid header {raw!r}, expected 'Name: value'")
    return name.strip(), value.strip()


def parse_form_field(raw: str) -> tuple[str, str]:
    """Parse ``"key=value"``."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise ConfigurationError(f"invalid form field {raw!r}, expected 'key=value'")
    return key, value


def build_options(
    *,
    headers: list[str] | None = None,
    compress: str | None = None,
    follow: bool | None = None,
    preserve_method: bool | None = None,
    max_redirects: int | None = None,
    scheme: str | None = None,
    output: str | None = None,
) -> RequestOptions:
    """Translate command line flags into per-call request options.

    Only flags that were given end up in the options' explicitly set fields,
    so unset flags keep the configured defaults.
    """
    options = RequestOptions()
    for raw in headers or []:
        name, value = parse_header(raw)
        options.add_header(name, value)
    if compress:
        try:
            compression = CompressionType(compress.lower())
        except ValueError as e:
            raise ConfigurationError(
                f"unsupported compression type: {compress}",
                error_type="unsupported_compression",
            ) from e
        if compression is CompressionType.CUSTOM:
            raise ConfigurationError(
                "custom compression is not available from the command line"
            )
        options.set_compression(compression)
    if follow is not None:
        options.follow_redirects = follow
    if preserve_method is not None:
        options.preserve_method_on_redirect = preserve_method
    if max_redirects is not None:
        options.set_max_redirects(max_redirects)
    if scheme:
        options.set_protocol_scheme(scheme)
    if output:
        options.set_file_output(output)
    return options
