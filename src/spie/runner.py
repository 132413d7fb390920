"""Typer command and the programmatic entry point :func:`run`.

The command is a single Typer command whose option parsing stops at the
first positional argument, so everything after ``[METHOD] URL`` is a
request item even when it starts with ``-``.

:func:`run` executes the whole flow with an injectable
:class:`CLIContext` (output streams, input source, transport) and returns
the exit code instead of exiting, which is what the tests and
:func:`spie.app.main` use.

Flow::

    options -> resolve_config -> parse_request -> materialize_stdin
        -> build_payload -> auth -> RedirectExecutor -> report_responses
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, TextIO

import typer

try:
    # Typer releases that bundle their own copy of click raise its exception types.
    from typer._click import exceptions as click_exceptions
except ImportError:
    from click import exceptions as click_exceptions

from spie import __version__
from spie.auth import PasswordPrompt, create_default_manager
from spie.auth.manager import AuthManager
from spie.client.builder import build_payload
from spie.client.encoding import should_apply_default_header
from spie.client.redirects import RedirectExecutor
from spie.client.response import report_responses
from spie.client.transport import Transport, TransportRegistry, standard_registry
from spie.config import resolve_config
from spie.exceptions import (
    AuthError,
    HTTPStatusError,
    InvalidUsageError,
    SpieError,
    TooManyRedirectsError,
)
from spie.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from spie.input_source import InputSource, StandardInput
from spie.models import (
    BodyMode,
    HTTPVersionPreference,
    RawBody,
    RequestPayload,
    TLSVerification,
    TransportOptions,
)
from spie.output import OutputManager, PrettyMode, set_output
from spie.parser.request import ParserOptions, parse_request
from spie.stdin import materialize_stdin

JSON_ACCEPT = "application/json, */*;q=0.5"

VERIFY_VALUES = {
    "yes": TLSVerification.ENFORCED,
    "true": TLSVerification.ENFORCED,
    "1": TLSVerification.ENFORCED,
    "no": TLSVerification.DISABLED,
    "false": TLSVerification.DISABLED,
    "0": TLSVerification.DISABLED,
}


class CLIContext:
    """Collaborators for one run.

    Args:
        stdout: Stream for response output (defaults to ``sys.stdout``).
        stderr: Stream for diagnostics (defaults to ``sys.stderr``).
        input_source: Source of stdin data and passwords.
        transport: A transport instance to use instead of ``--transport``.
        registry: Transports selectable with ``--transport``.
        auth_manager: Auth plugins selectable with ``--auth-type``.
    """

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        input_source: Optional[InputSource] = None,
        transport: Optional[Transport] = None,
        registry: Optional[TransportRegistry] = None,
        auth_manager: Optional[AuthManager] = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.input_source = input_source or StandardInput()
        self.transport = transport
        self.registry = registry or standard_registry()
        self.auth_manager = auth_manager or create_default_manager()

    def output(
        self, pretty: Optional[PrettyMode] = None, quiet: int = 0, verbose: bool = False
    ) -> OutputManager:
        """Create an :class:`OutputManager` bound to this context's streams."""
        return OutputManager(
            pretty=pretty, quiet=quiet, verbose=verbose, stdout=self.stdout, stderr=self.stderr
        )


app = typer.Typer(
    name="spie",
    help="A command-line HTTP client with a compact request-item syntax.",
    add_completion=False,
    rich_markup_mode=None,
)


def _context(ctx: typer.Context) -> CLIContext:
    if not isinstance(ctx.obj, CLIContext):
        ctx.obj = CLIContext()
    return ctx.obj


def _help_callback(ctx: typer.Context, value: bool) -> None:
    """Print help to the context's stdout and exit."""
    if value:
        _context(ctx).output().out(ctx.get_help() + "\n")
        raise typer.Exit()


def _version_callback(ctx: typer.Context, value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        _context(ctx).output().out(f"spie {__version__}\n")
        raise typer.Exit()


@app.command(
    add_help_option=False,
    context_settings={"allow_interspersed_args": False},
)
def request_command(
    ctx: typer.Context,
    request: Optional[list[str]] = typer.Argument(
        None, metavar="[METHOD] URL [ITEM]...", show_default=False
    ),
    help_: bool = typer.Option(
        False, "-h", "--help", callback=_help_callback, is_eager=True,
        help="Show this message and exit.",
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show version and exit.",
    ),
    auth: Optional[str] = typer.Option(
        None, "-a", "--auth", metavar="CRED",
        help="Credentials (user[:pass] or token). Prompts when the password is missing.",
    ),
    auth_type: Optional[str] = typer.Option(
        None, "-A", "--auth-type", metavar="TYPE", help="Auth scheme: basic or bearer.",
    ),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", metavar="SEC", help="Request timeout in seconds.",
    ),
    verify: Optional[str] = typer.Option(
        None, "--verify", metavar="BOOL", help="TLS verification (yes/no).",
    ),
    http1: bool = typer.Option(False, "--http1", help="Force HTTP/1.1."),
    ignore_stdin: bool = typer.Option(
        False, "-I", "--ignore-stdin", help="Never read stdin or prompt for passwords.",
    ),
    ssl: bool = typer.Option(False, "--ssl", help="Use https:// as the default scheme."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", metavar="URL", help="Base URL for '/path' arguments.",
    ),
    json_mode: bool = typer.Option(False, "-j", "--json", help="Send data items as JSON (default)."),
    form: bool = typer.Option(
        False, "-f", "--form", help="Send data items as a form (multipart with files).",
    ),
    raw: Optional[str] = typer.Option(
        None, "--raw", metavar="BODY", help="Raw request body: text, @path, or @- for stdin.",
    ),
    follow: Optional[bool] = typer.Option(
        None, "-F", "--follow", help="Follow redirects.", show_default=False,
    ),
    max_redirects: Optional[int] = typer.Option(
        None, "--max-redirects", min=0, help="Maximum redirects to follow (default 30).",
    ),
    check_status: bool = typer.Option(
        False, "--check-status", help="Exit with 3/4/5 for a 3xx/4xx/5xx final response.",
    ),
    quiet: int = typer.Option(
        0, "-q", "--quiet", count=True, help="-q hides the response, -qq also hides errors.",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Print debug lines to stderr."),
    pretty: Optional[PrettyMode] = typer.Option(
        None, "--pretty", case_sensitive=False, help="Response formatting.",
    ),
    transport: Optional[str] = typer.Option(
        None, "--transport", metavar="ID", help="Transport to use (default httpx).",
    ),
) -> None:
    """Send an HTTP request described by METHOD, URL, and request items.

    Items: Name:Value header, Name: remove header, Name; empty header,
    name==value query, name=value data, name:=json JSON data, name@path file
    upload. Header and data values accept @path and @- (stdin).
    """
    context = _context(ctx)

    config = resolve_config(
        {
            "default_scheme": "https" if ssl else None,
            "base_url": base_url,
            "follow": follow,
            "max_redirects": max_redirects,
            "transport": transport,
        }
    )
    if pretty is None and config.pretty is not None:
        pretty = PrettyMode(config.pretty)

    output = context.output(pretty=pretty, quiet=quiet, verbose=verbose)
    set_output(output)

    if not request:
        output.out(ctx.get_help() + "\n")
        return

    try:
        _execute(
            context,
            output,
            arguments=request,
            auth=auth,
            auth_type=auth_type,
            timeout=_parse_timeout(timeout, config.timeout),
            verify=_parse_verify(verify, config.verify_ssl),
            http1=http1,
            ignore_stdin=ignore_stdin,
            parser_options=ParserOptions(
                default_scheme=config.default_scheme, base_url=config.base_url
            ),
            body_mode=_body_mode(json_mode, form, raw),
            raw=raw,
            follow=config.follow,
            max_redirects=config.max_redirects,
            check_status=check_status,
            transport_id=config.transport,
        )
    except TooManyRedirectsError as exc:
        output.print_responses(exc.responses)
        output.error(str(exc))
        raise typer.Exit(exc.exit_code)
    except HTTPStatusError as exc:
        output.warning(str(exc))
        raise typer.Exit(exc.exit_code)
    except SpieError as exc:
        output.error(str(exc))
        raise typer.Exit(exc.exit_code)


def _execute(
    context: CLIContext,
    output: OutputManager,
    arguments: list[str],
    auth: Optional[str],
    auth_type: Optional[str],
    timeout: Optional[float],
    verify: TLSVerification,
    http1: bool,
    ignore_stdin: bool,
    parser_options: ParserOptions,
    body_mode: BodyMode,
    raw: Optional[str],
    follow: bool,
    max_redirects: int,
    check_status: bool,
    transport_id: str,
) -> None:
    if auth_type is not None and auth is None:
        raise AuthError("--auth-type requires --auth")

    parsed = parse_request(arguments, parser_options)
    raw_body = RawBody.from_argument(raw) if raw is not None else None
    parsed, raw_body = materialize_stdin(
        parsed, raw_body, context.input_source, ignore_stdin=ignore_stdin
    )
    payload = build_payload(parsed, body_mode, raw_body)

    if body_mode is BodyMode.JSON and raw is None:
        payload = _apply_json_accept(payload)

    if auth is not None:
        prompt = PasswordPrompt(context.input_source, output, enabled=not ignore_stdin)
        result = context.auth_manager.authenticate(auth_type or "basic", auth, prompt)
        payload = result.apply(payload)

    options = TransportOptions(
        timeout=timeout,
        verify=verify,
        http_version=(
            HTTPVersionPreference.HTTP1_ONLY if http1 else HTTPVersionPreference.AUTOMATIC
        ),
    )

    selected = context.transport or context.registry.create(transport_id)
    with selected:
        executor = RedirectExecutor(selected, follow=follow, max_redirects=max_redirects)
        responses = executor.execute(payload, options)

    report_responses(responses, check_status=check_status)


def _apply_json_accept(payload: RequestPayload) -> RequestPayload:
    """Add ``Accept: application/json, */*;q=0.5`` unless the user set or removed Accept."""
    if not should_apply_default_header("Accept", payload):
        return payload
    headers = payload.request.headers + [("Accept", JSON_ACCEPT)]
    request = payload.request.model_copy(update={"headers": headers})
    return payload.model_copy(update={"request": request})


def _body_mode(json_mode: bool, form: bool, raw: Optional[str]) -> BodyMode:
    if json_mode and form:
        raise InvalidUsageError("--json and --form cannot be used together")
    if raw is not None:
        if form:
            raise InvalidUsageError("--raw cannot be used with --form")
        return BodyMode.RAW
    return BodyMode.FORM if form else BodyMode.JSON


def _parse_timeout(value: Optional[str], default: Optional[float]) -> Optional[float]:
    if value is None:
        return default
    try:
        seconds = float(value)
    except ValueError:
        seconds = math.nan
    if not math.isfinite(seconds) or seconds <= 0:
        raise InvalidUsageError(f"invalid timeout value '{value}'")
    return seconds


def _parse_verify(value: Optional[str], default: bool) -> TLSVerification:
    if value is None:
        return TLSVerification.ENFORCED if default else TLSVerification.DISABLED
    verification = VERIFY_VALUES.get(value.lower())
    if verification is None:
        raise InvalidUsageError(f"invalid verify value '{value}'")
    return verification


def run(arguments: Sequence[str], context: Optional[CLIContext] = None) -> int:
    """Run spie with *arguments* (without the program name) and return the exit code.

    Option errors are reported as ``Error: ...`` on the context's stderr
    with :data:`~spie.exit_codes.EXIT_INVALID_USAGE`. Exceptions that are
    not :class:`~spie.exceptions.SpieError` propagate to the caller.

    Example::

        code = run(["--check-status", "example.org/missing"])
    """
    context = context or CLIContext()
    command = typer.main.get_command(app)
    try:
        result = command.main(
            args=list(arguments),
            prog_name="spie",
            standalone_mode=False,
            obj=context,
        )
    except click_exceptions.NoSuchOption as exc:
        context.output().error(f"unknown option '{exc.option_name}'")
        return EXIT_INVALID_USAGE
    except click_exceptions.ClickException as exc:
        context.output().error(exc.format_message())
        return EXIT_INVALID_USAGE
    except SpieError as exc:
        context.output().error(str(exc))
        return exc.exit_code
    return result if isinstance(result, int) else EXIT_SUCCESS
