"""spie -- a command-line HTTP client with a compact request-item syntax.

Arguments are a METHOD (optional), a URL, and any number of request items
that become headers, query parameters, body fields, or file uploads::

    spie POST example.org/api name=spie count:=3 X-Trace:abc q==search

Modules:
    app: CLI entry point (console script).
    runner: Typer command and the programmatic :func:`~spie.runner.run`.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration loading and precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr discipline and response rendering with Rich.
    parser: Escaping, request-item tokenizing, and request parsing.
    client: Payload building, body encoding, transports, and redirects.
    auth: Authentication plugin registry.
"""

__version__ = "0.1.0"
