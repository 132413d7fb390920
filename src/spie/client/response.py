"""Response reporting bridge -- maps a redirect chain to the output system.

After the redirect executor returns, :func:`report_responses` renders
every response to stdout through
:meth:`~spie.output.OutputManager.print_responses` and, under
``--check-status``, turns an unsuccessful final status into the matching
:class:`~spie.exceptions.HTTPStatusError`.

See Also:
    :mod:`spie.output` -- the output manager that renders responses.
"""

from __future__ import annotations

from typing import Sequence

from spie.exceptions import HTTPStatusError
from spie.models import ResponsePayload
from spie.output import get_output


def report_responses(
    responses: Sequence[ResponsePayload], check_status: bool = False
) -> None:
    """Print *responses* and check the final status.

    Args:
        responses: Every response of the chain, in order.
        check_status: Raise for a final 3xx, 4xx, or 5xx status.

    Raises:
        HTTPStatusError: With *check_status*, when the final response is not
            successful.
    """
    output = get_output()
    output.print_responses(responses)
    if check_status and responses:
        raise_for_status(responses[-1])


def raise_for_status(response: ResponsePayload) -> None:
    """Raise the :class:`HTTPStatusError` matching *response*'s status, if any."""
    exc = HTTPStatusError.for_status(response.status, response.reason_phrase)
    if exc is not None:
        raise exc
