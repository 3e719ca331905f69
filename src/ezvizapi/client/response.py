"""Response formatting bridge -- maps response models to the output system.

After the CLI dispatches a call, :func:`format_api_response` renders a
decoded :class:`~ezvizapi.models.APIResponse` through
:meth:`~ezvizapi.output.OutputManager.format_response`, and a streamed
:class:`~ezvizapi.models.StreamResponse` as a one-line summary on stderr.

See Also:
    :mod:`ezvizapi.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

from ezvizapi.models import APIResponse, StreamResponse
from ezvizapi.output import get_output


def format_api_response(response: APIResponse) -> None:
    """Print *response* using the global output system.

    Args:
        response: The decoded or streamed response to display.
    """
    output = get_output()
    if isinstance(response, StreamResponse) and response.content_type:
        output.info(f"Received {response.size} bytes ({response.content_type})")
        return
    output.format_response(extract_response_data(response))


def extract_response_data(response: APIResponse) -> Any:
    """Return the wire-shaped dict of *response*, including any extra fields."""
    return response.model_dump(mode="json", by_alias=True, exclude={"content_type", "size"})
