"""Tools answered by the client rather than executed on the server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from services.tools.base import ToolKind, ToolSpec

CONFIRMED = "Yes, confirmed."
DENIED = "No, denied"


class AskForConfirmationInput(BaseModel):
    """Arguments of askForConfirmation."""

    message: str = Field(min_length=1, description="The message to ask for confirmation")


class GetLocationInput(BaseModel):
    """getLocation takes no arguments."""


ASK_FOR_CONFIRMATION = ToolSpec(
    name="askForConfirmation",
    description="Ask the user for confirmation",
    input_model=AskForConfirmationInput,
    kind=ToolKind.MANUAL,
)

GET_LOCATION = ToolSpec(
    name="getLocation",
    description="Get the user location. Always ask for confirmation before using this tool",
    input_model=GetLocationInput,
    kind=ToolKind.MANUAL,
)
