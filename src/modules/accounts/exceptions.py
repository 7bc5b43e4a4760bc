"""Account lookup errors."""

from __future__ import annotations

from modules.core.exceptions import NotFound


class CallAgentNotFound(NotFound):
    default_message = "Call agent not found."
