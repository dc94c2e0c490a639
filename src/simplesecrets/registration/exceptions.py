"""Exceptions for spire-register."""

from pathlib import Path
from typing import override

from safir.slack.blockkit import (
    SlackCodeBlock,
    SlackException,
    SlackMessage,
    SlackTextField,
)
from safir.slack.sentry import SentryEventInfo

from .models import RegistrationResult

__all__ = ["InvalidEntriesError", "RegistrationFailedError"]


class InvalidEntriesError(SlackException):
    """The registration entries file could not be loaded.

    Parameters
    ----------
    path
        Path to the entries file.
    reason
        Why the file could not be loaded.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot load registration entries from {path!s}")
        self.path = path
        self.reason = reason

    @override
    def to_slack(self) -> SlackMessage:
        message = super().to_slack()
        field = SlackTextField(heading="Path", text=str(self.path))
        message.fields.append(field)
        message.blocks.append(
            SlackCodeBlock(heading="Reason", code=self.reason)
        )
        return message


class RegistrationFailedError(SlackException):
    """One or more registration commands exited with an error."""

    def __init__(self, failed: list[RegistrationResult]) -> None:
        super().__init__(f"{len(failed)} SPIRE registration(s) failed")
        self.failed = failed
        self.report = "\n".join(str(r) for r in failed)

    @override
    def to_slack(self) -> SlackMessage:
        """Format this exception as a slack message."""
        message = super().to_slack()
        attachment = SlackCodeBlock(
            heading="Failed commands", code=self.report
        )
        message.attachments.append(attachment)
        return message

    @override
    def to_sentry(self) -> SentryEventInfo:
        """Return Sentry metadata for this exception."""
        info = super().to_sentry()
        info.contexts["failed_registrations"] = {
            r.entry.spiffe_id: r.exit_code for r in self.failed
        }
        return info
