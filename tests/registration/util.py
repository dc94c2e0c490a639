"""Tools for testing."""

import stat
from pathlib import Path

__all__ = ["FakeCompose"]

_SCRIPT = """#!/bin/sh
log="{log}"
(IFS="$(printf '\\t')"; printf '%s\\n' "$*") >> "$log"
n=$(wc -l < "$log")
code=$(sed -n "$((n))p" "{codes}")
exit "${{code:-0}}"
"""


class FakeCompose:
    """Stand-in for the compose command that records its invocations.

    Parameters
    ----------
    directory
        Directory in which to create the script and its files.
    exit_codes
        Exit status of each successive invocation. Invocations beyond the
        end of the list exit with status 0.
    """

    def __init__(self, directory: Path, exit_codes: list[int]) -> None:
        self.path = directory / "fake-compose"
        self._log = directory / "calls.log"
        codes = directory / "exit-codes"
        codes.write_text("".join(f"{c}\n" for c in exit_codes))
        self.path.write_text(_SCRIPT.format(log=self._log, codes=codes))
        self.path.chmod(self.path.stat().st_mode | stat.S_IXUSR)

    @property
    def calls(self) -> list[list[str]]:
        """Arguments of each invocation, in order."""
        if not self._log.exists():
            return []
        lines = self._log.read_text().splitlines()
        return [line.split("\t") for line in lines]
