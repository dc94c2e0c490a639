"""Models for SPIRE registration entries and their outcomes."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Annotated
from urllib.parse import urlsplit

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "DEFAULT_ENTRIES",
    "RegistrationEntry",
    "RegistrationReport",
    "RegistrationResult",
]


def _validate_spiffe_id(v: str) -> str:
    """Pydantic validator that rejects malformed SPIFFE IDs."""
    parsed = urlsplit(v)
    if parsed.scheme != "spiffe":
        raise ValueError(f"SPIFFE ID {v} does not use the spiffe scheme")
    if not parsed.netloc:
        raise ValueError(f"SPIFFE ID {v} has no trust domain")
    if parsed.query or parsed.fragment:
        raise ValueError(f"SPIFFE ID {v} may not have a query or fragment")
    return v


def _validate_selector(v: str) -> str:
    """Pydantic validator for selectors of the form ``type:value``.

    The value may itself contain colons, as in ``unix:uid:0``.
    """
    selector_type, sep, value = v.partition(":")
    if not sep or not selector_type or not value:
        raise ValueError(f"Selector {v} is not of the form type:value")
    return v


SpiffeId = Annotated[str, AfterValidator(_validate_spiffe_id)]
"""URI naming a workload identity."""

Selector = Annotated[str, AfterValidator(_validate_selector)]
"""Attestation predicate used by SPIRE to match workloads."""


class RegistrationEntry(BaseModel):
    """A single SPIRE registration entry."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    parent_id: Annotated[
        SpiffeId,
        Field(
            title="Parent SPIFFE ID",
            examples=["spiffe://example.org/simple-secrets"],
        ),
    ]

    spiffe_id: Annotated[
        SpiffeId,
        Field(
            title="SPIFFE ID",
            description="Identity issued to matching workloads",
            examples=["spiffe://example.org/simple-secrets1"],
        ),
    ]

    selector: Annotated[
        Selector,
        Field(title="Workload selector", examples=["unix:uid:0"]),
    ]

    ttl: Annotated[
        int,
        Field(
            title="Credential TTL",
            description="Lifetime in seconds of issued credentials",
            gt=0,
            examples=[120],
        ),
    ]

    def to_arguments(self) -> list[str]:
        """Return the ``spire-server entry create`` flags for this entry."""
        return [
            "-parentID",
            self.parent_id,
            "-spiffeID",
            self.spiffe_id,
            "-selector",
            self.selector,
            "-ttl",
            str(self.ttl),
        ]

    def __str__(self) -> str:
        return f"{self.parent_id} -> {self.spiffe_id} ({self.selector})"


DEFAULT_ENTRIES = (
    RegistrationEntry(
        parent_id="spiffe://example.org/simple-secrets",
        spiffe_id="spiffe://example.org/simple-secrets1",
        selector="unix:uid:0",
        ttl=120,
    ),
    RegistrationEntry(
        parent_id="spiffe://example.org/prometheus",
        spiffe_id="spiffe://example.org/prometheus-proxy",
        selector="unix:uid:0",
        ttl=120,
    ),
    RegistrationEntry(
        parent_id="spiffe://example.org/fluentd",
        spiffe_id="spiffe://example.org/fluentd-proxy",
        selector="unix:uid:0",
        ttl=120,
    ),
)
"""Entries registered when nothing else is configured, in order."""


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    """Outcome of running the registration command for one entry."""

    entry: RegistrationEntry
    """Entry that was registered."""

    command: list[str]
    """Full argument list that was executed."""

    exit_code: int
    """Exit status of the command."""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        return f"{shlex.join(self.command)} exited with {self.exit_code}"


@dataclass(slots=True)
class RegistrationReport:
    """Results of a registration run, in execution order."""

    results: list[RegistrationResult] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        """Exit code of the last command that ran.

        Like a shell script, earlier failures do not affect this value.
        """
        if not self.results:
            return 0
        return self.results[-1].exit_code

    @property
    def failed(self) -> list[RegistrationResult]:
        return [r for r in self.results if not r.succeeded]

    def __str__(self) -> str:
        if not self.results:
            return "No registration commands were run"
        lines = [str(r) for r in self.results]
        return "\n".join(lines)
