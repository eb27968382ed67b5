"""
Cycle-local error taxonomy for the reader daemon.

Every expected failure of a collection cycle derives from :class:`CycleError`
and carries the pipeline stage it came from. The collector catches exactly
this family at the tick boundary; anything else escaping a tick is a defect.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from enum import StrEnum


class Stage(StrEnum):
    """Pipeline stage that produced a :class:`CycleError`."""

    FETCH = "fetch"
    EXTRACT = "extract"
    WRITE = "write"


class CycleError(Exception):
    """Base class for non-fatal, cycle-local failures."""

    stage: Stage


class FetchError(CycleError):
    """The gateway could not be reached or the transfer failed."""

    stage = Stage.FETCH


class ExtractErrorKind(StrEnum):
    """Which extraction rule rejected the gateway document."""

    MALFORMED_DOCUMENT = "malformed_document"
    MISSING_FIELD = "missing_field"
    INVALID_NUMBER = "invalid_number"


class ExtractError(CycleError):
    """The gateway document could not be turned into a Reading.

    Args:
        kind: Which extraction rule failed.
        message: Human readable description.
        field_name: Reading field being extracted, when applicable.
        raw_text: Offending node text for ``INVALID_NUMBER``.
    """

    stage = Stage.EXTRACT

    def __init__(
        self,
        kind: ExtractErrorKind,
        message: str,
        *,
        field_name: str | None = None,
        raw_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.field_name = field_name
        self.raw_text = raw_text


class WriteError(CycleError):
    """The time-series store rejected the point or could not be reached.

    Args:
        message: Human readable description.
        status_code: HTTP status returned by the store, or ``None`` for
            transport failures.
    """

    stage = Stage.WRITE

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
