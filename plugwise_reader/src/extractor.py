"""
Extractor that turns the gateway's ``/core/modules`` XML into a Reading.

Parses the body with lxml, then looks up one ``measurement`` element per
Reading field by meter element name and ``directionality`` attribute using
lxml's ElementPath ``find``. Each node's text is parsed as a base-10 float.

Extraction is all-or-nothing: the fields are evaluated in a fixed order and
the first failure raises :class:`ExtractError`. A Reading is only returned
when all three fields parsed.

Example fragment of the gateway document::

    <modules>
      <module id="...">
        <services>
          <electricity_point_meter id="...">
            <measurement directionality="consumed" unit="W">1234.5</measurement>
            <measurement directionality="produced" unit="W">0.0</measurement>
          </electricity_point_meter>
          <gas_cumulative_meter id="...">
            <measurement directionality="consumed" unit="m3">567.8</measurement>
          </gas_cumulative_meter>
        </services>
      </module>
    </modules>

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from lxml import etree
from plugwise_reader.src.errors import ExtractError, ExtractErrorKind
from plugwise_reader.src.models import Reading

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Field queries, in evaluation order.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldQuery:
    """Locates one Reading field in the gateway document.

    Attributes:
        field_name: Reading attribute the value is stored in.
        meter: Element name of the meter holding the measurement.
        directionality: Required value of the ``directionality`` attribute.
    """

    field_name: str
    meter: str
    directionality: str

    @property
    def path(self) -> str:
        """ElementPath expression matching the measurement anywhere below root."""
        return (
            f".//{self.meter}/measurement"
            f"[@directionality='{self.directionality}']"
        )


FIELD_QUERIES: tuple[FieldQuery, ...] = (
    FieldQuery("electricity_consumed", "electricity_point_meter", "consumed"),
    FieldQuery("electricity_produced", "electricity_point_meter", "produced"),
    FieldQuery("gas_consumed_cumulative", "gas_cumulative_meter", "consumed"),
)

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
"""Plain base-10 decimal, optionally with exponent. No NaN/inf/hex/underscores."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_document(body: bytes) -> etree._Element:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(body, parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise ExtractError(
            ExtractErrorKind.MALFORMED_DOCUMENT,
            f"Gateway document is not well-formed XML: {exc}",
        ) from exc
    return root


def _parse_decimal(query: FieldQuery, raw_text: str) -> float:
    text = raw_text.strip()
    if _DECIMAL_RE.fullmatch(text) is None:
        raise ExtractError(
            ExtractErrorKind.INVALID_NUMBER,
            f"Field '{query.field_name}': {raw_text!r} is not a decimal number",
            field_name=query.field_name,
            raw_text=raw_text,
        )
    value = float(text)
    if not math.isfinite(value):
        raise ExtractError(
            ExtractErrorKind.INVALID_NUMBER,
            f"Field '{query.field_name}': {raw_text!r} is out of float range",
            field_name=query.field_name,
            raw_text=raw_text,
        )
    return value


def _extract_field(root: etree._Element, query: FieldQuery) -> float:
    node = root.find(query.path)
    if node is None:
        raise ExtractError(
            ExtractErrorKind.MISSING_FIELD,
            f"Field '{query.field_name}': no node matches {query.path}",
            field_name=query.field_name,
        )
    return _parse_decimal(query, "".join(node.itertext()))


def _now_ms() -> datetime:
    now = datetime.now(tz=UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract(body: bytes, *, ts: datetime | None = None) -> Reading:
    """Parse the gateway document and build a fully populated Reading.

    Args:
        body: Raw ``/core/modules`` response body.
        ts: Timestamp to embed. Defaults to the current UTC time, truncated
            to millisecond resolution.

    Returns:
        A :class:`Reading` with all three fields set.

    Raises:
        ExtractError: ``MALFORMED_DOCUMENT`` if the body is not well-formed
            XML, ``MISSING_FIELD`` if a measurement node is absent, or
            ``INVALID_NUMBER`` if a node's text is not a finite decimal.
    """
    root = _parse_document(body)

    fields: dict[str, float] = {}
    for query in FIELD_QUERIES:
        fields[query.field_name] = _extract_field(root, query)

    reading = Reading(timestamp=ts if ts is not None else _now_ms(), **fields)
    for name, value in fields.items():
        logger.info("%s: %s", name, value)
    return reading


class ReadingExtractor:
    """Object wrapper around :func:`extract` for injection into the collector.

    Args:
        clock: Optional callable returning the timestamp to embed; defaults
            to the current UTC time at millisecond resolution.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock if clock is not None else _now_ms

    def extract(self, body: bytes) -> Reading:
        """Extract a Reading stamped with the clock's current time."""
        return extract(body, ts=self._clock())
