"""
Decoding of backend result payloads into result sets.

The approval response carries the executed rows twice: `result_data`, a
JSON array when the backend manages to serialize it, and `result`, the
str() of the rows. Decoding prefers the structured form and falls back
to parsing the repr. Decoding never raises; failures yield [].
"""

import json
import logging
from typing import Any, List

from ..utils.exceptions import ResultSyntaxError
from .parser import ResultReprParser

log = logging.getLogger(__name__)

_parser = None


def get_parser() -> ResultReprParser:
    """Return the shared parser, building the grammar on first use."""
    global _parser
    if _parser is None:
        _parser = ResultReprParser()
    return _parser


def _as_rows(value: Any) -> List[Any]:
    return [list(row) if isinstance(row, tuple) else row for row in value]


def parse_result_data(raw: Any) -> List[Any]:
    """
    Turn a raw result payload into a list of rows.

    Args:
        raw: A list, a JSON array string, a repr string, or a scalar string

    Returns:
        Rows ready for sanitize(); [] on any failure

    Example:
        parse_result_data("[(1, Decimal('9.99'))]") -> [[1, '9.99']]
        parse_result_data("42 rows updated") -> [['42 rows updated']]
    """
    if raw is None:
        return []

    if isinstance(raw, (list, tuple)):
        return _as_rows(raw)

    if not isinstance(raw, str):
        log.warning("Unsupported result payload type: %s", type(raw).__name__)
        return []

    if not raw.strip().startswith('['):
        return [[raw]]

    try:
        return _as_rows(json.loads(raw))
    except ValueError:
        log.debug("Result is not JSON, parsing as repr")

    try:
        return get_parser().parse_rows(raw)
    except ResultSyntaxError as e:
        log.error("Error parsing result data: %s", e)
        return []


def decode_approval_payload(result: Any, result_data: Any = None) -> List[Any]:
    """
    Pick rows from an approval response.

    Args:
        result: Raw `result` field (usually the rows' repr)
        result_data: Structured `result_data` field (JSON text or list)

    Returns:
        Rows from result_data when it decodes to a list, otherwise
        rows parsed from result
    """
    if result_data:
        if isinstance(result_data, list):
            return _as_rows(result_data)
        try:
            parsed = json.loads(result_data)
            if isinstance(parsed, list):
                return _as_rows(parsed)
            log.warning("result_data is not a list, falling back to result")
        except (TypeError, ValueError) as e:
            log.error("Error parsing result_data: %s", e)

    return parse_result_data(result)
