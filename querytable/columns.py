"""
Column label heuristic for generated SQL.

Derives display labels from the projection list of a SELECT. This is a
text heuristic, not a SQL parser: commas inside function calls, comments
and string literals containing the scanned keywords all produce wrong or
misaligned labels. Callers render cells positionally and must tolerate a
label count that differs from the row width.
"""

import logging
import re
from typing import List

log = logging.getLogger(__name__)

FROM_RE = re.compile(r'\bfrom\b', re.IGNORECASE)
SELECT_RE = re.compile(r'^\s*select\b', re.IGNORECASE)
ALIAS_RE = re.compile(r' as ', re.IGNORECASE)


def label_for_expression(expression: str) -> str:
    """
    Pick the display label for one projected expression.

    Example:
        'b.name AS full_name' -> 'full_name'
        'p.product_id'        -> 'product_id'
        'COUNT(*)'            -> 'COUNT(*)'
    """
    expression = expression.strip()

    if ALIAS_RE.search(expression):
        return ALIAS_RE.split(expression)[-1].strip()

    if '.' in expression:
        return expression.split('.')[-1]

    return expression


def derive_column_labels(sql_text: str) -> List[str]:
    """
    Derive column labels from the SELECT clause of a query.

    Args:
        sql_text: SQL text that produced the result

    Returns:
        Ordered labels, or [] when the text has no FROM keyword or cannot
        be handled. Never raises.

    Example:
        derive_column_labels("SELECT a.id, b.name AS full_name FROM a JOIN b")
        -> ['id', 'full_name']
    """
    try:
        parts = FROM_RE.split(sql_text, maxsplit=1)
        if len(parts) < 2:
            return []

        projection = SELECT_RE.sub('', parts[0], count=1)
        return [label_for_expression(col) for col in projection.split(',')]
    except Exception as e:
        log.warning("Could not derive column labels: %s", e)
        return []
