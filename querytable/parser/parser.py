"""
Parser for Python literal reprs of query results, using Lark.

Some backends send rows as the str() of a list of tuples instead of JSON,
leaking datetime.datetime(...) and Decimal('...') reprs. This parser turns
that text back into plain rows: timestamps become ISO-8601 strings and
decimals become numeral strings, which the formatter then renders.
"""

import ast
from datetime import date, datetime
from pathlib import Path
from typing import Any, List

from lark import Lark, Transformer
from lark.exceptions import LarkError

from ..utils.exceptions import ResultSyntaxError


class ReprTransformer(Transformer):
    """
    Transforms the Lark parse tree into plain Python values.

    Each method corresponds to a rule in the grammar.
    """

    def start(self, args):
        return args[0]

    # ----- Containers -----

    def list_repr(self, args):
        return list(args)

    def tuple_repr(self, args):
        # Tuples are rows; rows are lists downstream
        return list(args)

    # ----- Literals -----

    def lit_none(self, args):
        return None

    def lit_true(self, args):
        return True

    def lit_false(self, args):
        return False

    def lit_number(self, args):
        text = str(args[0])
        if any(c in text for c in '.eE'):
            return float(text)
        return int(text)

    def lit_string(self, args):
        return ast.literal_eval(str(args[0]))

    # ----- Leaked reprs -----

    def int_args(self, args):
        return [int(arg) for arg in args]

    def decimal_repr(self, args):
        return ast.literal_eval(str(args[0]))

    def datetime_repr(self, args):
        parts = args[0]
        if len(parts) < 5:
            raise ValueError(f"datetime needs at least 5 components, got {len(parts)}")
        return datetime(*parts).isoformat()

    def date_repr(self, args):
        return date(*args[0]).isoformat()


class ResultReprParser:
    """
    Result repr parser facade.

    Provides a simple interface for parsing repr strings into rows.
    """

    def __init__(self):
        """Initialize parser with grammar."""
        grammar_path = Path(__file__).parent / "grammar.lark"
        with open(grammar_path, 'r') as f:
            grammar = f.read()

        self._parser = Lark(
            grammar,
            start='start',
            parser='lalr'
        )
        self._transformer = ReprTransformer()

    def parse(self, text: str) -> Any:
        """
        Parse a repr string into Python values.

        Args:
            text: Result text, e.g. "[(1, Decimal('2.50'))]"

        Returns:
            Nested lists of None, bool, int, float and str

        Raises:
            ResultSyntaxError: If the text is not a supported repr
        """
        try:
            tree = self._parser.parse(text.strip())
            return self._transformer.transform(tree)
        except LarkError as e:
            raise ResultSyntaxError(str(e), text)

    def parse_rows(self, text: str) -> List[Any]:
        """
        Parse a repr string that must hold a list of rows.

        Raises:
            ResultSyntaxError: If the text does not parse to a list
        """
        value = self.parse(text)
        if not isinstance(value, list):
            raise ResultSyntaxError("expected a list of rows", text)
        return value
