"""
REPL (Read-Eval-Print Loop) for the SQL QA backend.

Ask a question in plain language, review the generated SQL, approve it,
and see the rows as a formatted table.
"""

import json
import logging
import sys
from typing import Callable, Optional

from .client import SQLQAClient
from .config import Settings, configure_logging, load_settings
from .formatter import FormattedTable, ResultFormatter, format_result_table
from .parser.decoder import parse_result_data
from .utils.exceptions import QueryTableError

log = logging.getLogger(__name__)


class Session:
    """State carried between prompts: the last query and its table."""

    def __init__(self, client: SQLQAClient, formatter: ResultFormatter):
        self.client = client
        self.formatter = formatter
        self.last_query = ""
        self.last_table: Optional[FormattedTable] = None


def read_line_raw(prompt):
    """Read a line using raw stdin to avoid readline interference."""
    sys.stdout.write(prompt)
    sys.stdout.flush()
    line = sys.stdin.readline()
    if not line:  # EOF
        raise EOFError()
    return line.rstrip('\n\r')


def print_banner(settings: Settings):
    """Print welcome banner."""
    print("=" * 60)
    print("  querytable - SQL Question Answering Shell")
    print("=" * 60)
    print(f"Backend: {settings.api_url}")
    print("Type a question about your data, or a special command:")
    print("  .help     - Show help")
    print("  .sql      - Show the last generated query")
    print("  .columns  - Show column labels of the last result")
    print("  .exit or .quit - Exit REPL")
    print("=" * 60)
    print()


def print_help():
    """Print help message."""
    print("\n--- Help ---")
    print("Questions:")
    print("  What are the top 10 products?")
    print("  How many customers are from California?")
    print("  Generated SQL is shown first and only runs after you approve it.")
    print("\nSpecial Commands:")
    print("  .help          - Show this help")
    print("  .sql           - Show the last generated query")
    print("  .columns       - Show column labels of the last result")
    print("  .load FILE     - Format a saved {\"query\", \"result\"} JSON file")
    print("  .exit / .quit  - Exit REPL")
    print()


def show_table(session: Session, query: str, raw_result) -> FormattedTable:
    """Format a raw result for a query, print it and remember it."""
    rows = parse_result_data(raw_result)
    table = session.formatter.build_table(query, rows)
    session.last_query = query
    session.last_table = table
    print(format_result_table(table))
    return table


def load_saved_result(session: Session, path: str):
    """Display a result saved as JSON with 'query' and 'result' keys."""
    try:
        with open(path, 'r') as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Error: could not load {path}: {e}\n")
        return

    if not isinstance(payload, dict):
        print("Error: expected a JSON object with 'query' and 'result'\n")
        return

    show_table(session, payload.get("query", ""), payload.get("result"))
    print()


def handle_special_command(command: str, session: Session) -> bool:
    """
    Handle special REPL commands (starting with .).

    Args:
        command: Command string
        session: Current session

    Returns:
        True if should continue REPL, False to exit
    """
    command = command.strip()
    name = command.split()[0].lower() if command else ""

    if name in ['.exit', '.quit']:
        print("Goodbye!")
        return False

    elif name == '.help':
        print_help()

    elif name == '.sql':
        if session.last_query:
            print(f"\n{session.last_query}\n")
        else:
            print("\nNo query yet.\n")

    elif name == '.columns':
        if session.last_table is None:
            print("\nNo result yet.\n")
        elif session.last_table.columns:
            print("\nColumns:")
            for label in session.last_table.columns:
                print(f"  - {label}")
            print()
        else:
            print("\nNo column labels could be derived from the query.\n")

    elif name == '.load':
        parts = command.split(maxsplit=1)
        if len(parts) < 2:
            print("Usage: .load FILE")
        else:
            load_saved_result(session, parts[1])

    else:
        print(f"Unknown command: {command}")
        print("Type .help for available commands\n")

    return True


def ask_question(session: Session, question: str,
                 confirm: Callable[[str], bool]) -> Optional[FormattedTable]:
    """
    Run one question through the backend.

    Args:
        session: Current session
        question: Natural-language question
        confirm: Called with the generated SQL; returns True to run it

    Returns:
        The displayed table, or None if nothing was run

    Raises:
        QueryTableError: If the backend rejects a request
    """
    response = session.client.submit_question(question)
    session.last_query = response.query

    print(f"\nGenerated query:\n  {response.query}")
    if response.message:
        print(response.message)

    if not response.needs_approval:
        print("The query was not approved for execution.\n")
        return None

    approve = confirm(response.query)
    approval = session.client.approve_query(response.session_id, approve)

    if not approve:
        print("Query discarded.\n")
        return None

    print()
    table = session.formatter.build_table(response.query, approval.rows)
    session.last_table = table
    print(format_result_table(table))
    if approval.answer:
        print(f"\nAnswer: {approval.answer}")
    print()
    return table


def confirm_from_stdin(query: str) -> bool:
    """Ask on the terminal whether to run the query."""
    reply = read_line_raw("Run this query? [y/N] ").strip().lower()
    return reply in ('y', 'yes')


def repl(settings: Settings = None):
    """
    Run the interactive REPL.

    Reads questions, asks the backend for SQL, and displays results.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    print_banner(settings)

    session = Session(
        SQLQAClient(settings.api_url, timeout=settings.timeout),
        ResultFormatter(settings)
    )

    while True:
        try:
            try:
                line = read_line_raw("querytable> ").strip()
            except EOFError:
                print("\nGoodbye!")
                return

            if not line:
                continue

            if line.startswith('.'):
                if not handle_special_command(line, session):
                    break
                continue

            try:
                ask_question(session, line, confirm_from_stdin)
            except (ValueError, QueryTableError) as e:
                print(f"Error: {e}\n")
            except EOFError:
                print("\nGoodbye!")
                return

        except KeyboardInterrupt:
            print("\n\nInterrupted. Type .exit to quit.\n")
            continue
        except Exception as e:
            print(f"Unexpected error: {e}\n")
            log.exception("Unexpected error in REPL")


def main():
    """Console entry point."""
    repl()


# Entry point for running as module
if __name__ == "__main__":
    main()
