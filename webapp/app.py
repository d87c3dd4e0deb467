"""
Flask web application for the SQL QA backend.

Serves a page that renders query results as a sanitized table, a JSON
endpoint that formats posted results, and proxy routes for the backend's
question and approval calls.
"""

import logging
from collections import OrderedDict

from flask import Flask, render_template, request, jsonify

from querytable.client import SQLQAClient
from querytable.config import Settings, configure_logging, load_settings
from querytable.formatter import ResultFormatter
from querytable.parser.decoder import parse_result_data
from querytable.utils.exceptions import BackendError

log = logging.getLogger(__name__)


def table_payload(table) -> dict:
    """JSON shape of a FormattedTable."""
    return {
        'columns': table.columns,
        'rows': table.rows,
        'row_count': table.row_count
    }


def create_app(settings: Settings = None, client: SQLQAClient = None) -> Flask:
    """
    Build the Flask app.

    Args:
        settings: Settings to use (defaults to the environment)
        client: Backend client (defaults to one built from settings)
    """
    settings = settings or load_settings()
    client = client or SQLQAClient(settings.api_url, timeout=settings.timeout)
    formatter = ResultFormatter(settings)

    # Generated SQL per backend session, needed to label approved results.
    # Oldest sessions are dropped once max_pending_sessions is reached.
    pending: OrderedDict = OrderedDict()

    app = Flask(__name__)
    app.extensions["querytable_pending"] = pending

    def remember_query(session_id: str, query: str):
        pending[session_id] = query
        pending.move_to_end(session_id)
        while len(pending) > settings.max_pending_sessions:
            evicted, _ = pending.popitem(last=False)
            log.info("Dropping unanswered session %s", evicted)

    def backend_error(e: BackendError):
        status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
        return jsonify({'error': e.detail}), status

    @app.route('/', methods=['GET', 'POST'])
    def index():
        """Main page: paste a query and its raw result to see the table."""
        query = ""
        raw_result = ""
        table = None
        if request.method == 'POST':
            query = request.form.get('query', '')
            raw_result = request.form.get('result', '')
            table = formatter.build_table(query, parse_result_data(raw_result))
        return render_template('index.html', query=query, result=raw_result, table=table)

    @app.route('/api/format', methods=['POST'])
    def format_result():
        """Sanitize a posted {query, result} pair."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Expected a JSON object'}), 400

        rows = parse_result_data(data.get('result'))
        table = formatter.build_table(data.get('query') or '', rows)
        return jsonify(table_payload(table))

    @app.route('/api/query', methods=['POST'])
    def submit_question():
        """Forward a question to the backend."""
        data = request.get_json(silent=True) or {}
        try:
            response = client.submit_question(data.get('question', ''))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except BackendError as e:
            return backend_error(e)

        if response.session_id:
            remember_query(response.session_id, response.query)

        return jsonify({
            'session_id': response.session_id,
            'query': response.query,
            'message': response.message,
            'needs_approval': response.needs_approval
        })

    @app.route('/api/approve', methods=['POST'])
    def approve_query():
        """Approve or reject a pending query and return its formatted rows."""
        data = request.get_json(silent=True) or {}
        session_id = data.get('session_id')
        if not session_id:
            return jsonify({'error': 'session_id is required'}), 400

        approve = data.get('approve') is True
        try:
            approval = client.approve_query(session_id, approve)
        except BackendError as e:
            return backend_error(e)

        query = pending.pop(session_id, '')
        table = formatter.build_table(query, approval.rows)

        payload = table_payload(table)
        payload['answer'] = approval.answer
        payload['query'] = query
        return jsonify(payload)

    return app


if __name__ == '__main__':
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    print("\n" + "="*60)
    print("querytable web view running!")
    print("Open http://localhost:5000 in your browser")
    print("="*60 + "\n")
    app.run(debug=True, port=5000)
