"""
Unit tests for the SQL QA backend client.
"""

import json

import httpx
import pytest
from querytable.client import SQLQAClient, QueryResponse
from querytable.utils.exceptions import BackendError


def make_client(handler):
    """Client whose requests are answered by handler."""
    return SQLQAClient("http://backend.test/", transport=httpx.MockTransport(handler))


class TestQueryResponse:
    """Test approval detection."""

    def test_needs_approval(self):
        """Test runnable SQL needs approval."""
        assert QueryResponse("s1", "SELECT 1").needs_approval is True

    def test_refusal_comment(self):
        """Test '--' comments are refusals."""
        assert QueryResponse("s1", "-- Cannot modify data").needs_approval is False

    def test_empty_query(self):
        """Test an empty query is not runnable."""
        assert QueryResponse(None, "").needs_approval is False


class TestSQLQAClient:
    """Test backend calls against a mock transport."""

    def test_base_url_trailing_slash_removed(self):
        """Test base URL normalization."""
        assert SQLQAClient("http://backend.test/").base_url == "http://backend.test"

    def test_submit_question(self):
        """Test POST /query payload and response mapping."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "session_id": "abc",
                "query": "SELECT name FROM products",
                "message": "Please approve",
            })

        response = make_client(handler).submit_question("Top products?")

        assert seen["path"] == "/query"
        assert seen["body"] == {"question": "Top products?"}
        assert response.session_id == "abc"
        assert response.query == "SELECT name FROM products"
        assert response.message == "Please approve"
        assert response.needs_approval is True

    def test_submit_blank_question(self):
        """Test blank questions are rejected before any request."""
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ValueError):
            make_client(handler).submit_question("   ")

    def test_submit_error_detail(self):
        """Test error responses raise BackendError with the detail."""
        def handler(request):
            return httpx.Response(400, json={"detail": "Unsafe question"})

        with pytest.raises(BackendError) as exc_info:
            make_client(handler).submit_question("drop everything")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Unsafe question"

    def test_error_without_json_body(self):
        """Test non-JSON error bodies are reported as text."""
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(BackendError) as exc_info:
            make_client(handler).submit_question("anything")

        assert exc_info.value.status_code == 500
        assert "Internal Server Error" in exc_info.value.detail

    def test_success_with_non_json_body(self):
        """Test a 2xx body that isn't JSON raises BackendError."""
        def handler(request):
            return httpx.Response(200, text="<html>proxy</html>")

        with pytest.raises(BackendError) as exc_info:
            make_client(handler).submit_question("anything")

        assert exc_info.value.status_code == 200

    def test_success_with_non_object_body(self):
        """Test a 2xx JSON body that isn't an object raises BackendError."""
        def handler(request):
            return httpx.Response(200, json=["rows"])

        with pytest.raises(BackendError):
            make_client(handler).approve_query("abc", True)

    def test_error_with_non_object_body(self):
        """Test a 4xx JSON list body is reported as text."""
        def handler(request):
            return httpx.Response(400, json=["bad"])

        with pytest.raises(BackendError) as exc_info:
            make_client(handler).submit_question("anything")

        assert exc_info.value.status_code == 400
        assert "bad" in exc_info.value.detail

    def test_connection_error(self):
        """Test transport failures become BackendError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendError) as exc_info:
            make_client(handler).submit_question("anything")

        assert exc_info.value.status_code is None

    def test_approve_query_with_result_data(self):
        """Test POST /approve decodes structured rows."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "result": "[(1, Decimal('9.99'))]",
                "result_data": '[[1, "9.99"]]',
                "answer": "One product.",
            })

        approval = make_client(handler).approve_query("abc", True)

        assert seen["path"] == "/approve"
        assert seen["body"] == {"session_id": "abc", "approve": True}
        assert approval.rows == [[1, "9.99"]]
        assert approval.answer == "One product."

    def test_approve_query_repr_only(self):
        """Test rows are parsed from the repr when result_data is absent."""
        def handler(request):
            return httpx.Response(200, json={
                "result": "[(1, datetime.datetime(2024, 1, 15, 10, 30))]",
                "answer": None,
            })

        approval = make_client(handler).approve_query("abc", True)

        assert approval.rows == [[1, "2024-01-15T10:30:00"]]
        assert approval.answer == ""

    def test_reject_query(self):
        """Test rejecting sends approve=false."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": None, "answer": "Query rejected"})

        approval = make_client(handler).approve_query("abc", False)

        assert seen["body"] == {"session_id": "abc", "approve": False}
        assert approval.rows == []
