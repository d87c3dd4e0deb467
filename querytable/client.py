"""
HTTP client for the SQL question-answering backend.

The backend works in two steps: POST /query turns a natural-language
question into SQL and opens a session, then POST /approve runs (or
discards) that SQL and returns the rows plus a written answer.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .parser.decoder import decode_approval_payload
from .utils.exceptions import BackendError

log = logging.getLogger(__name__)


@dataclass
class QueryResponse:
    """Reply to a submitted question."""
    session_id: Optional[str]
    query: str
    message: str = ""

    @property
    def needs_approval(self) -> bool:
        """A query starting with '--' is a refusal comment, not runnable SQL."""
        return bool(self.query) and not self.query.startswith("--")


@dataclass
class ApprovalResponse:
    """Reply to an approval decision."""
    result: Any = None
    result_data: Any = None
    answer: str = ""
    rows: List[Any] = field(default_factory=list)


class SQLQAClient:
    """Client for the SQL QA backend's JSON API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 60.0,
        transport: httpx.BaseTransport = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with self._client() as client:
                resp = client.post(path, json=payload)
        except httpx.TransportError as e:
            log.error("POST %s could not reach %s: %s", path, self.base_url, e)
            raise BackendError(None, f"could not reach {self.base_url}: {e}")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            if isinstance(data, dict) and "detail" in data:
                detail = data["detail"]
            else:
                detail = resp.text or resp.reason_phrase
            log.warning("POST %s failed with %d: %s", path, resp.status_code, detail)
            raise BackendError(resp.status_code, str(detail))

        if not isinstance(data, dict):
            log.error("POST %s returned a non-object body", path)
            raise BackendError(resp.status_code, f"unexpected response from {path}: expected a JSON object")

        return data

    def submit_question(self, question: str) -> QueryResponse:
        """
        Ask the backend to generate SQL for a question.

        Args:
            question: Natural-language question

        Returns:
            QueryResponse with the session id and generated SQL

        Raises:
            ValueError: If the question is blank
            BackendError: If the backend rejects the request
        """
        if not question or not question.strip():
            raise ValueError("Please enter a question")

        data = self._post("/query", {"question": question})
        return QueryResponse(
            session_id=data.get("session_id"),
            query=data.get("query", ""),
            message=data.get("message", "")
        )

    def approve_query(self, session_id: str, approve: bool = True) -> ApprovalResponse:
        """
        Approve or reject the SQL generated for a session.

        Args:
            session_id: Session from submit_question()
            approve: False discards the query

        Returns:
            ApprovalResponse with rows decoded from the payload

        Raises:
            BackendError: If the backend rejects the request
        """
        data = self._post("/approve", {"session_id": session_id, "approve": approve})
        result = data.get("result")
        result_data = data.get("result_data")
        return ApprovalResponse(
            result=result,
            result_data=result_data,
            answer=data.get("answer") or "",
            rows=decode_approval_payload(result, result_data)
        )
