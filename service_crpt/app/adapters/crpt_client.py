"""
CRPT document API client.
"""

import time
from typing import Optional

import httpx

from shared.config import CRPT_DOCUMENTS_CREATE_URL
from shared.errors import ExternalServiceError, UnexpectedStatusError, ValidationError
from shared.logging import get_logger, request_id_var, set_request_id
from shared.metrics import MetricsCollector
from service_crpt.app.documents.models import Document
from service_crpt.app.ratelimit.gate import RateLimitedGate


def build_http_client(timeout_seconds: float = 10.0, verify_tls: bool = True) -> httpx.Client:
    """Build the HTTPS transport.

    With ``verify_tls=False`` every certificate and hostname is trusted.
    """
    return httpx.Client(
        timeout=timeout_seconds,
        verify=verify_tls,
        headers={"Content-Type": "application/json", "Accept": "application/json"}
    )


class CrptApiClient:
    """Client for creating documents through the CRPT API."""

    def __init__(self,
                 gate: RateLimitedGate,
                 *,
                 url: str = CRPT_DOCUMENTS_CREATE_URL,
                 http_client: Optional[httpx.Client] = None,
                 timeout_seconds: float = 10.0,
                 verify_tls: bool = True,
                 metrics: Optional[MetricsCollector] = None):
        self.gate = gate
        self.url = url
        self.metrics = metrics
        self.logger = get_logger("crpt.client")
        self._owns_client = http_client is None
        self._client = http_client or build_http_client(timeout_seconds, verify_tls)
        if not verify_tls:
            self.logger.warning("TLS verification disabled for CRPT client", url=url)

    def create_document(self, document: Document, signature: str) -> Document:
        """Create a document for goods produced in the Russian Federation.

        Blocks while the gate's request limit for the current window is
        exhausted. Raises ``OperationFailedError`` on any submission failure.
        """
        if not isinstance(signature, str) or not signature.strip():
            raise ValidationError("Signature must be a non-empty string")
        if not isinstance(document, Document):
            raise ValidationError(
                "Document must be a Document instance",
                details={"type": type(document).__name__}
            )

        previous_request_id = request_id_var.get()
        request_id = set_request_id()
        try:
            return self.gate.run_gated(lambda: self._submit(document, signature, request_id))
        finally:
            request_id_var.set(previous_request_id)

    def _submit(self, document: Document, signature: str, request_id: str) -> Document:
        started = time.perf_counter()
        status = "error"
        try:
            try:
                response = self._client.post(
                    self.url,
                    content=document.to_json().encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "Signature": signature,
                        "X-Request-ID": request_id
                    }
                )
            except httpx.HTTPError as e:
                self.logger.error("CRPT transport error", error=str(e), url=self.url)
                raise ExternalServiceError(
                    "crpt",
                    "Document API unavailable",
                    details={"http_error": str(e)}
                ) from e

            status = str(response.status_code)
            if response.status_code != httpx.codes.CREATED:
                self.logger.warning(
                    "Unexpected CRPT response status",
                    status_code=response.status_code,
                    doc_id=document.doc_id
                )
                raise UnexpectedStatusError(response.status_code, details={"body": response.text[:500]})

            created = Document.from_wire(response.content)
            self.logger.info("Document submitted", doc_id=created.doc_id or document.doc_id)
            return created
        finally:
            if self.metrics:
                self.metrics.record_request(status, time.perf_counter() - started)

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CrptApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
