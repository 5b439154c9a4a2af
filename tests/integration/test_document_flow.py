"""
Integration tests for concurrent document submission through the rate gate.
"""

import json
import threading
import time

import httpx
import pytest
from prometheus_client import CollectorRegistry

from service_crpt.app.documents.models import Document
from service_crpt.app.main import create_crpt_api
from shared.config import CrptConfig
from shared.errors import OperationFailedError


class FakeCrptServer:
    """In-process stand-in for the document API."""

    def __init__(self, fail_doc_ids=()):
        self.fail_doc_ids = set(fail_doc_ids)
        self.received = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            body = json.loads(request.content)
            time.sleep(0.005)
            with self._lock:
                self.received.append((time.monotonic(), body["doc_id"]))
            if body["doc_id"] in self.fail_doc_ids:
                return httpx.Response(409, json={"error": "duplicate"})
            body["doc_status"] = "CREATED"
            return httpx.Response(201, json=body)
        finally:
            with self._lock:
                self.active -= 1


class TestDocumentFlow:
    """End-to-end submission tests with a running ticker."""

    @pytest.fixture
    def server(self):
        return FakeCrptServer(fail_doc_ids={"doc-bad"})

    @pytest.fixture
    def metrics_registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def api(self, server, metrics_registry):
        config = CrptConfig(
            _env_file=None,
            api_url="https://crpt.test/api/v3/lk/documents/create",
            request_limit=2,
            window_seconds=0.3
        )
        http_client = httpx.Client(transport=httpx.MockTransport(server.handle))
        api = create_crpt_api(config, http_client=http_client, registry=metrics_registry)
        yield api
        api.gate.close()
        http_client.close()

    def submit_all(self, api, doc_ids):
        results = {}
        errors = {}

        def submit(doc_id):
            try:
                results[doc_id] = api.create_document(Document(doc_id=doc_id), "signature")
            except OperationFailedError as e:
                errors[doc_id] = e

        threads = [threading.Thread(target=submit, args=(doc_id,)) for doc_id in doc_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5.0)
        assert all(not thread.is_alive() for thread in threads)
        return results, errors

    def test_concurrent_submissions_all_complete(self, api, server, metrics_registry):
        """Test that callers over the limit wait for a reset and then succeed."""
        deadline = time.monotonic() + 2.0
        while api.gate.get_state()["ticks"] < 1 and time.monotonic() < deadline:
            time.sleep(0.01)

        doc_ids = [f"doc-{i}" for i in range(5)]
        results, errors = self.submit_all(api, doc_ids)

        assert errors == {}
        assert sorted(results) == doc_ids
        assert all(doc.doc_status == "CREATED" for doc in results.values())
        assert server.peak == 1

        immediate = metrics_registry.get_sample_value("crpt_gate_admissions_total", {"gate": "crpt", "outcome": "immediate"}) or 0
        waited = metrics_registry.get_sample_value("crpt_gate_admissions_total", {"gate": "crpt", "outcome": "waited"}) or 0
        assert immediate + waited == 5
        assert waited >= 1

    def test_failed_submission_does_not_stall_others(self, api, server):
        """Test that one rejected document leaves the rest unaffected."""
        results, errors = self.submit_all(api, ["doc-a", "doc-bad", "doc-b"])

        assert sorted(results) == ["doc-a", "doc-b"]
        assert list(errors) == ["doc-bad"]
        assert errors["doc-bad"].__cause__.status_code == 409
        assert len(server.received) == 3
