"""Tests for the audit-sink routing in utils.logger."""

import pytest

from utils.logger import is_audit_record


@pytest.mark.parametrize(
    "module, expected",
    [
        ("utils.data_loader", True),
        ("utils.apollo_client", True),
        ("backend.routers.ingest", True),
        ("backend.routers.enrichment", True),
        ("models.confidence", False),
        ("backend.routers.campaigns", False),
        (None, False),
    ],
)
def test_audit_sink_only_takes_loader_and_enrichment_records(module, expected):
    assert is_audit_record({"name": module}) is expected
