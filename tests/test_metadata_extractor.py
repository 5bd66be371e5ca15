from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from labelguard.core.errors import DecodeError
from labelguard.core.metadata import extract_labels


def test_extracts_labels_from_json_bytes() -> None:
    raw = json.dumps({"metadata": {"name": "payments", "labels": {"team": "x", "app": "y"}}}).encode()
    assert extract_labels(raw).labels == {"team": "x", "app": "y"}


def test_extracts_labels_from_parsed_object() -> None:
    assert extract_labels({"metadata": {"labels": {"app": "y"}}}).labels == {"app": "y"}


def test_unknown_fields_are_ignored() -> None:
    raw = {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": "p",
            "annotations": {"a": "b"},
            "managedFields": [{"manager": "kubectl"}],
            "someFutureField": {"nested": [1, 2, 3]},
            "labels": {"app": "web"},
        },
        "spec": {"containers": [{"name": "c", "image": "nginx"}]},
        "status": {"phase": "Pending"},
    }
    assert extract_labels(raw).labels == {"app": "web"}


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"metadata": None},
        {"metadata": {}},
        {"metadata": {"labels": None}},
        b'{"kind":"ConfigMap"}',
    ],
)
def test_missing_labels_decode_as_empty(raw) -> None:
    assert extract_labels(raw).labels == {}


@pytest.mark.parametrize(
    "raw",
    [
        b'{"metadata": {"labels": {"team": ',
        "not json at all",
        b"[1, 2, 3]",
        [1, 2, 3],
        42,
        {"metadata": {"labels": ["team"]}},
        {"metadata": {"labels": {"team": 1}}},
        {"metadata": "payments"},
    ],
)
def test_malformed_payloads_raise_decode_error(raw) -> None:
    with pytest.raises(DecodeError):
        extract_labels(raw)


@pytest.mark.parametrize("raw", [None, b"", "   "])
def test_empty_payload_raises_decode_error(raw) -> None:
    with pytest.raises(DecodeError, match="empty"):
        extract_labels(raw)


def test_view_is_read_only() -> None:
    view = extract_labels({"metadata": {"labels": {"app": "y"}}})
    with pytest.raises(ValidationError):
        view.labels = {}  # type: ignore[misc]
