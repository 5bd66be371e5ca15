"""
Pytest config.

Local imports like `import labelguard` rely on the repo root being on sys.path. When
invoking a global `pytest` entrypoint without an editable install that doesn't happen
reliably during collection, so we pin the behavior here.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _clear_policy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Env-driven config must not leak from the developer's shell into tests."""
    for name in ("PROTECTED_LABEL", "ALLOWED_USERS", "TLS_CERT_FILE", "TLS_KEY_FILE", "HOST", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def team_policy():  # type: ignore[no-untyped-def]
    from labelguard.authz.policy import PolicyConfig

    return PolicyConfig(protected_label="team", allowed_users=frozenset({"admin"}))


@pytest.fixture
def make_review() -> Callable[..., Dict[str, Any]]:
    """Build an AdmissionReview request dict as the API server would send it."""

    def _make(
        *,
        uid: str = "705ab4f5-6393-11e8-b7cc-42010a800002",
        operation: str = "CREATE",
        username: str = "alice",
        labels: Optional[Dict[str, str]] = None,
        obj: Any = None,
        api_version: str = "admission.k8s.io/v1",
    ) -> Dict[str, Any]:
        if obj is None:
            obj = {
                "apiVersion": "v1",
                "kind": "Namespace",
                "metadata": {"name": "payments", "labels": dict(labels or {})},
                "spec": {"finalizers": ["kubernetes"]},
            }
        return {
            "apiVersion": api_version,
            "kind": "AdmissionReview",
            "request": {
                "uid": uid,
                "kind": {"group": "", "version": "v1", "kind": "Namespace"},
                "resource": {"group": "", "version": "v1", "resource": "namespaces"},
                "name": "payments",
                "operation": operation,
                "userInfo": {"username": username, "groups": ["system:authenticated"]},
                "object": obj,
                "oldObject": None,
                "dryRun": False,
            },
        }

    return _make
