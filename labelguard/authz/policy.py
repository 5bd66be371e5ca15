from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Mapping, Optional


def _split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


@dataclass(frozen=True)
class PolicyConfig:
    """
    Protected-label policy.

    Built once at startup and never mutated; every request reads it without locking.
    An empty `protected_label` disables the policy (all objects pass).
    """

    protected_label: str = ""
    # Exact, case-sensitive usernames as reported by the API server.
    allowed_users: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def enabled(self) -> bool:
        return bool(self.protected_label)

    def is_exempt(self, username: str) -> bool:
        return username in self.allowed_users

    def protects(self, labels: Mapping[str, str]) -> bool:
        """True when `labels` sets the protected label (any value)."""
        if not self.enabled:
            return False
        return self.protected_label in labels


def load_policy_config(
    *,
    protected_label: Optional[str] = None,
    allowed_users: Optional[Iterable[str]] = None,
) -> PolicyConfig:
    """
    Load the protected-label policy from env (ConfigMap/Secret friendly).

    Recommended vars:
    - PROTECTED_LABEL=example.com/owner-team
    - ALLOWED_USERS=system:serviceaccount:infra:labeler,alice@example.com

    Explicit arguments (from command-line flags) win over env for the label; users given
    as arguments extend the env allowlist.
    """

    label = protected_label
    if label is None:
        label = (os.getenv("PROTECTED_LABEL") or "").strip()

    users = set(_split_csv(os.getenv("ALLOWED_USERS", "")))
    for u in allowed_users or ():
        u = (u or "").strip()
        if u:
            users.add(u)

    return PolicyConfig(protected_label=label, allowed_users=frozenset(users))
