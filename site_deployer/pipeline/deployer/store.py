"""Deployment history storage.

The orchestrator needs to remember enough about a deployment to reverse it.
It talks to a :class:`DeploymentStore`, so a durable backend can replace the
in-memory map without touching orchestration logic.
"""

from __future__ import annotations

import threading
from typing import Protocol

from .models import DeploymentResult


class DeploymentStore(Protocol):
    def save(self, result: DeploymentResult) -> None: ...

    def get(self, deployment_id: str) -> DeploymentResult | None: ...

    def delete(self, deployment_id: str) -> bool: ...


class InMemoryDeploymentStore:
    """Process-local store, safe for concurrent deployments.

    Records live for the lifetime of the instance only.
    """

    def __init__(self) -> None:
        self._records: dict[str, DeploymentResult] = {}
        self._lock = threading.Lock()

    def save(self, result: DeploymentResult) -> None:
        with self._lock:
            self._records[result.deployment_id] = result

    def get(self, deployment_id: str) -> DeploymentResult | None:
        with self._lock:
            return self._records.get(deployment_id)

    def delete(self, deployment_id: str) -> bool:
        """Remove a record; return False if it was not present."""
        with self._lock:
            return self._records.pop(deployment_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
