"""Tests for the in-memory deployment store and result serialization."""

import json

from site_deployer.pipeline.deployer import (
    DeploymentResult,
    DeploymentState,
    InMemoryDeploymentStore,
)
from site_deployer.pipeline.deployer.models import MediaDeploymentResult


def test_save_get_delete():
    store = InMemoryDeploymentStore()
    record = DeploymentResult(success=True, deployment_id="deploy-1-aaaaaaa")

    store.save(record)

    assert store.get("deploy-1-aaaaaaa") is record
    assert store.get("deploy-2-bbbbbbb") is None
    assert store.delete("deploy-1-aaaaaaa") is True
    assert store.delete("deploy-1-aaaaaaa") is False
    assert len(store) == 0


def test_result_to_dict_is_json_serializable():
    record = DeploymentResult(
        success=False,
        deployment_id="deploy-1-aaaaaaa",
        media=[MediaDeploymentResult("https://cdn/a.jpg", "https://wp/a.jpg", 3)],
        errors=["boom"],
        state=DeploymentState.FAILED,
    )
    data = json.loads(json.dumps(record.to_dict()))
    assert data["state"] == "failed"
    assert data["media"] == [
        {"original_url": "https://cdn/a.jpg", "wp_url": "https://wp/a.jpg", "id": 3}
    ]
    assert data["timing"] is None
