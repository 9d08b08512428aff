"""Tests for the application exception hierarchy."""

import pytest

from site_deployer.exceptions import (
    AppError,
    ClientError,
    DeploymentNotFoundError,
    DownloadError,
    RemoteAPIError,
    RollbackError,
    ServerError,
    TransportError,
)


def test_app_error_str_and_dict():
    err = AppError("CODE", "message", context={"k": "v"}, transient=True)
    assert str(err) == "CODE: message"
    assert err.to_dict() == {
        "error_code": "CODE",
        "message": "message",
        "context": {"k": "v"},
        "is_transient": True,
    }


@pytest.mark.parametrize(
    "err, transient",
    [
        (ClientError("bad", status=400, endpoint="/wp/v2/pages"), False),
        (ServerError("down", status=503, endpoint="/wp/v2/pages"), True),
        (TransportError("reset", endpoint="/wp/v2/pages"), True),
        (DownloadError("gone", url="https://x/a.jpg", status=404), False),
    ],
)
def test_transient_flags(err, transient):
    assert isinstance(err, AppError)
    assert err.transient is transient


def test_remote_errors_carry_status_and_codes():
    err = ClientError("Nope", status=403, endpoint="/wp/v2/media", remote_code="rest_forbidden")
    assert isinstance(err, RemoteAPIError)
    assert err.code == "CLIENT_ERROR"
    assert err.context == {"status": 403, "endpoint": "/wp/v2/media", "remote_code": "rest_forbidden"}
    assert ServerError("x", status=500, endpoint="/").remote_code == "server_error"


def test_rollback_and_not_found_messages():
    err = RollbackError("deploy-1", ["page gone", "media locked"])
    assert err.message == "Rollback completed with errors: page gone, media locked"
    assert err.failures == ["page gone", "media locked"]
    assert DeploymentNotFoundError("deploy-1").message == "Deployment not found"
