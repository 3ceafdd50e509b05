import logging

import pytest

from exceptions import ForbiddenError, UnauthenticatedError
from services.auth import CredentialGuard


def test_matching_secret_is_allowed():
    CredentialGuard("s3cret").authenticate("s3cret", "10.0.0.1")


@pytest.mark.parametrize("provided", [None, ""])
def test_missing_header_is_unauthenticated(provided):
    with pytest.raises(UnauthenticatedError) as exc_info:
        CredentialGuard("s3cret").authenticate(provided, "10.0.0.1")
    assert exc_info.value.status_code == 401
    assert exc_info.value.error == "Missing X-BOCHAT-API-KEY header"


def test_wrong_secret_is_forbidden_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="services.auth"):
        with pytest.raises(ForbiddenError) as exc_info:
            CredentialGuard("s3cret").authenticate("S3CRET", "203.0.113.9")
    assert exc_info.value.status_code == 403
    assert "203.0.113.9" in caplog.text


def test_comparison_is_exact():
    guard = CredentialGuard("s3cret")
    for near_miss in ["s3cret ", " s3cret", "s3cre", "s3cret\n"]:
        with pytest.raises(ForbiddenError):
            guard.authenticate(near_miss)


def test_unset_secret_rejects_every_key():
    with pytest.raises(ForbiddenError):
        CredentialGuard(None).authenticate("anything")
