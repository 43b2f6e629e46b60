from datetime import datetime, timezone

import pytest

from profile_finder.errors import (
    RATE_LIMIT_GUIDANCE,
    ErrorKind,
    InvalidInput,
    LookupCancelled,
    LookupTimeout,
    NetworkError,
    NotFound,
    ProfileLookupError,
    RateLimited,
    UpstreamError,
)


@pytest.mark.parametrize(
    "error, kind, status",
    [
        (InvalidInput(), ErrorKind.INVALID_INPUT, 400),
        (NotFound("ghost"), ErrorKind.NOT_FOUND, 404),
        (RateLimited(), ErrorKind.RATE_LIMITED, 429),
        (UpstreamError(500), ErrorKind.UPSTREAM_ERROR, 502),
        (LookupTimeout(), ErrorKind.TIMEOUT, 504),
        (NetworkError(), ErrorKind.NETWORK_ERROR, 502),
    ],
)
def test_kinds_and_statuses(error, kind, status):
    assert isinstance(error, ProfileLookupError)
    assert error.kind is kind
    assert error.http_status == status
    assert error.to_dict()["kind"] == kind.value


def test_rate_limited_without_reset_has_no_guidance():
    error = RateLimited()

    assert error.user_message == "Rate limit exceeded. Please try again later."
    assert error.to_dict()["reset_at"] is None


def test_rate_limited_with_reset_appends_guidance():
    reset = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    error = RateLimited(reset)

    assert error.user_message.endswith(RATE_LIMIT_GUIDANCE)
    assert error.to_dict()["reset_at"] == "2030-01-01T12:00:00+00:00"


def test_upstream_error_message_carries_status():
    error = UpstreamError(418)

    assert "418" in error.user_message
    assert error.to_dict()["status"] == 418


def test_cancelled_is_not_a_lookup_error():
    assert not issubclass(LookupCancelled, ProfileLookupError)
