"""Tests for the Redis rate limiter, token redaction and auth helpers."""

from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import redis
from httpx import AsyncClient
from jose import jwt
from pydantic import ValidationError

from app.config import Settings, settings
from app.core.redis_client import RateLimiter
from app.core.security import create_access_token, decode_access_token
from app.middleware.logging import redact_path, redact_tokens


def _limiter(execute_result=None, error: Exception | None = None) -> tuple[RateLimiter, MagicMock]:
    mock_redis = MagicMock()
    pipe = mock_redis.pipeline.return_value
    if error is not None:
        pipe.execute.side_effect = error
    else:
        pipe.execute.return_value = execute_result
    return RateLimiter(redis_client=mock_redis), pipe


def test_rate_limiter_opens_window_with_expiry():
    """Test the window key gets its expiry in the same transaction as the count."""
    limiter, pipe = _limiter([True, 1])

    assert limiter.check_rate_limit("ratelimit:confirm:1.2.3.4", limit=30) is True
    limiter.redis.pipeline.assert_called_once_with(transaction=True)
    pipe.set.assert_called_once_with("ratelimit:confirm:1.2.3.4", 0, ex=60, nx=True)
    pipe.incr.assert_called_once_with("ratelimit:confirm:1.2.3.4")
    pipe.execute.assert_called_once()
    limiter.redis.incr.assert_not_called()
    limiter.redis.expire.assert_not_called()


def test_rate_limiter_within_limit():
    """Test later hits under the limit are allowed."""
    limiter, _ = _limiter([None, 30])

    assert limiter.check_rate_limit("key", limit=30) is True


def test_rate_limiter_exceeded():
    """Test hits past the limit are rejected."""
    limiter, _ = _limiter([None, 31])

    assert limiter.check_rate_limit("key", limit=30) is False


def test_rate_limiter_fails_open():
    """Test Redis outages do not block patients."""
    limiter, _ = _limiter(error=redis.ConnectionError("Connection refused"))

    assert limiter.check_rate_limit("key", limit=30) is True


def test_rate_limiter_failed_transaction_fails_open():
    """Test an aborted transaction allows the hit instead of leaving a stray counter."""
    limiter, pipe = _limiter(error=redis.ResponseError("EXECABORT"))

    assert limiter.check_rate_limit("key", limit=30) is True
    pipe.execute.assert_called_once()
    limiter.redis.incr.assert_not_called()


def test_redact_path_masks_token():
    """Test confirmation tokens keep only a short prefix in logs."""
    assert redact_path("/api/v1/confirm/abcdefghijklmnop") == "/api/v1/confirm/abcd***"
    assert (
        redact_path("/api/v1/confirm/abcdefghijklmnop/cancel") == "/api/v1/confirm/abcd***/cancel"
    )


def test_redact_path_leaves_other_paths():
    """Test unrelated paths are logged as-is."""
    path = "/api/v1/clinics/7f1c/appointments/"
    assert redact_path(path) == path


def test_redact_tokens_processor():
    """Test the structlog processor masks path and url fields."""
    event = {
        "event": "request_failed",
        "path": "/api/v1/confirm/secrettoken123456",
        "url": "http://test/api/v1/confirm/secrettoken123456/confirm",
        "status_code": 500,
    }

    result = redact_tokens(None, "error", event)

    assert result["path"] == "/api/v1/confirm/secr***"
    assert result["url"] == "http://test/api/v1/confirm/secr***/confirm"
    assert result["status_code"] == 500


def test_access_token_round_trip():
    """Test a staff token decodes to its subject."""
    user_id = uuid4()

    payload = decode_access_token(create_access_token(user_id, email="a@clinic.test"))

    assert payload is not None
    assert payload["sub"] == str(user_id)
    assert payload["email"] == "a@clinic.test"


def test_expired_token_is_rejected():
    """Test expiry is enforced."""
    token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-5))
    assert decode_access_token(token) is None


def test_foreign_token_is_rejected():
    """Test tokens from another issuer or of another type are refused."""
    foreign = jwt.encode(
        {"sub": str(uuid4()), "iss": "someone-else", "type": "staff_access"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    refresh = jwt.encode(
        {"sub": str(uuid4()), "iss": settings.jwt_issuer, "type": "refresh"},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    assert decode_access_token(foreign) is None
    assert decode_access_token(refresh) is None


@pytest.mark.asyncio
async def test_error_body_does_not_echo_token(client: AsyncClient) -> None:
    """Test error responses carry the redacted path and a request id."""
    response = await client.get("/api/v1/confirm/" + "z" * 43)

    assert response.status_code == 404
    assert "z" * 10 not in response.json()["path"]
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient) -> None:
    """Test a caller-supplied request id is echoed back."""
    response = await client.get("/api/v1/ping", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc-123"


def test_unknown_clinic_timezone_is_rejected():
    """Test the clinic zone must be a tz database key."""
    with pytest.raises(ValidationError):
        Settings(CLINIC_TIMEZONE="Mars/Olympus_Mons")

    assert Settings(CLINIC_TIMEZONE="America/Sao_Paulo").clinic_timezone == "America/Sao_Paulo"
