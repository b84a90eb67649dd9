import pytest

from backend.utils.errors import (
    AppError,
    ConfigurationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ServerError,
    UpstreamError,
    ValidationError,
    redact_secrets,
)


@pytest.mark.parametrize("error,status", [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UpstreamError, 502),
    (NetworkError, 502),
    (ServerError, 502),
    (ConfigurationError, 500),
])
def test_status_codes(error, status):
    assert error("x").status_code == status


def test_exposed_errors_keep_message():
    assert ConflictError("Stock insuffisant").client_message == "Stock insuffisant"


def test_internal_errors_hide_message():
    err = ConfigurationError("STRIPE_SECRET_KEY manquant")
    assert "STRIPE" not in err.client_message
    assert err.message == "STRIPE_SECRET_KEY manquant"


def test_code_override():
    err = UpstreamError("x", code="paypal_rejected")
    assert err.code == "paypal_rejected"
    assert UpstreamError("y").code == "upstream_error"
    assert isinstance(NetworkError("z"), AppError)


@pytest.mark.parametrize("text", [
    "clé sk_test_51Habc123 refusée",
    "secret whsec_abcdef",
    "Authorization: Bearer eyJhbGciOi.abc.def",
    "Authorization: Basic Y2lkOmNzZWNyZXQ=",
])
def test_redact_token_patterns(text):
    redacted = redact_secrets(text)
    assert "***" in redacted
    for token in ("sk_test_51Habc123", "whsec_abcdef", "eyJhbGciOi", "Y2lkOmNzZWNyZXQ="):
        assert token not in redacted


def test_redact_configured_and_explicit_secrets():
    redacted = redact_secrets("login mailer/smtp-test-password avec hunter2", secrets=["hunter2"])
    assert "smtp-test-password" not in redacted
    assert "hunter2" not in redacted
    assert redacted.startswith("login mailer/")
