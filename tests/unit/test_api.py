"""Unit tests for the authenticated callable entry point."""

import asyncio
import logging

import pytest

from vyra.api import (
    GENERIC_FAILURE_MESSAGE,
    AuthContext,
    CallableError,
    call_generate_image,
    generate_image_handler,
    map_exception_to_error,
    parse_request,
)
from vyra.core.orchestrator import Orchestrator
from vyra.utils.exceptions import (
    APIError,
    AuthError,
    ConfigurationError,
    PersistenceError,
    QuotaExceededError,
    ValidationError,
)

TODAY = "2026-10-19"
AUTH = AuthContext(uid="u1")


@pytest.fixture
def orchestrator(clients) -> Orchestrator:
    return Orchestrator(clients, today_fn=lambda: TODAY)


def _call(auth, data, orchestrator):
    return asyncio.run(generate_image_handler(auth, data, orchestrator))


@pytest.mark.unit
class TestParseRequest:
    def test_anonymous_rejected(self):
        with pytest.raises(AuthError):
            parse_request(None, {"prompt": "a cat"})

    def test_empty_uid_rejected(self):
        with pytest.raises(AuthError):
            parse_request(AuthContext(uid=""), {"prompt": "a cat"})

    @pytest.mark.parametrize("data", [None, "a cat", ["a cat"]])
    def test_non_object_payload(self, data):
        with pytest.raises(ValidationError):
            parse_request(AUTH, data)

    def test_missing_prompt(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_request(AUTH, {})
        assert exc_info.value.field == "prompt"

    def test_non_string_style_kept_as_text(self):
        request = parse_request(AUTH, {"prompt": "a cat", "style": 3})
        assert request.style == "3"

    @pytest.mark.parametrize("flag", ["false", "true", 1, "yes", [True]])
    def test_non_bool_premium_flag_is_not_premium(self, flag):
        request = parse_request(AUTH, {"prompt": "a cat", "isPremium": flag})
        assert request.is_premium is False

    def test_fields_mapped(self):
        request = parse_request(AUTH, {"prompt": "a cat", "style": "oil", "isPremium": True})
        assert request.user_id == "u1"
        assert request.prompt == "a cat"
        assert request.style == "oil"
        assert request.is_premium is True

    def test_defaults(self):
        request = parse_request(AUTH, {"prompt": "a cat"})
        assert request.style is None
        assert request.is_premium is False


@pytest.mark.unit
class TestMapExceptionToError:
    def test_auth(self):
        assert map_exception_to_error(AuthError("no")).code == "unauthenticated"

    def test_validation(self):
        error = map_exception_to_error(ValidationError("Prompt cannot be empty."))
        assert error.code == "invalid-argument"
        assert error.message == "Prompt cannot be empty."

    def test_quota_carries_limit(self):
        error = map_exception_to_error(QuotaExceededError(5))
        assert error.code == "resource-exhausted"
        assert error.details == {"limit": 5}
        assert "5" in error.message

    @pytest.mark.parametrize(
        "exc",
        [
            ConfigurationError("OpenAI API key is not configured (OPENAI_API_KEY)."),
            APIError("Authentication failed. Please check your OpenAI API key.", status_code=401),
            PersistenceError("Transaction aborted after 5 attempts due to contention."),
            RuntimeError("secret internals"),
        ],
    )
    def test_everything_else_is_generic_internal(self, exc):
        error = map_exception_to_error(exc)
        assert error.code == "internal"
        assert error.message == GENERIC_FAILURE_MESSAGE
        assert error.details == {}

    def test_callable_error_passthrough(self):
        original = CallableError("internal", "x")
        assert map_exception_to_error(original) is original


@pytest.mark.unit
class TestCallableErrorShape:
    def test_to_dict_with_details(self):
        error = CallableError("resource-exhausted", "Daily limit of 5 reached.", {"limit": 5})
        assert error.to_dict() == {
            "error": {
                "status": "resource-exhausted",
                "message": "Daily limit of 5 reached.",
                "details": {"limit": 5},
            }
        }

    def test_to_dict_without_details(self):
        error = CallableError("internal", GENERIC_FAILURE_MESSAGE)
        assert error.to_dict() == {"error": {"status": "internal", "message": GENERIC_FAILURE_MESSAGE}}


@pytest.mark.unit
class TestGenerateImageHandler:
    def test_success_shape(self, orchestrator):
        result = _call(AUTH, {"prompt": "a cat", "style": "oil"}, orchestrator)
        assert result == {
            "success": True,
            "imageUrl": "https://images.example/cat.png",
            "optimizedPrompt": "A luminous cat, oil painting",
        }

    def test_unauthenticated(self, orchestrator, image_provider):
        with pytest.raises(CallableError) as exc_info:
            _call(None, {"prompt": "a cat"}, orchestrator)
        assert exc_info.value.code == "unauthenticated"
        assert image_provider.calls == []

    def test_oversized_prompt(self, orchestrator):
        with pytest.raises(CallableError) as exc_info:
            _call(AUTH, {"prompt": "x" * 501}, orchestrator)
        assert exc_info.value.code == "invalid-argument"
        assert "too long" in exc_info.value.message

    def test_quota_exhausted(self, orchestrator, store, text_provider, image_provider):
        store.set("users", "u1", {"dailyGenerationCount": 5, "lastGenerationDate": TODAY})
        with pytest.raises(CallableError) as exc_info:
            _call(AUTH, {"prompt": "a cat"}, orchestrator)
        assert exc_info.value.code == "resource-exhausted"
        assert exc_info.value.details == {"limit": 5}
        assert text_provider.calls == []
        assert image_provider.calls == []

    def test_provider_failure_is_generic(self, orchestrator, image_provider, caplog):
        image_provider.error = APIError(
            "Authentication failed. Please check your OpenAI API key.", status_code=401
        )
        with caplog.at_level(logging.ERROR, logger="vyra"):
            with pytest.raises(CallableError) as exc_info:
                _call(AUTH, {"prompt": "a cat"}, orchestrator)
        assert exc_info.value.code == "internal"
        assert exc_info.value.message == GENERIC_FAILURE_MESSAGE
        assert "API key" not in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, APIError)
        assert any("Authentication failed" in r.getMessage() for r in caplog.records)

    def test_optimizer_failure_is_invisible(self, orchestrator, text_provider):
        text_provider.error = RuntimeError("gemini down")
        result = _call(AUTH, {"prompt": "a cat"}, orchestrator)
        assert result["success"] is True
        assert result["optimizedPrompt"] == "a cat"

    def test_string_premium_flag_gets_free_limit(self, config, clients, store):
        config.trust_client_tier = True
        store.set("users", "u1", {"dailyGenerationCount": 5, "lastGenerationDate": TODAY})
        orchestrator = Orchestrator(clients, config, today_fn=lambda: TODAY)
        with pytest.raises(CallableError) as exc_info:
            _call(AUTH, {"prompt": "a cat", "isPremium": "false"}, orchestrator)
        assert exc_info.value.code == "resource-exhausted"
        assert exc_info.value.details == {"limit": 5}

    def test_non_string_style_is_recorded(self, orchestrator, store):
        _call(AUTH, {"prompt": "a cat", "style": 42}, orchestrator)
        records = store.query("generations", {"uid": "u1"})
        assert records[0]["style"] == "42"

    def test_sync_wrapper(self, orchestrator):
        result = call_generate_image(AUTH, {"prompt": "a cat"}, orchestrator)
        assert result["success"] is True
