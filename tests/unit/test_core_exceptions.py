"""
Unit tests for the custom exception hierarchy.

Verifies inheritance chains, attribute assignment, and message formatting
for all exception classes in catalog_sync.core.exceptions.

Version: 1.0.0
"""
import pytest

from catalog_sync.core.exceptions import (
    CatalogSyncException,
    ClientError,
    FetchError,
    GraphQLError,
    MutationError,
    NonRetryableError,
    PermanentClientError,
    ResponseDecodeError,
    RetryableError,
    SetupError,
    ThrottledError,
    TransientClientError,
)


pytestmark = pytest.mark.unit


class TestHierarchy:

    @pytest.mark.parametrize("cls", [
        RetryableError, NonRetryableError, ClientError, FetchError, SetupError,
    ])
    def test_all_derive_from_base(self, cls):
        assert issubclass(cls, CatalogSyncException)

    def test_transient_is_retryable_client_error(self):
        assert issubclass(TransientClientError, ClientError)
        assert issubclass(TransientClientError, RetryableError)
        assert not issubclass(TransientClientError, NonRetryableError)

    def test_permanent_is_non_retryable_client_error(self):
        assert issubclass(PermanentClientError, ClientError)
        assert issubclass(PermanentClientError, NonRetryableError)

    def test_graphql_error_is_permanent(self):
        assert issubclass(GraphQLError, PermanentClientError)

    def test_throttled_is_retryable(self):
        assert issubclass(ThrottledError, RetryableError)

    @pytest.mark.parametrize("cls", [ResponseDecodeError, MutationError, SetupError])
    def test_non_retryable(self, cls):
        assert issubclass(cls, NonRetryableError)


class TestClientError:

    def test_attributes(self):
        exc = ClientError("boom", status_code=503, body="down", attempts=4, url="https://x")
        assert exc.status_code == 503
        assert exc.body == "down"
        assert exc.attempts == 4
        assert exc.url == "https://x"

    def test_str_includes_context(self):
        exc = ClientError("boom", status_code=503, body="down", attempts=4)
        assert str(exc) == "boom | status=503 | attempts=4 | body=down"

    def test_str_without_status_or_body(self):
        assert str(ClientError("boom")) == "boom | attempts=1"

    def test_body_truncated(self):
        exc = ClientError("boom", body="x" * 2000)
        assert str(exc).endswith("body=" + "x" * 500)


class TestGraphQLErrors:

    def test_graphql_error_keeps_errors(self):
        errors = [{"message": "bad field"}]
        exc = GraphQLError(errors, url="https://x", attempts=2)
        assert exc.errors == errors
        assert exc.status_code == 200
        assert exc.attempts == 2
        assert "bad field" in str(exc)

    def test_throttled_error(self):
        exc = ThrottledError([{"message": "Throttled"}], url="https://x")
        assert exc.url == "https://x"
        assert "throttled" in str(exc)


class TestMutationError:

    def test_message_lists_user_errors(self):
        exc = MutationError("productVariantsBulkUpdate", [
            {"field": ["variants", "0", "price"], "message": "Price is invalid"},
        ])
        assert exc.operation == "productVariantsBulkUpdate"
        assert "Price is invalid" in str(exc)
        assert str(exc).startswith("productVariantsBulkUpdate failed")


class TestOtherErrors:

    def test_decode_error_message(self):
        assert str(ResponseDecodeError("productVariants", "missing")) == "Malformed productVariants response: missing"
        assert str(ResponseDecodeError("locations")) == "Malformed locations response"

    def test_fetch_error_pages(self):
        exc = FetchError("failed", pages_fetched=3)
        assert exc.pages_fetched == 3
        assert str(exc) == "failed"
