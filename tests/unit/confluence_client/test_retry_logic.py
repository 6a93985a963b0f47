"""Unit tests for confluence_client.retry_logic module."""

import pytest
from unittest.mock import MagicMock

from confluence_publisher.confluence_client.errors import APIAccessError
from confluence_publisher.confluence_client.retry_logic import call_with_retry, is_rate_limit_error


class TestIsRateLimitError:
    """Test cases for is_rate_limit_error function."""

    def test_detects_429_in_message(self):
        assert is_rate_limit_error(Exception("HTTP 429 Too Many Requests")) is True

    def test_detects_rate_limit_text_in_message(self):
        assert is_rate_limit_error(Exception("Rate limit exceeded")) is True

    def test_detects_status_code_attribute(self):
        error = Exception("API error")
        error.status_code = 429
        assert is_rate_limit_error(error) is True

    def test_detects_response_status_code_attribute(self):
        error = Exception("API error")
        error.response = MagicMock()
        error.response.status_code = 429
        assert is_rate_limit_error(error) is True

    def test_returns_false_for_other_errors(self):
        error = Exception("Not found")
        error.status_code = 404
        assert is_rate_limit_error(error) is False


class TestCallWithRetry:
    """Test cases for call_with_retry function."""

    def test_success_on_first_attempt(self):
        func = MagicMock(return_value="success")
        sleep = MagicMock()

        assert call_with_retry(func, sleep=sleep) == "success"
        func.assert_called_once()
        sleep.assert_not_called()

    def test_exponential_backoff_timing(self):
        """Retries sleep 1s, 2s, 4s before succeeding."""
        rate_limit_error = Exception("429")
        func = MagicMock(side_effect=[rate_limit_error, rate_limit_error, rate_limit_error, "success"])
        sleep = MagicMock()

        assert call_with_retry(func, sleep=sleep) == "success"
        assert func.call_count == 4
        assert [call[0][0] for call in sleep.call_args_list] == [1, 2, 4]

    def test_honours_retry_after_header(self):
        error = Exception("rate limited")
        error.response = MagicMock()
        error.response.status_code = 429
        error.response.headers = {"Retry-After": "7"}
        func = MagicMock(side_effect=[error, "success"])
        sleep = MagicMock()

        call_with_retry(func, sleep=sleep)

        sleep.assert_called_once_with(7.0)

    def test_retry_after_is_capped(self):
        error = Exception("429")
        error.response = MagicMock()
        error.response.status_code = 429
        error.response.headers = {"Retry-After": "3600"}
        func = MagicMock(side_effect=[error, "success"])
        sleep = MagicMock()

        call_with_retry(func, sleep=sleep)

        sleep.assert_called_once_with(30.0)

    def test_raises_api_access_error_after_max_retries(self):
        func = MagicMock(side_effect=Exception("429 Too Many Requests"))
        sleep = MagicMock()

        with pytest.raises(APIAccessError) as exc_info:
            call_with_retry(func, sleep=sleep)

        assert str(exc_info.value) == "Confluence API failure (after 3 retries)"
        assert func.call_count == 4
        assert sleep.call_count == 3

    def test_fails_fast_on_non_rate_limit_error(self):
        func = MagicMock(side_effect=ValueError("Page not found"))

        with pytest.raises(ValueError, match="Page not found"):
            call_with_retry(func, sleep=MagicMock())

        assert func.call_count == 1
