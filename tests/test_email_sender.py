"""Tests for the HTTP email sender adapter."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from site_monitor.adapters.notifications import HttpEmailSender


@pytest.mark.asyncio
async def test_send_success() -> None:
    """Test successful email delivery."""
    sender = HttpEmailSender(api_key="key-123", sender="alerts@example.com", api_url="https://mail.test/emails")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status = Mock()
        mock_response.json.return_value = {"id": "msg-42"}

        mock_post = AsyncMock(return_value=mock_response)
        mock_client.return_value.__aenter__.return_value.post = mock_post

        delivery_id = await sender.send("r@example.com", "2 new items on example.com", "<p>hi</p>")

        assert delivery_id == "msg-42"

        # Verify API call
        assert mock_post.called
        call_args = mock_post.call_args
        assert call_args.args[0] == "https://mail.test/emails"

        payload = call_args.kwargs["json"]
        assert payload["from"] == "alerts@example.com"
        assert payload["to"] == ["r@example.com"]
        assert payload["subject"] == "2 new items on example.com"
        assert payload["html"] == "<p>hi</p>"
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer key-123"


@pytest.mark.asyncio
async def test_send_without_id_in_response() -> None:
    """Test a response without JSON body yields an empty delivery id."""
    sender = HttpEmailSender(api_key="key-123", sender="alerts@example.com")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status = Mock()
        mock_response.json.side_effect = ValueError("no json")
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=mock_response)

        assert await sender.send("r@example.com", "Subject", "<p>hi</p>") == ""


@pytest.mark.asyncio
async def test_send_http_error() -> None:
    """Test HTTP error propagates to the caller."""
    sender = HttpEmailSender(api_key="key-123", sender="alerts@example.com")

    with patch("httpx.AsyncClient") as mock_client:
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "422 Unprocessable Entity",
            request=Mock(),
            response=Mock(status_code=422),
        )
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=mock_response)

        with pytest.raises(httpx.HTTPStatusError):
            await sender.send("r@example.com", "Subject", "<p>hi</p>")


@pytest.mark.asyncio
async def test_send_not_configured() -> None:
    """Test sending without credentials is refused."""
    sender = HttpEmailSender(api_key=None, sender="alerts@example.com")

    assert not sender.configured
    with pytest.raises(RuntimeError, match="not configured"):
        await sender.send("r@example.com", "Subject", "<p>hi</p>")
