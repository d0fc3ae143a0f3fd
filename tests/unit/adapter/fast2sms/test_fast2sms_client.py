"""Unit tests for the Fast2SMS delivery strategy."""

import httpx
import pytest

from lodge.adapter.error import ProviderError
from lodge.adapter.fast2sms import RealFast2SMSStrategy


@pytest.fixture
def fast2sms_transport(monkeypatch):
    """Route the strategy's HTTP calls to a handler set by the test."""
    state = {"handler": None, "requests": []}
    real_client = httpx.AsyncClient

    def handle(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: real_client(transport=httpx.MockTransport(handle)),
    )
    return state


class TestRealFast2SMSStrategy:
    """Tests for RealFast2SMSStrategy."""

    def test_is_configured_requires_api_key(self):
        assert not RealFast2SMSStrategy(api_key=None).is_configured()
        assert RealFast2SMSStrategy(api_key="key").is_configured()

    @pytest.mark.asyncio
    async def test_sends_code_to_national_number(self, fast2sms_transport):
        # Arrange
        fast2sms_transport["handler"] = lambda request: httpx.Response(
            200, json={"return": True, "request_id": "req-1", "message": ["sent"]}
        )
        strategy = RealFast2SMSStrategy(api_key="key")

        # Act
        receipt = await strategy.send("+919876543210", "482913")

        # Assert
        assert receipt.delivered
        assert receipt.reference == "req-1"
        params = fast2sms_transport["requests"][0].url.params
        assert params["numbers"] == "9876543210"
        assert params["variables_values"] == "482913"
        assert params["route"] == "otp"
        assert params["authorization"] == "key"

    @pytest.mark.asyncio
    async def test_rejected_message_is_not_delivered(self, fast2sms_transport):
        fast2sms_transport["handler"] = lambda request: httpx.Response(
            200, json={"return": False, "message": "Invalid number"}
        )
        strategy = RealFast2SMSStrategy(api_key="key")

        receipt = await strategy.send("+919876543210", "482913")

        assert not receipt.delivered

    @pytest.mark.asyncio
    async def test_http_error_status_raises_provider_error(self, fast2sms_transport):
        fast2sms_transport["handler"] = lambda request: httpx.Response(
            500, text="upstream down"
        )
        strategy = RealFast2SMSStrategy(api_key="key")

        with pytest.raises(ProviderError):
            await strategy.send("+919876543210", "482913")

    @pytest.mark.asyncio
    async def test_network_error_raises_provider_error(self, fast2sms_transport):
        def fail(request):
            raise httpx.ConnectError("unreachable", request=request)

        fast2sms_transport["handler"] = fail
        strategy = RealFast2SMSStrategy(api_key="key")

        with pytest.raises(ProviderError):
            await strategy.send("+919876543210", "482913")

    @pytest.mark.asyncio
    async def test_requires_local_code(self):
        strategy = RealFast2SMSStrategy(api_key="key")

        with pytest.raises(ProviderError):
            await strategy.send("+919876543210", None)
