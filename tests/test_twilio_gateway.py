"""Tests for the Twilio gateway against a mocked HTTP transport."""

from urllib.parse import parse_qs

import httpx
import pytest

from bookflow.config import DeliveryConfig
from bookflow.delivery import build_gateway
from bookflow.delivery.gateway import LoggingGateway
from bookflow.delivery.twilio import TwilioGateway
from bookflow.schemas.communication_schema import Channel


def twilio_config(**overrides) -> DeliveryConfig:
    fields = dict(
        backend="twilio",
        twilio_account_sid="AC123",
        twilio_auth_token="secret",
        twilio_from_number="+61400999999",
        twilio_api_base="https://api.twilio.test/2010-04-01",
        send_timeout_sec=5.0,
        app_url="http://localhost:3000",
    )
    fields.update(overrides)
    return DeliveryConfig(**fields)


class Recorder:
    def __init__(self, status_code=201):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"sid": "SM1"})


class TestTwilioGateway:
    @pytest.mark.asyncio
    async def test_sms_posts_form(self):
        recorder = Recorder()
        gateway = TwilioGateway(twilio_config(), transport=httpx.MockTransport(recorder))
        assert await gateway.send("+61400000001", "Hello", Channel.SMS)

        request = recorder.requests[0]
        assert request.url.path.endswith("/Accounts/AC123/Messages.json")
        form = parse_qs(request.content.decode())
        assert form["To"] == ["+61400000001"]
        assert form["From"] == ["+61400999999"]
        assert form["Body"] == ["Hello"]
        assert request.headers["authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_whatsapp_prefixes_numbers(self):
        recorder = Recorder()
        gateway = TwilioGateway(twilio_config(), transport=httpx.MockTransport(recorder))
        await gateway.send("+61400000001", "Hi", Channel.WHATSAPP)
        form = parse_qs(recorder.requests[0].content.decode())
        assert form["To"] == ["whatsapp:+61400000001"]
        assert form["From"] == ["whatsapp:+61400999999"]

    @pytest.mark.asyncio
    async def test_provider_rejection_returns_false(self):
        gateway = TwilioGateway(twilio_config(), transport=httpx.MockTransport(Recorder(400)))
        assert not await gateway.send("+61400000001", "Hi", Channel.SMS)

    @pytest.mark.asyncio
    async def test_network_error_returns_false(self):
        def boom(request):
            raise httpx.ConnectError("unreachable", request=request)

        gateway = TwilioGateway(twilio_config(), transport=httpx.MockTransport(boom))
        assert not await gateway.send("+61400000001", "Hi", Channel.SMS)

    @pytest.mark.asyncio
    async def test_non_e164_number_refused_locally(self):
        recorder = Recorder()
        gateway = TwilioGateway(twilio_config(), transport=httpx.MockTransport(recorder))
        assert not await gateway.send("0400000001", "Hi", Channel.SMS)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_unconfigured_sends_nothing(self):
        recorder = Recorder()
        gateway = TwilioGateway(twilio_config(twilio_auth_token=""),
                                transport=httpx.MockTransport(recorder))
        assert not gateway.configured
        assert not await gateway.send("+61400000001", "Hi", Channel.SMS)
        assert recorder.requests == []


class TestBuildGateway:
    def test_twilio_backend(self):
        assert isinstance(build_gateway(twilio_config()), TwilioGateway)

    def test_log_backend(self):
        assert isinstance(build_gateway(twilio_config(backend="log")), LoggingGateway)
