import pytest
import requests
from razorpay.errors import BadRequestError, ServerError

from cinepay.core.exceptions import GatewayUnavailable, UpstreamFailure
from cinepay.services import gateway as gateway_module
from cinepay.services.gateway import RazorpayGateway


class StubResource:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def _respond(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    create = _respond
    refund = _respond


class StubClient:
    instances = []

    def __init__(self, auth=None):
        self.auth = auth
        self.order = StubResource({"id": "order_ABC", "amount": 49950, "currency": "INR", "receipt": "BK0001", "status": "created"})
        self.payment = StubResource({"id": "rfnd_1", "amount": 10000, "status": "processed"})
        StubClient.instances.append(self)


@pytest.fixture
def sdk(monkeypatch):
    StubClient.instances = []
    monkeypatch.setattr(gateway_module.razorpay, "Client", StubClient)
    return StubClient


def test_client_built_with_key_pair(sdk):
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    assert gateway.configured is True
    assert gateway.key_id == "rzp_test_key"
    assert sdk.instances[0].auth == ("rzp_test_key", "rzp_test_secret")


def test_create_order_passes_payload_and_timeout(sdk):
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret", timeout=3.0)
    order = gateway.create_order(49950, "INR", "BK0001", {"bookingId": "B1"})

    assert order.id == "order_ABC"
    assert order.amount == 49950
    assert order.status == "created"
    args, kwargs = sdk.instances[0].order.calls[0]
    assert args == ({"amount": 49950, "currency": "INR", "receipt": "BK0001", "notes": {"bookingId": "B1"}},)
    assert kwargs == {"timeout": 3.0}


def test_refund_targets_payment(sdk):
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    refund = gateway.refund("pay_1", 10000, {"bookingId": "B1"})

    assert refund.id == "rfnd_1"
    assert refund.status == "processed"
    args, _ = sdk.instances[0].payment.calls[0]
    assert args == ("pay_1", {"amount": 10000, "notes": {"bookingId": "B1"}})


@pytest.mark.parametrize("error", [
    BadRequestError("The amount must be atleast INR 1.00"),
    ServerError("upstream down"),
    requests.exceptions.ReadTimeout("timed out"),
    requests.exceptions.ConnectionError("reset"),
])
def test_sdk_errors_become_upstream_failure(sdk, error):
    gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
    sdk.instances[0].order.error = error

    with pytest.raises(UpstreamFailure) as exc:
        gateway.create_order(10, "INR", "BK0001", {})
    assert exc.value.status_code == 500
    assert exc.value.message == "Server error while creating payment order"


def test_unconfigured_gateway_refuses_calls(sdk):
    gateway = RazorpayGateway("", "")
    assert gateway.configured is False
    assert gateway.key_id is None
    assert sdk.instances == []
    with pytest.raises(GatewayUnavailable):
        gateway.create_order(100, "INR", "BK0001", {})
    with pytest.raises(GatewayUnavailable):
        gateway.refund("pay_1", 100, {})
