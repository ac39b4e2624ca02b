import httpx
import pytest
from httpx import Response

from swapbot.exceptions import AggregatorHttpError, ErrorClass
from swapbot.services.zero_ex import ZeroExClient

from conftest import PRICE_APPROVED, PERMIT2, price_needing_approval, quote_from, CHAIN_ID

HOST = "api.0x.org"


@pytest.fixture
def client():
    with ZeroExClient(api_key="test-key", base_url="https://api.0x.org/") as c:
        yield c


def test_sources_sends_auth_headers_and_returns_names(mock_api, client) -> None:
    route = mock_api.get(host=HOST, path="/swap/v1/sources").mock(
        return_value=Response(200, json={"sources": {"Uniswap_V3": "uniswap_v3", "Ambient": "ambient"}})
    )

    assert client.get_sources(CHAIN_ID) == ["Uniswap_V3", "Ambient"]

    req = route.calls.last.request
    assert req.headers["0x-api-key"] == "test-key"
    assert req.headers["0x-version"] == "v2"
    assert req.url.params["chainId"] == str(CHAIN_ID)


def test_price_uses_intent_params(mock_api, client, intent) -> None:
    route = mock_api.get(host=HOST, path="/swap/permit2/price").mock(
        return_value=Response(200, json=PRICE_APPROVED)
    )

    price = client.get_price(intent)

    assert dict(route.calls.last.request.url.params) == intent.to_params()
    assert price.issues.allowance is None
    assert price.buy_amount == "84000000000000000"
    assert price.route["fills"][0]["source"] == "Ambient"


def test_intent_params_shape(intent) -> None:
    assert intent.to_params() == {
        "chainId": "534352",
        "sellToken": intent.sell_token.address,
        "buyToken": intent.buy_token.address,
        "sellAmount": "100000000000000000",
        "taker": intent.taker,
        "affiliateFee": "100",
        "surplusCollection": "true",
    }


def test_quote_parses_allowance_issue(mock_api, client, intent) -> None:
    mock_api.get(host=HOST, path="/swap/permit2/quote").mock(
        return_value=Response(200, json=quote_from(price_needing_approval()))
    )

    quote = client.get_quote(intent)

    assert quote.issues.allowance.spender == PERMIT2
    assert quote.issues.allowance.actual == 0
    assert quote.transaction["to"] == "0xdef1"


def test_non_2xx_raises_and_keeps_body(mock_api, client, intent) -> None:
    mock_api.get(host=HOST, path="/swap/permit2/price").mock(
        return_value=Response(400, json={"name": "INPUT_INVALID", "message": "bad sellAmount"})
    )

    with pytest.raises(AggregatorHttpError) as exc:
        client.get_price(intent)

    assert exc.value.status_code == 400
    assert "INPUT_INVALID" in exc.value.body
    assert exc.value.kind is ErrorClass.TRANSPORT


def test_transport_failure_raises_without_status(mock_api, client) -> None:
    mock_api.get(host=HOST, path="/swap/v1/sources").mock(side_effect=httpx.ConnectError("boom"))

    with pytest.raises(AggregatorHttpError) as exc:
        client.get_sources(CHAIN_ID)

    assert exc.value.status_code is None
