import copy
from unittest.mock import MagicMock

import pytest
import respx

from swapbot.domain.models import TokenRef, SwapIntent

WETH = "0x5300000000000000000000000000000000000004"
WSTETH = "0xf610A9dfB7C89644979b4A0f27063E9e7d7Cda32"
TAKER = "0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A"
PERMIT2 = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
CHAIN_ID = 534352

PRICE_APPROVED = {
    "blockNumber": "12345678",
    "buyAmount": "84000000000000000",
    "minBuyAmount": "83160000000000000",
    "liquidityAvailable": True,
    "issues": {
        "allowance": None,
        "balance": None,
        "simulationIncomplete": False,
        "invalidSourcesPassed": [],
    },
    "route": {
        "fills": [
            {"from": WETH, "to": WSTETH, "source": "Ambient", "proportionBps": "6000"},
            {"from": WETH, "to": WSTETH, "source": "Nuri", "proportionBps": "4000"},
        ],
        "tokens": [],
    },
    "tokenMetadata": {
        "buyToken": {"buyTaxBps": "0", "sellTaxBps": "0"},
        "sellToken": {"buyTaxBps": "0", "sellTaxBps": "0"},
    },
}


def price_needing_approval(spender: str = PERMIT2) -> dict:
    p = copy.deepcopy(PRICE_APPROVED)
    p["issues"]["allowance"] = {"actual": "0", "spender": spender}
    return p


def quote_from(price: dict, **overrides) -> dict:
    q = copy.deepcopy(price)
    q["permit2"] = {"type": "Permit2", "hash": "0xabc", "eip712": {}}
    q["transaction"] = {"to": "0xdef1", "data": "0x", "gas": "300000", "gasPrice": "10", "value": "0"}
    q.update(overrides)
    return q


@pytest.fixture
def mock_api():
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture
def intent() -> SwapIntent:
    return SwapIntent(
        chain_id=CHAIN_ID,
        sell_token=TokenRef(address=WETH, decimals=18),
        buy_token=TokenRef(address=WSTETH, decimals=18),
        sell_amount=10**17,
        taker=TAKER,
        affiliate_fee_bps=100,
        surplus_collection=True,
    )


@pytest.fixture
def chain():
    ch = MagicMock()
    ch.chain_id = CHAIN_ID
    ch.address = TAKER
    ch.token_ref.side_effect = lambda addr: TokenRef(address=addr, decimals=18)
    ch.allowance.return_value = 0
    ch.fn_approve.return_value = MagicMock(name="approve_fn")
    return ch


@pytest.fixture
def tx_service():
    tx = MagicMock()
    tx.simulate.return_value = {"gas": 60_000, "nonce": 7}
    tx.submit.return_value = "0x" + "ab" * 32
    tx.wait.return_value = {"status": 1, "blockNumber": 42}
    return tx
