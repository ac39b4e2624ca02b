from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, AliasChoices


class _ApiModel(BaseModel):
    # aggregator payloads are camelCase and grow new fields over time
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TokenRef(BaseModel):
    address: str
    # None when the token could not be read (e.g. native ETH placeholder)
    decimals: Optional[int] = Field(default=None, ge=0)


class SwapIntent(BaseModel):
    """
    Parameters shared verbatim by the price and the quote request.
    Built once per run.
    """
    model_config = ConfigDict(frozen=True)

    chain_id: int
    sell_token: TokenRef
    buy_token: TokenRef
    sell_amount: int = Field(ge=0)     # smallest unit
    taker: str
    affiliate_fee_bps: int = Field(ge=0)
    surplus_collection: bool = True

    def to_params(self) -> Dict[str, str]:
        return {
            "chainId": str(self.chain_id),
            "sellToken": self.sell_token.address,
            "buyToken": self.buy_token.address,
            "sellAmount": str(self.sell_amount),
            "taker": self.taker,
            "affiliateFee": str(self.affiliate_fee_bps),
            "surplusCollection": "true" if self.surplus_collection else "false",
        }


class AllowanceIssue(_ApiModel):
    """Spender lacks authorization for the intended sell amount."""
    spender: str
    actual: int = Field(default=0, validation_alias=AliasChoices("actual", "currentAllowance"))


class BalanceIssue(_ApiModel):
    token: Optional[str] = None
    actual: Optional[int] = None
    expected: Optional[int] = None


class Issues(_ApiModel):
    # None means "no approval transaction required"
    allowance: Optional[AllowanceIssue] = None
    balance: Optional[BalanceIssue] = None


class Fill(_ApiModel):
    source: str
    proportion_bps: int = Field(alias="proportionBps", ge=0, le=10_000)


class TokenTax(_ApiModel):
    # null when the API could not determine the tax
    buy_tax_bps: Optional[int] = Field(default=None, alias="buyTaxBps", ge=0)
    sell_tax_bps: Optional[int] = Field(default=None, alias="sellTaxBps", ge=0)


class TokenMetadata(_ApiModel):
    buy_token: Optional[TokenTax] = Field(default=None, alias="buyToken")
    sell_token: Optional[TokenTax] = Field(default=None, alias="sellToken")


class PriceResponse(_ApiModel):
    """
    Indicative price. `route` and `tokenMetadata` stay raw here;
    the report module parses them so a malformed number fails the report.
    """
    issues: Issues = Field(default_factory=Issues)
    liquidity_available: Optional[bool] = Field(default=None, alias="liquidityAvailable")
    buy_amount: Optional[str] = Field(default=None, alias="buyAmount")
    min_buy_amount: Optional[str] = Field(default=None, alias="minBuyAmount")
    route: Optional[Dict[str, Any]] = None
    token_metadata: Optional[Dict[str, Any]] = Field(default=None, alias="tokenMetadata")


class QuoteResponse(PriceResponse):
    """Firm quote: same fields plus the executable payload (consumed elsewhere)."""
    transaction: Optional[Dict[str, Any]] = None
    permit2: Optional[Dict[str, Any]] = None
