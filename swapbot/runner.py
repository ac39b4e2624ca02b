"""
One-shot swap run: sources -> decimals -> price -> approval -> quote -> report.

Each step runs through `_step`, which turns the outcome into a StepResult.
The runner then looks at the step's policy: fatal steps abort the run with
SwapRunAborted, non-fatal ones are logged and the run moves on.
"""

import logging
from decimal import Decimal
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from web3 import Web3

from swapbot.chain import Chain
from swapbot.domain.models import SwapIntent, TokenRef, PriceResponse, QuoteResponse
from swapbot.exceptions import ErrorClass, RpcError, SwapRunAborted, classify
from swapbot.report import (
    liquidity_breakdown,
    parse_fills,
    parse_token_metadata,
    tax_breakdown,
    total_pct,
)
from swapbot.services.approval import ApprovalCoordinator, ApprovalResult
from swapbot.services.zero_ex import ZeroExClient
from swapbot.utils.formatters import to_raw_amount, fmt_amount
from swapbot.utils.log import log_info, log_warn, log_error
from swapbot.utils.serialization import dumps

FULL_ROUTE_PCT = Decimal("100.00")
ROUTE_PCT_TOLERANCE = Decimal("0.02")


@dataclass
class StepResult:
    name: str
    value: Any = None
    error: Optional[BaseException] = None
    kind: Optional[ErrorClass] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SwapReport:
    intent: Optional[SwapIntent] = None
    sources: List[str] = field(default_factory=list)
    price: Optional[PriceResponse] = None
    approval: Optional[ApprovalResult] = None
    quote: Optional[QuoteResponse] = None
    liquidity_lines: List[str] = field(default_factory=list)
    tax_lines: List[str] = field(default_factory=list)
    steps: Dict[str, StepResult] = field(default_factory=dict)


class SwapRunner:
    def __init__(self, chain: Chain, client: ZeroExClient, coordinator: ApprovalCoordinator):
        self.chain = chain
        self.client = client
        self.coordinator = coordinator
        self._logger = logging.getLogger(self.__class__.__name__)

    # ---------- step plumbing ----------

    def _step(self, report: SwapReport, name: str, fn: Callable[[], Any], *, fatal: bool) -> StepResult:
        try:
            res = StepResult(name=name, value=fn())
        except Exception as exc:
            res = StepResult(name=name, error=exc, kind=classify(exc))
            self._logger.error("step %s failed (%s): %s", name, res.kind.value, exc)
        report.steps[name] = res

        if res.error is not None and fatal:
            log_error(f"{name} failed, aborting run: {res.error}")
            raise SwapRunAborted(name, res.error) from res.error
        return res

    # ---------- steps ----------

    def discover_sources(self) -> List[str]:
        sources = self.client.get_sources(self.chain.chain_id)
        log_info(f"Liquidity sources for chain {self.chain.chain_id}: {', '.join(sources)}")
        return sources

    def build_intent(
        self,
        sell_token: str,
        buy_token: str,
        human_amount: str,
        affiliate_fee_bps: int,
        surplus_collection: bool,
    ) -> SwapIntent:
        sell = self.chain.token_ref(sell_token)
        sell_amount = to_raw_amount(human_amount, sell.decimals)
        intent = SwapIntent(
            chain_id=self.chain.chain_id,
            sell_token=sell,
            buy_token=self._buy_token_ref(buy_token),
            sell_amount=sell_amount,
            taker=self.chain.address,
            affiliate_fee_bps=int(affiliate_fee_bps),
            surplus_collection=bool(surplus_collection),
        )
        log_info(f"Selling {human_amount} ({sell_amount} raw, decimals={sell.decimals}) of {sell.address}")
        return intent

    def _buy_token_ref(self, buy_token: str) -> TokenRef:
        # only used to render amounts; pricing needs the address alone
        try:
            return self.chain.token_ref(buy_token)
        except RpcError as exc:
            log_warn(f"Could not read buy token decimals, amounts shown raw: {exc}")
            return TokenRef(address=Web3.to_checksum_address(buy_token))

    def fetch_price(self, intent: SwapIntent) -> PriceResponse:
        price = self.client.get_price(intent)
        log_info(f"Price response: {dumps(price.model_dump(by_alias=True))}")

        balance = price.issues.balance
        if balance is not None:
            # the API only reports balance issues for the sell token
            dec = intent.sell_token.decimals
            log_warn(
                f"Balance issue for {balance.token}: "
                f"have {fmt_amount(balance.actual or 0, dec)}, need {fmt_amount(balance.expected or 0, dec)}"
            )
        if price.buy_amount is not None:
            raw = int(price.buy_amount)
            dec = intent.buy_token.decimals
            log_info(f"Expected buy amount: {raw if dec is None else fmt_amount(raw, dec)}")
        return price

    def fetch_quote(self, intent: SwapIntent) -> QuoteResponse:
        quote = self.client.get_quote(intent)
        log_info(f"Quote response: {dumps(quote.model_dump(by_alias=True))}")
        return quote

    def build_report(self, report: SwapReport, quote: QuoteResponse):
        if quote.route:
            fills = parse_fills(quote.route)
            report.liquidity_lines = liquidity_breakdown(fills)
            total = total_pct(fills)
            if fills and abs(total - FULL_ROUTE_PCT) > ROUTE_PCT_TOLERANCE:
                log_warn(f"Route fills add up to {total:.2f}%, expected {FULL_ROUTE_PCT}%")
        if quote.token_metadata:
            report.tax_lines = tax_breakdown(parse_token_metadata(quote.token_metadata))
        for line in report.liquidity_lines + report.tax_lines:
            log_info(line)

    # ---------- run ----------

    def run(
        self,
        sell_token: str,
        buy_token: str,
        human_amount: str,
        affiliate_fee_bps: int = 100,
        surplus_collection: bool = True,
    ) -> SwapReport:
        report = SwapReport()

        # 1) informational
        src = self._step(report, "sources", self.discover_sources, fatal=False)
        if src.ok:
            report.sources = src.value
        else:
            log_warn(f"Could not list liquidity sources: {src.error}")

        # 2) decimals + amount; the intent is reused verbatim for price and quote
        report.intent = self._step(
            report, "decimals",
            lambda: self.build_intent(sell_token, buy_token, human_amount, affiliate_fee_bps, surplus_collection),
            fatal=True,
        ).value

        # 3) price
        report.price = self._step(report, "price", lambda: self.fetch_price(report.intent), fatal=True).value

        # 4) approval; the coordinator only raises in strict mode
        report.approval = self._step(
            report, "approval",
            lambda: self.coordinator.reconcile(report.intent.sell_token.address, report.price.issues.allowance),
            fatal=True,
        ).value

        # 5) quote
        report.quote = self._step(report, "quote", lambda: self.fetch_quote(report.intent), fatal=True).value

        # 6) report
        self._step(report, "report", lambda: self.build_report(report, report.quote), fatal=True)

        if report.approval is not None and not report.approval.ok:
            log_warn(f"Quote fetched but approval ended in state {report.approval.state.value}")
        return report
