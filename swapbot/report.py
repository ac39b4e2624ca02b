"""
Human-readable breakdowns derived from price/quote responses.

Pure functions: they return lines, the caller decides where to print them.
Numbers that do not parse raise ReportDataError; a wrong tax or fee figure
is worse than no figure.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from swapbot.domain.models import Fill, TokenMetadata, TokenTax
from swapbot.exceptions import ReportDataError
from swapbot.utils.formatters import bps_to_pct

TAX_SIDES = (("Buy Token", "buy_token"), ("Sell Token", "sell_token"))


def parse_fills(route: Optional[Dict[str, Any]]) -> List[Fill]:
    if not route:
        return []
    try:
        return [Fill.model_validate(f) for f in route.get("fills") or []]
    except ValidationError as exc:
        raise ReportDataError(f"malformed route fill: {exc}") from exc


def parse_token_metadata(raw: Optional[Dict[str, Any]]) -> TokenMetadata:
    try:
        return TokenMetadata.model_validate(raw or {})
    except ValidationError as exc:
        raise ReportDataError(f"malformed token metadata: {exc}") from exc


def liquidity_breakdown(fills: Sequence[Fill]) -> List[str]:
    lines = [f"{len(fills)} Sources"]
    for fill in fills:
        lines.append(f"{fill.source}: {bps_to_pct(fill.proportion_bps)}%")
    return lines


def total_pct(fills: Sequence[Fill]) -> Decimal:
    return sum((Decimal(f.proportion_bps) / 100 for f in fills), Decimal(0))


def _tax_lines(side: str, tax: Optional[TokenTax]) -> List[str]:
    if tax is None:
        return []
    lines = []
    if tax.buy_tax_bps:
        lines.append(f"{side} Buy Tax: {bps_to_pct(tax.buy_tax_bps)}%")
    if tax.sell_tax_bps:
        lines.append(f"{side} Sell Tax: {bps_to_pct(tax.sell_tax_bps)}%")
    return lines


def tax_breakdown(token_metadata: TokenMetadata) -> List[str]:
    lines = []
    for label, attr in TAX_SIDES:
        lines.extend(_tax_lines(label, getattr(token_metadata, attr)))
    return lines
