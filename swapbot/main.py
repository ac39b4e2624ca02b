# swapbot/main.py
"""
One-shot swap runner (0x permit2 flow).

Steps:
- List liquidity sources for the chain (informational).
- Read sell token decimals and convert the human amount.
- Request an indicative price.
- Approve the spender for an unbounded allowance when the price reports an allowance issue.
- Request the firm quote with the same parameters.
- Print the liquidity-source and token-tax breakdowns.

Signing and sending the swap transaction itself is not done here.

Usage:
    python -m swapbot.main [--amount 0.1] [--strict-approval] [--read-only]
"""

import argparse
import logging
import sys

from swapbot.config import get_settings
from swapbot.chain import Chain
from swapbot.exceptions import ConfigurationError, SwapRunAborted
from swapbot.runner import SwapRunner
from swapbot.services.approval import ApprovalCoordinator
from swapbot.services.tx_service import TxService
from swapbot.services.zero_ex import ZeroExClient
from swapbot.utils.log import log_error, log_ok, setup_logging

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Price, approve and quote a single token swap via 0x.")
    parser.add_argument("--sell-token", type=str, help="ERC20 address to sell (default: SELL_TOKEN)")
    parser.add_argument("--buy-token", type=str, help="ERC20 address to buy (default: BUY_TOKEN)")
    parser.add_argument("--amount", type=str, help="Human sell amount, e.g. 0.1 (default: SELL_AMOUNT)")
    parser.add_argument("--affiliate-fee-bps", type=int, help="Affiliate fee in bps (default: AFFILIATE_FEE_BPS)")
    parser.add_argument("--no-surplus-collection", action="store_true", help="Disable surplus collection.")
    parser.add_argument("--strict-approval", action="store_true",
                        help="Abort before quoting when the approval fails to simulate or confirm.")
    parser.add_argument("--read-only", action="store_true", help="Simulate approvals but never broadcast.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        s = get_settings()
    except ConfigurationError as e:
        log_error(str(e))
        return EXIT_CONFIG

    setup_logging(s.log_level)

    chain = Chain(s.rpc_url, s.private_key, s.chain_id)
    coordinator = ApprovalCoordinator(
        chain,
        TxService(chain),
        strict=args.strict_approval or s.strict_approval,
        read_only=args.read_only or s.read_only_mode,
        receipt_timeout=s.receipt_timeout_sec,
    )

    with ZeroExClient(
        s.zero_ex_api_key,
        base_url=s.zero_ex_base_url,
        version=s.zero_ex_version,
        timeout_sec=s.http_timeout_sec,
    ) as client:
        runner = SwapRunner(chain, client, coordinator)
        try:
            runner.run(
                sell_token=args.sell_token or s.sell_token,
                buy_token=args.buy_token or s.buy_token,
                human_amount=args.amount or s.sell_amount,
                affiliate_fee_bps=s.affiliate_fee_bps if args.affiliate_fee_bps is None else args.affiliate_fee_bps,
                surplus_collection=s.surplus_collection and not args.no_surplus_collection,
            )
        except SwapRunAborted as e:
            logging.getLogger(__name__).debug("aborted", exc_info=e.cause)
            log_error(f"Run aborted at '{e.step}' ({e.kind.value}): {e.cause}")
            return EXIT_ABORTED

    log_ok("Run complete. Swap transaction signing/submission is left to the caller.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
