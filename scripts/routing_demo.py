"""
Command-line helper for routing demo orders and baskets.

Usage examples:
    python scripts/routing_demo.py order --token 0xToken --amount 20000

    python scripts/routing_demo.py basket --total 1000 \
        --alloc BTC:60 --alloc ETH:40 --fund-token 0xFund

    python scripts/routing_demo.py quote --amount 7500

Environment variables:
    INSTITUTIONAL_THRESHOLD (optional, defaults to 5000)
    BACKEND_URL (optional; route remotely and fall back to local simulation)
    RELAYER_URL / RELAYER_API_KEY / RELAYER_API_SECRET / RELAYER_ADDRESS
        (optional; settle through the relayer when --on-chain is given)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List

import config
from exchanges.ramp_backend import RampBackendClient
from exchanges.relayer import build_relayer_client
from execution.basket_router import BasketRouter
from execution.fallback import FallbackOrderExecutor
from execution.schemas import BasketAllocation
from execution.smart_router import SmartOrderRouter
from execution.validation import InvalidRequest


def _parse_allocation(raw: str) -> BasketAllocation:
    symbol, sep, percent = raw.partition(":")
    if not sep or not symbol.strip():
        raise argparse.ArgumentTypeError(f"Allocation must look like SYMBOL:PERCENT (got {raw!r})")
    try:
        value = float(percent)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid percent in allocation {raw!r}") from exc
    return BasketAllocation(symbol=symbol.strip().upper(), percent=value)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Smart order routing demo")
    parser.add_argument("--on-chain", action="store_true", help="Settle through the configured relayer")
    parser.add_argument("--recipient", help="Recipient address for settlements")
    parser.add_argument("--threshold", type=float, help="Override the institutional threshold (USD)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    order_parser = subparsers.add_parser("order", help="Route a single order")
    order_parser.add_argument("--token", required=True, help="Target token identifier")
    order_parser.add_argument("--amount", required=True, type=float, help="Order size in USD")

    basket_parser = subparsers.add_parser("basket", help="Route a basket of allocations")
    basket_parser.add_argument("--total", required=True, type=float, help="Basket size in USD")
    basket_parser.add_argument(
        "--alloc",
        required=True,
        action="append",
        type=_parse_allocation,
        help="Allocation as SYMBOL:PERCENT (repeatable, order preserved)",
    )
    basket_parser.add_argument("--fund-token", help="Fund token identifier for share minting")

    quote_parser = subparsers.add_parser("quote", help="Sample liquidity sources")
    quote_parser.add_argument("--amount", required=True, type=float, help="Order size in USD")
    return parser


def main(argv: List[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    )

    router = SmartOrderRouter(threshold_usd=args.threshold or config.INSTITUTIONAL_THRESHOLD_USD)
    basket_router = BasketRouter(
        router,
        default_token=config.DEFAULT_TOKEN_ADDRESS,
        fund_share_price_usd=config.FUND_SHARE_PRICE_USD,
    )

    if args.command == "quote":
        sources = router.sampler.sample_sources()
        print(json.dumps({"amountUsd": args.amount, "sources": [s.to_payload() for s in sources]}, indent=2))
        return 0

    executor = None
    if args.on_chain:
        executor = build_relayer_client(
            config.RELAYER_URL,
            api_key=config.RELAYER_API_KEY,
            api_secret=config.RELAYER_API_SECRET,
            address=config.RELAYER_ADDRESS,
            timeout=config.RELAYER_TIMEOUT_SECONDS,
        )
        if executor is None:
            print("Relayer is not configured; falling back to simulated settlement.", file=sys.stderr)

    backend = RampBackendClient(config.BACKEND_URL) if config.BACKEND_URL else None
    runner = FallbackOrderExecutor(basket_router, backend=backend)
    try:
        if args.command == "order":
            outcome = runner.execute_order(
                args.token,
                args.amount,
                recipient=args.recipient,
                settlement_executor=executor,
            )
        else:
            outcome = runner.execute_basket(
                args.alloc,
                args.total,
                fund_token_address=args.fund_token,
                recipient=args.recipient,
                settlement_executor=executor,
            )
    except InvalidRequest as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2
    finally:
        if backend is not None:
            backend.close()
        if executor is not None:
            executor.close()

    print(json.dumps(asdict(outcome), indent=2, ensure_ascii=False))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    sys.exit(main())
