import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .bootstrap import BootstrapOrchestrator
from .catalog import refresh_catalog
from .config import ARBITRAGE, DEFAULT_CATALOG_PATH, DEFAULT_CONFIG_PATH, AgentConfig
from .errors import BootstrapError, BootstrapFailure, QuoteError
from .http_client import HttpClient
from .quote import amount_to_smallest_units, get_initial_out_amount

LOG = logging.getLogger("dex_bootstrap")

EXIT_BOOTSTRAP_FAILED = 1
EXIT_QUOTE_FAILED = 2


def configure_logging(level: str = "INFO") -> None:
    fmt = logging.Formatter(fmt="%(asctime)sZ %(levelname)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
    fmt.converter = time.gmtime
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


def run(args: argparse.Namespace) -> int:
    agent_config = AgentConfig(jupiter_base_url=args.jupiter_url)
    orchestrator = BootstrapOrchestrator.default(
        agent_config=agent_config,
        config_path=args.config,
        catalog_path=args.catalog,
    )
    try:
        result = orchestrator.run()
    except BootstrapFailure as failure:
        LOG.error("Setting up failed at stage '%s': %s", failure.stage.label, failure.error)
        if failure.hint:
            LOG.error(failure.hint)
        return EXIT_BOOTSTRAP_FAILED

    output_token = result.token_a if result.config.trading_strategy == ARBITRAGE else result.token_b
    if args.amount is not None:
        amount = args.amount
    else:
        amount = amount_to_smallest_units(result.config.trade_size, result.token_a.decimals)

    try:
        out_amount = get_initial_out_amount(result.session, result.token_a, output_token, amount)
    except QuoteError as exc:
        LOG.error("Computing routes failed: %s", exc)
        LOG.error(exc.hint)
        return EXIT_QUOTE_FAILED

    print(f"{result.token_a.symbol} -> {output_token.symbol}: {amount} in, {out_amount} out")
    return 0


def refresh(args: argparse.Namespace) -> int:
    agent_config = AgentConfig()
    http = HttpClient.from_config(agent_config)
    try:
        count = refresh_catalog(http, args.url or agent_config.token_list_url, args.catalog)
    except BootstrapError as exc:
        LOG.error("Refreshing tokens failed: %s", exc)
        LOG.error(exc.hint)
        return EXIT_BOOTSTRAP_FAILED
    print(f"{count} tokens written to {args.catalog}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Jupiter trading bot bootstrap")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Bootstrap a session and probe the initial quote")
    run_parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    run_parser.add_argument("--catalog", type=Path, default=DEFAULT_CATALOG_PATH)
    run_parser.add_argument("--amount", type=int, default=None, help="Amount in smallest units; defaults to tradeSize")
    run_parser.add_argument("--jupiter-url", default=AgentConfig.jupiter_base_url)
    run_parser.set_defaults(func=run)

    refresh_parser = sub.add_parser("refresh-catalog", help="Download the token list into the catalog file")
    refresh_parser.add_argument("--catalog", type=Path, default=DEFAULT_CATALOG_PATH)
    refresh_parser.add_argument("--url", default=None)
    refresh_parser.set_defaults(func=refresh)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    load_dotenv()
    configure_logging(args.log_level)
    sys.exit(args.func(args))
