from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

ACCESS_TOKEN_MINT = "9tzZzEHsKnwFL1A3DyFJwj36KnZj3gZ7g4srWp9YTEoh"
ELIGIBILITY_THRESHOLD = Decimal(10_000)
PLATFORM_FEE_OWNER = "HZv4NzXpX2FCqCWNY7X2rF3E6YnnxQ7qSrPXUMZ2mu9R"
PLATFORM_FEE_BPS = 0

ARBITRAGE = "arbitrage"
PINGPONG = "pingpong"

DEFAULT_CONFIG_PATH = Path("config.yaml")
DEFAULT_CATALOG_PATH = Path("temp/tokens.json")


@dataclass(frozen=True)
class TokenRef:
    address: str
    symbol: str = ""


@dataclass(frozen=True)
class TradingConfig:
    token_a: TokenRef
    token_b: Optional[TokenRef]
    trading_strategy: str
    rpc: Tuple[str, ...]
    network: str = "mainnet-beta"
    trade_size: Decimal = Decimal(0)

    @property
    def requires_token_b(self) -> bool:
        return self.trading_strategy != ARBITRAGE

    @property
    def primary_rpc(self) -> str:
        return self.rpc[0]


@dataclass(frozen=True)
class AgentConfig:
    jupiter_base_url: str = "https://quote-api.jup.ag/v6"
    token_list_url: str = "https://token.jup.ag/strict"
    request_timeout: float = 10.0
    retries: int = 0
    commitment: str = "confirmed"


def _token_ref(raw: Any, key: str) -> Optional[TokenRef]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return TokenRef(address=raw)
    if not isinstance(raw, dict) or not raw.get("address"):
        raise ConfigError(f"{key} must be a mapping with an address")
    return TokenRef(address=str(raw["address"]), symbol=str(raw.get("symbol", "")))


def parse_trading_config(raw: Dict[str, Any]) -> TradingConfig:
    if not isinstance(raw, dict):
        raise ConfigError("trading config must be a mapping")

    token_a = _token_ref(raw.get("tokenA"), "tokenA")
    if token_a is None:
        raise ConfigError("tokenA is required")
    token_b = _token_ref(raw.get("tokenB"), "tokenB")

    strategy = str(raw.get("tradingStrategy", PINGPONG))
    if strategy != ARBITRAGE and token_b is None:
        raise ConfigError(f"tokenB is required for the {strategy} strategy")

    rpc = raw.get("rpc") or []
    if isinstance(rpc, str):
        rpc = [rpc]
    if not rpc:
        raise ConfigError("rpc must list at least one endpoint")

    trade_size = raw.get("tradeSize", 0)
    if isinstance(trade_size, dict):
        trade_size = trade_size.get("value", 0)
    try:
        size = Decimal(str(trade_size))
    except InvalidOperation:
        raise ConfigError(f"tradeSize is not a number: {trade_size!r}") from None

    return TradingConfig(
        token_a=token_a,
        token_b=token_b,
        trading_strategy=strategy,
        rpc=tuple(str(url) for url in rpc),
        network=str(raw.get("network", "mainnet-beta")),
        trade_size=size,
    )


def load_trading_config(config_path: Path = DEFAULT_CONFIG_PATH) -> TradingConfig:
    try:
        with Path(config_path).open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError:
        raise ConfigError(
            f"config file {config_path} not found",
            hint="Create the trading config file first (see config.example.yaml).",
        ) from None
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"config file {config_path} could not be read: {exc}") from exc
    return parse_trading_config(raw)
