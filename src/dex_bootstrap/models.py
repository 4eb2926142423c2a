from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config import TradingConfig


@dataclass(frozen=True)
class Credential:
    keypair: Keypair
    secret: bytes

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    def __repr__(self) -> str:
        return f"Credential(pubkey={self.pubkey})"


@dataclass(frozen=True)
class TokenDescriptor:
    address: str
    symbol: str
    name: str
    decimals: int
    logo_uri: Optional[str] = None
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EligibilityResult:
    total: Decimal
    threshold: Decimal
    accounts: int

    @property
    def passed(self) -> bool:
        return not self.total < self.threshold


@dataclass(frozen=True)
class PlatformFee:
    fee_bps: int
    fee_accounts: Dict[str, str]


@dataclass(frozen=True)
class Route:
    in_amount: int
    out_amount: int
    other_amount_threshold: int
    price_impact_pct: Decimal
    labels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RouteQuote:
    routes: Tuple[Route, ...]

    @property
    def best(self) -> Optional[Route]:
        return self.routes[0] if self.routes else None


@dataclass(frozen=True)
class Session:
    connection: Any
    credential: Credential
    cluster: str
    platform_fee: PlatformFee
    restrict_intermediate_tokens: bool
    aggregator: Any
    amm_labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BootstrapResult:
    session: Session
    token_a: TokenDescriptor
    token_b: Optional[TokenDescriptor]
    config: Optional[TradingConfig] = None
