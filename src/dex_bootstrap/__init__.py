from .bootstrap import BootstrapOrchestrator, Stage
from .catalog import TokenCatalog, load_catalog, refresh_catalog, resolve_pair
from .config import AgentConfig, TokenRef, TradingConfig, load_trading_config
from .credentials import credential_from_env, resolve_credential
from .errors import (
    BootstrapError,
    BootstrapFailure,
    CatalogError,
    ConfigError,
    CredentialError,
    EligibilityError,
    NoRouteError,
    QuoteError,
    RpcConnectionError,
    SessionBuildError,
)
from .models import BootstrapResult, Credential, EligibilityResult, Route, RouteQuote, Session, TokenDescriptor
from .quote import get_initial_out_amount

__all__ = [
    "AgentConfig",
    "BootstrapError",
    "BootstrapFailure",
    "BootstrapOrchestrator",
    "BootstrapResult",
    "CatalogError",
    "ConfigError",
    "Credential",
    "CredentialError",
    "EligibilityError",
    "EligibilityResult",
    "NoRouteError",
    "QuoteError",
    "Route",
    "RouteQuote",
    "RpcConnectionError",
    "Session",
    "SessionBuildError",
    "Stage",
    "TokenCatalog",
    "TokenDescriptor",
    "TokenRef",
    "TradingConfig",
    "credential_from_env",
    "get_initial_out_amount",
    "load_catalog",
    "load_trading_config",
    "refresh_catalog",
    "resolve_credential",
    "resolve_pair",
]
