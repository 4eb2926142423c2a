"""Error taxonomy for the bootstrap pipeline and the quote probe."""

from __future__ import annotations

from typing import Optional


class BootstrapError(RuntimeError):
    """Base class for every pipeline failure; carries a remediation hint."""

    default_hint = ""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint if hint is not None else self.default_hint


class ConfigError(BootstrapError):
    default_hint = "Check the trading config file (tokenA, rpc, tradingStrategy)."


class CredentialError(BootstrapError):
    default_hint = "Check that WALLET_PRIVATE_KEY in your environment or .env file is correct."


class RpcConnectionError(BootstrapError):
    default_hint = "Check the first rpc endpoint in the trading config."


class EligibilityError(BootstrapError):
    default_hint = "Must hold 10,000 ARB in the configured wallet."

    def __init__(self, message: str, result=None, hint: Optional[str] = None) -> None:
        super().__init__(message, hint=hint)
        self.result = result


class CatalogError(BootstrapError):
    default_hint = "Run the catalog-refresh step first: `python main.py refresh-catalog`."


class SessionBuildError(BootstrapError):
    default_hint = "Loading the Jupiter session failed; check the rpc endpoint and network."


class QuoteError(BootstrapError):
    default_hint = "Computing routes failed; check token addresses and the aggregator endpoint."


class NoRouteError(QuoteError):
    default_hint = "No routes found for this pair and amount. Something is wrong!"


class BootstrapFailure(RuntimeError):
    """Raised by the orchestrator once it has entered the failed state."""

    def __init__(self, stage, error: BaseException) -> None:
        self.stage = stage
        self.error = error
        self.hint = getattr(error, "hint", "")
        super().__init__(f"{stage.label} failed: {error}")
