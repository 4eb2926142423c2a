"""Cached token catalog: loading, lookup and refresh."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from requests import RequestException

from .config import DEFAULT_CATALOG_PATH, TradingConfig
from .errors import CatalogError
from .http_client import HttpClient
from .models import TokenDescriptor

LOG = logging.getLogger(__name__)


def parse_token(entry: Dict[str, Any]) -> TokenDescriptor:
    try:
        decimals = int(entry.get("decimals", 0))
    except (TypeError, ValueError):
        raise CatalogError(f"token {entry.get('address')!r} has invalid decimals") from None
    return TokenDescriptor(
        address=str(entry["address"]),
        symbol=str(entry.get("symbol", "")),
        name=str(entry.get("name", "")),
        decimals=decimals,
        logo_uri=entry.get("logoURI"),
        tags=tuple(entry.get("tags") or ()),
    )


@dataclass(frozen=True)
class TokenCatalog:
    tokens: Tuple[TokenDescriptor, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_address", {token.address: token for token in self.tokens})

    def __len__(self) -> int:
        return len(self.tokens)

    def find(self, address: str) -> Optional[TokenDescriptor]:
        return self._by_address.get(address)


def load_catalog(path: Path = DEFAULT_CATALOG_PATH) -> TokenCatalog:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise CatalogError(f"token catalog {path} not found") from None
    except (OSError, ValueError) as exc:
        raise CatalogError(f"token catalog {path} is not readable JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise CatalogError(f"token catalog {path} must contain an array of tokens")

    tokens: List[TokenDescriptor] = []
    for entry in raw:
        if isinstance(entry, dict) and entry.get("address"):
            tokens.append(parse_token(entry))
    LOG.info("Loaded %d tokens from %s", len(tokens), path)
    return TokenCatalog(tokens=tuple(tokens))


def resolve_pair(
    catalog: TokenCatalog, config: TradingConfig
) -> Tuple[TokenDescriptor, Optional[TokenDescriptor]]:
    token_a = catalog.find(config.token_a.address)
    if token_a is None:
        raise CatalogError(f"tokenA {config.token_a.address} is not in the token catalog")

    if not config.requires_token_b:
        return token_a, None

    token_b = catalog.find(config.token_b.address) if config.token_b else None
    if token_b is None:
        address = config.token_b.address if config.token_b else None
        raise CatalogError(f"tokenB {address} is not in the token catalog")
    return token_a, token_b


def refresh_catalog(http: HttpClient, url: str, path: Path = DEFAULT_CATALOG_PATH) -> int:
    """Download the aggregator token list and store it as the catalog."""
    try:
        tokens = http.fetch_json(url)
    except (RequestException, ValueError) as exc:
        raise CatalogError(f"token list download from {url} failed: {exc}", hint="Check network access.") from exc
    if not isinstance(tokens, list):
        raise CatalogError(f"token list from {url} is not an array", hint="Check the token list url.")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(tokens), encoding="utf-8")
    LOG.info("Wrote %d tokens to %s", len(tokens), path)
    return len(tokens)
