import logging
from urllib.parse import urlparse

from solana.rpc.api import Client
from solana.rpc.commitment import Commitment

from .errors import RpcConnectionError

LOG = logging.getLogger(__name__)


def open_connection(endpoint: str, commitment: str = "confirmed", timeout: float = 10.0) -> Client:
    parsed = urlparse(endpoint or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RpcConnectionError(f"malformed rpc endpoint: {endpoint!r}")

    try:
        client = Client(endpoint, commitment=Commitment(commitment), timeout=timeout)
    except (TypeError, ValueError) as exc:
        raise RpcConnectionError(f"could not create rpc client for {endpoint}: {exc}") from exc

    LOG.info("Connection set up for %s", parsed.netloc)
    return client
