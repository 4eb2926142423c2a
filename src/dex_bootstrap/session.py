import logging

from requests import RequestException
from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solders.pubkey import Pubkey

from .config import PLATFORM_FEE_BPS, PLATFORM_FEE_OWNER
from .errors import SessionBuildError
from .jupiter import JupiterClient, get_platform_fee_accounts
from .models import Credential, PlatformFee, Session

LOG = logging.getLogger(__name__)


def build_session(
    connection,
    credential: Credential,
    cluster: str,
    aggregator: JupiterClient,
    fee_owner: str = PLATFORM_FEE_OWNER,
    fee_bps: int = PLATFORM_FEE_BPS,
    restrict_intermediate_tokens: bool = True,
) -> Session:
    try:
        fee_accounts = get_platform_fee_accounts(connection, Pubkey.from_string(fee_owner))
    except (SolanaRpcException, RPCException, KeyError, TypeError, ValueError) as exc:
        raise SessionBuildError(f"platform fee accounts for {fee_owner} could not be resolved: {exc}") from exc

    platform_fee = PlatformFee(fee_bps=fee_bps, fee_accounts=fee_accounts)
    try:
        session = aggregator.load(
            connection=connection,
            cluster=cluster,
            user=credential,
            platform_fee=platform_fee,
            restrict_intermediate_tokens=restrict_intermediate_tokens,
        )
    except (RequestException, ValueError) as exc:
        raise SessionBuildError(f"loading Jupiter failed: {exc}") from exc

    LOG.info("Session ready on %s with %d fee accounts", cluster, len(fee_accounts))
    return session
