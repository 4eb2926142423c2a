"""Access-token holding gate.

The wallet must hold at least ``ELIGIBILITY_THRESHOLD`` of the access token,
summed across every token account it owns for that mint, before a session
is built. The gate is fatal: there is no retry.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from solana.exceptions import SolanaRpcException
from solana.rpc.core import RPCException
from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey

from .config import ACCESS_TOKEN_MINT, ELIGIBILITY_THRESHOLD
from .errors import EligibilityError
from .models import EligibilityResult

LOG = logging.getLogger(__name__)


def _ui_amount(keyed_account: Any) -> Decimal:
    try:
        amount = keyed_account.account.data.parsed["info"]["tokenAmount"]["uiAmount"]
    except (AttributeError, KeyError, TypeError):
        return Decimal(0)
    if amount is None:
        return Decimal(0)
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        return Decimal(0)
    return value if value.is_finite() else Decimal(0)


def total_holdings(accounts: Iterable[Any]) -> Decimal:
    return sum((_ui_amount(account) for account in accounts), Decimal(0))


def check_eligibility(
    connection,
    owner: Pubkey,
    mint: str = ACCESS_TOKEN_MINT,
    threshold: Decimal = ELIGIBILITY_THRESHOLD,
) -> EligibilityResult:
    try:
        response = connection.get_token_accounts_by_owner_json_parsed(
            owner, TokenAccountOpts(mint=Pubkey.from_string(mint))
        )
        accounts = list(response.value)
    except (SolanaRpcException, RPCException, ValueError) as exc:
        raise EligibilityError(f"holding query for {mint} failed: {exc}") from exc

    result = EligibilityResult(total=total_holdings(accounts), threshold=threshold, accounts=len(accounts))
    if not result.passed:
        raise EligibilityError(
            f"wallet {owner} holds {result.total} of {mint} across {result.accounts} accounts, "
            f"needs {threshold}",
            result=result,
        )

    LOG.info("Eligibility ok: %s held across %d accounts", result.total, result.accounts)
    return result
