import logging
from decimal import Decimal

from requests import RequestException
from solders.pubkey import Pubkey

from .errors import NoRouteError, QuoteError
from .models import Session, TokenDescriptor

LOG = logging.getLogger(__name__)


def amount_to_smallest_units(size: Decimal, decimals: int) -> int:
    return int(Decimal(size) * (Decimal(10) ** decimals))


def get_initial_out_amount(
    session: Session,
    input_token: TokenDescriptor,
    output_token: TokenDescriptor,
    amount: int,
) -> int:
    """Compute routes once, bypassing the route cache, and return the best out amount.

    Raises NoRouteError when the aggregator has no route; every other failure
    is a QuoteError. The caller decides whether a missing quote is fatal.
    """
    LOG.info("Computing routes %s -> %s for %d", input_token.symbol, output_token.symbol, amount)
    try:
        quote = session.aggregator.compute_routes(
            session,
            input_mint=Pubkey.from_string(input_token.address),
            output_mint=Pubkey.from_string(output_token.address),
            amount=amount,
            slippage_bps=0,
            force_fetch=True,
        )
    except (RequestException, ValueError) as exc:
        raise QuoteError(f"computing routes {input_token.symbol} -> {output_token.symbol} failed: {exc}") from exc

    best = quote.best
    if best is None:
        raise NoRouteError(f"no routes found {input_token.symbol} -> {output_token.symbol} for amount {amount}")

    LOG.info("Routes computed: %d candidates, best out amount %d", len(quote.routes), best.out_amount)
    return best.out_amount
