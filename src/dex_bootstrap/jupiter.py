import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_PROGRAM_ID

from .errors import QuoteError
from .http_client import HttpClient
from .models import Credential, PlatformFee, Route, RouteQuote, Session

LOG = logging.getLogger(__name__)

NO_ROUTE_ERROR_CODES = frozenset({"COULD_NOT_FIND_ANY_ROUTE", "NO_ROUTES_FOUND", "TOKEN_NOT_TRADABLE"})
CIRCULAR_ARBITRAGE_ERROR_CODE = "CIRCULAR_ARBITRAGE_IS_DISABLED"


def get_platform_fee_accounts(connection, owner: Pubkey) -> Dict[str, str]:
    """Map each mint to the owner's token account that collects the platform fee."""
    response = connection.get_token_accounts_by_owner_json_parsed(owner, TokenAccountOpts(program_id=TOKEN_PROGRAM_ID))
    fee_accounts: Dict[str, str] = {}
    for keyed in response.value:
        mint = keyed.account.data.parsed["info"]["mint"]
        fee_accounts[str(mint)] = str(keyed.pubkey)
    return fee_accounts


class JupiterClient:
    def __init__(self, base_url: str, http: HttpClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http

    def load(
        self,
        connection,
        cluster: str,
        user: Credential,
        platform_fee: PlatformFee,
        restrict_intermediate_tokens: bool = True,
    ) -> Session:
        labels = self.http.fetch_json(f"{self.base_url}/program-id-to-label")
        if not isinstance(labels, dict):
            raise ValueError("program-id-to-label response is not an object")
        LOG.info("Jupiter loaded with %d known programs on %s", len(labels), cluster)
        return Session(
            connection=connection,
            credential=user,
            cluster=cluster,
            platform_fee=platform_fee,
            restrict_intermediate_tokens=restrict_intermediate_tokens,
            aggregator=self,
            amm_labels={str(k): str(v) for k, v in labels.items()},
        )

    def quote_params(
        self,
        in_mint: str,
        out_mint: str,
        amount: int,
        slippage_bps: int,
        restrict_intermediate_tokens: bool,
        platform_fee_bps: int = 0,
    ) -> Dict[str, str]:
        params = {
            "inputMint": in_mint,
            "outputMint": out_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
            "swapMode": "ExactIn",
            "restrictIntermediateTokens": "true" if restrict_intermediate_tokens else "false",
        }
        if platform_fee_bps > 0:
            params["platformFeeBps"] = str(platform_fee_bps)
        return params

    def parse_route(self, response: Dict[str, Any], amm_labels: Dict[str, str]) -> Route:
        try:
            out_amount = int(response["outAmount"])
            in_amount = int(response["inAmount"])
            threshold = int(response.get("otherAmountThreshold", out_amount))
        except (KeyError, TypeError, ValueError):
            raise ValueError("Jupiter quote response missing or bad amounts") from None

        try:
            price_impact = Decimal(str(response.get("priceImpactPct", "0")))
        except InvalidOperation:
            price_impact = Decimal(0)

        labels: List[str] = []
        for step in response.get("routePlan") or []:
            info = step.get("swapInfo") if isinstance(step, dict) else None
            if not isinstance(info, dict):
                raise ValueError("Jupiter quote response has a malformed routePlan step")
            amm_key = str(info.get("ammKey", ""))
            labels.append(info.get("label") or amm_labels.get(amm_key, amm_key))

        return Route(
            in_amount=in_amount,
            out_amount=out_amount,
            other_amount_threshold=threshold,
            price_impact_pct=price_impact,
            labels=tuple(labels),
        )

    def compute_routes(
        self,
        session: Session,
        input_mint: Pubkey,
        output_mint: Pubkey,
        amount: int,
        slippage_bps: int,
        force_fetch: bool = False,
    ) -> RouteQuote:
        params = self.quote_params(
            in_mint=str(input_mint),
            out_mint=str(output_mint),
            amount=amount,
            slippage_bps=slippage_bps,
            restrict_intermediate_tokens=session.restrict_intermediate_tokens,
            platform_fee_bps=session.platform_fee.fee_bps,
        )
        response = self.http.fetch(f"{self.base_url}/quote", params=params, fresh=force_fetch)

        if response.status_code == 400:
            try:
                error_code = response.json().get("errorCode")
            except (AttributeError, ValueError):
                error_code = None
            if error_code in NO_ROUTE_ERROR_CODES:
                LOG.info("Jupiter found no route %s -> %s (%s)", input_mint, output_mint, error_code)
                return RouteQuote(routes=())
            if error_code == CIRCULAR_ARBITRAGE_ERROR_CODE:
                raise QuoteError(
                    f"Jupiter refuses a quote from {input_mint} to itself",
                    hint="The Jupiter quote API does not route circular swaps; quote tokenA against another token.",
                )

        response.raise_for_status()
        body = response.json()
        if not body:
            return RouteQuote(routes=())
        return RouteQuote(routes=(self.parse_route(body, session.amm_labels),))
