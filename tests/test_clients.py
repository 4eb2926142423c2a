import unittest
from decimal import Decimal
from unittest import mock

from requests import HTTPError
from solana.exceptions import SolanaRpcException
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from dex_bootstrap.config import PLATFORM_FEE_OWNER, AgentConfig
from dex_bootstrap.connection import open_connection
from dex_bootstrap.credentials import resolve_credential
from dex_bootstrap.errors import NoRouteError, QuoteError, RpcConnectionError, SessionBuildError
from dex_bootstrap.http_client import HttpClient
from dex_bootstrap.jupiter import JupiterClient, get_platform_fee_accounts
from dex_bootstrap.models import PlatformFee, Session, TokenDescriptor
from dex_bootstrap.quote import get_initial_out_amount
from dex_bootstrap.session import build_session

from .fakes import FakeConnection, FakeHttp, FakeResponse, encoded_secret, keyed_account

USDC = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
SOL = Pubkey.from_string("So11111111111111111111111111111111111111112")

QUOTE = {
    "inputMint": str(USDC),
    "inAmount": "1000000",
    "outputMint": str(SOL),
    "outAmount": "12345",
    "otherAmountThreshold": "12345",
    "priceImpactPct": "0.0012",
    "routePlan": [
        {"swapInfo": {"ammKey": "amm-1", "label": "Whirlpool"}, "percent": 100},
        {"swapInfo": {"ammKey": "amm-2"}, "percent": 100},
    ],
}


def make_session(aggregator, fee_bps=0) -> Session:
    return Session(
        connection=FakeConnection(),
        credential=resolve_credential(encoded_secret(Keypair())),
        cluster="mainnet-beta",
        platform_fee=PlatformFee(fee_bps=fee_bps, fee_accounts={}),
        restrict_intermediate_tokens=True,
        aggregator=aggregator,
        amm_labels={"amm-2": "Raydium"},
    )


class JupiterClientTests(unittest.TestCase):
    def test_parse_route_extracts_amounts_and_labels(self) -> None:
        client = JupiterClient("https://example.com/", FakeHttp([]))

        route = client.parse_route(QUOTE, {"amm-2": "Raydium"})

        self.assertEqual(route.in_amount, 1_000_000)
        self.assertEqual(route.out_amount, 12345)
        self.assertEqual(route.price_impact_pct, Decimal("0.0012"))
        self.assertEqual(route.labels, ("Whirlpool", "Raydium"))

    def test_parse_route_rejects_missing_out_amount(self) -> None:
        client = JupiterClient("https://example.com", FakeHttp([]))
        with self.assertRaises(ValueError):
            client.parse_route({"inAmount": "1"}, {})

    def test_compute_routes_sends_fresh_restricted_request(self) -> None:
        http = FakeHttp([FakeResponse(200, QUOTE)])
        client = JupiterClient("https://example.com", http)

        quote = client.compute_routes(make_session(client), USDC, SOL, amount=1_000_000, slippage_bps=0, force_fetch=True)

        self.assertEqual(quote.best.out_amount, 12345)
        call = http.calls[0]
        self.assertEqual(call["url"], "https://example.com/quote")
        self.assertEqual(call["params"]["slippageBps"], "0")
        self.assertEqual(call["params"]["restrictIntermediateTokens"], "true")
        self.assertNotIn("platformFeeBps", call["params"])
        self.assertTrue(call["fresh"])

    def test_compute_routes_passes_platform_fee(self) -> None:
        http = FakeHttp([FakeResponse(200, QUOTE)])
        client = JupiterClient("https://example.com", http)

        client.compute_routes(make_session(client, fee_bps=20), USDC, SOL, amount=1, slippage_bps=0)

        self.assertEqual(http.calls[0]["params"]["platformFeeBps"], "20")
        self.assertFalse(http.calls[0]["fresh"])

    def test_no_route_error_code_is_an_empty_quote(self) -> None:
        http = FakeHttp([FakeResponse(400, {"error": "Could not find any route", "errorCode": "COULD_NOT_FIND_ANY_ROUTE"})])
        client = JupiterClient("https://example.com", http)

        quote = client.compute_routes(make_session(client), USDC, SOL, amount=1, slippage_bps=0)

        self.assertEqual(quote.routes, ())
        self.assertIsNone(quote.best)

    def test_other_http_errors_raise(self) -> None:
        http = FakeHttp([FakeResponse(500, {"error": "boom"})])
        client = JupiterClient("https://example.com", http)
        with self.assertRaises(HTTPError):
            client.compute_routes(make_session(client), USDC, SOL, amount=1, slippage_bps=0)

    def test_parse_route_rejects_malformed_route_plan(self) -> None:
        client = JupiterClient("https://example.com", FakeHttp([]))
        for plan in ([{"swapInfo": None}], ["not-a-step"], [{"percent": 100}]):
            with self.subTest(plan=plan):
                with self.assertRaises(ValueError):
                    client.parse_route({"inAmount": "1", "outAmount": "5", "routePlan": plan}, {})

    def test_malformed_route_plan_is_a_quote_error(self) -> None:
        body = {"inAmount": "1", "outAmount": "5", "routePlan": [{"swapInfo": None}]}
        client = JupiterClient("https://example.com", FakeHttp([FakeResponse(200, body)]))
        session = make_session(client)
        token_in = TokenDescriptor(address=str(USDC), symbol="USDC", name="USD Coin", decimals=6)
        token_out = TokenDescriptor(address=str(SOL), symbol="SOL", name="Wrapped SOL", decimals=9)

        with self.assertRaises(QuoteError) as ctx:
            get_initial_out_amount(session, token_in, token_out, 1)

        self.assertNotIsInstance(ctx.exception, NoRouteError)

    def test_circular_quote_refusal_names_the_limitation(self) -> None:
        body = {"error": "Circular arbitrage is disabled", "errorCode": "CIRCULAR_ARBITRAGE_IS_DISABLED"}
        client = JupiterClient("https://example.com", FakeHttp([FakeResponse(400, body)]))

        with self.assertRaises(QuoteError) as ctx:
            client.compute_routes(make_session(client), USDC, USDC, amount=1, slippage_bps=0, force_fetch=True)

        self.assertNotIsInstance(ctx.exception, NoRouteError)
        self.assertIn("circular", ctx.exception.hint)


class SessionBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.credential = resolve_credential(encoded_secret(Keypair()))

    def test_builds_session_with_fee_accounts(self) -> None:
        connection = FakeConnection([keyed_account(pubkey="fee-usdc", mint=str(USDC))])
        http = FakeHttp([FakeResponse(200, {"whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Whirlpool"})])
        aggregator = JupiterClient("https://example.com", http)

        session = build_session(connection, self.credential, "mainnet-beta", aggregator)

        self.assertIs(session.connection, connection)
        self.assertIs(session.aggregator, aggregator)
        self.assertEqual(session.platform_fee.fee_bps, 0)
        self.assertEqual(session.platform_fee.fee_accounts, {str(USDC): "fee-usdc"})
        self.assertTrue(session.restrict_intermediate_tokens)
        self.assertEqual(len(session.amm_labels), 1)
        self.assertEqual(http.calls[0]["url"], "https://example.com/program-id-to-label")
        owner, _ = connection.calls[0]
        self.assertEqual(str(owner), PLATFORM_FEE_OWNER)

    def test_fee_account_failure(self) -> None:
        connection = FakeConnection(error=SolanaRpcException("rpc down"))
        aggregator = JupiterClient("https://example.com", FakeHttp([]))
        with self.assertRaises(SessionBuildError):
            build_session(connection, self.credential, "mainnet-beta", aggregator)

    def test_load_failure_is_not_retried(self) -> None:
        http = FakeHttp([FakeResponse(503, None), FakeResponse(200, {})])
        aggregator = JupiterClient("https://example.com", http)

        with self.assertRaises(SessionBuildError):
            build_session(FakeConnection(), self.credential, "mainnet-beta", aggregator)

        self.assertEqual(len(http.calls), 1)

    def test_fee_accounts_keyed_by_mint(self) -> None:
        connection = FakeConnection(
            [keyed_account(pubkey="a1", mint="mint-a"), keyed_account(pubkey="b1", mint="mint-b")]
        )
        self.assertEqual(
            get_platform_fee_accounts(connection, Pubkey.from_string(PLATFORM_FEE_OWNER)),
            {"mint-a": "a1", "mint-b": "b1"},
        )


class ConnectionFactoryTests(unittest.TestCase):
    def test_rejects_malformed_urls(self) -> None:
        for endpoint in ("", "not a url", "ftp://rpc.example.com", "https://"):
            with self.subTest(endpoint=endpoint):
                with self.assertRaises(RpcConnectionError):
                    open_connection(endpoint)

    def test_builds_client_without_network_io(self) -> None:
        client = open_connection("https://rpc.example.com", timeout=3)
        self.assertIsNotNone(client)


class HttpClientTests(unittest.TestCase):
    def test_takes_timeout_and_retries_from_config(self) -> None:
        client = HttpClient.from_config(AgentConfig(request_timeout=3.0, retries=4))

        self.assertEqual(client.timeout, 3.0)
        self.assertEqual(client.session.get_adapter("https://example.com").max_retries.total, 4)

    def test_fresh_fetch_skips_caches(self) -> None:
        client = HttpClient.from_config(AgentConfig(request_timeout=3.0))
        with mock.patch.object(client.session, "get") as get:
            client.fetch("https://example.com/quote", params={"amount": "1"}, fresh=True)
            client.fetch("https://example.com/quote")

        self.assertEqual(get.call_args_list[0].kwargs["headers"], {"Cache-Control": "no-cache"})
        self.assertIsNone(get.call_args_list[1].kwargs["headers"])
        self.assertEqual(get.call_args_list[0].kwargs["timeout"], 3.0)


if __name__ == "__main__":
    unittest.main()
