import unittest
from decimal import Decimal

from solana.exceptions import SolanaRpcException
from solders.keypair import Keypair

from dex_bootstrap.config import ACCESS_TOKEN_MINT
from dex_bootstrap.eligibility import check_eligibility, total_holdings
from dex_bootstrap.errors import EligibilityError

from .fakes import FakeConnection, keyed_account


class EligibilityGateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.owner = Keypair().pubkey()

    def test_exact_threshold_passes(self) -> None:
        connection = FakeConnection([keyed_account(ui_amount=6000.0), keyed_account(ui_amount=4000)])

        result = check_eligibility(connection, self.owner)

        self.assertTrue(result.passed)
        self.assertEqual(result.total, Decimal("10000"))
        self.assertEqual(result.accounts, 2)

    def test_just_below_threshold_fails(self) -> None:
        connection = FakeConnection([keyed_account(ui_amount=9999.99)])

        with self.assertRaises(EligibilityError) as ctx:
            check_eligibility(connection, self.owner)

        self.assertEqual(ctx.exception.result.total, Decimal("9999.99"))

    def test_no_accounts_sums_to_zero_and_fails(self) -> None:
        with self.assertRaises(EligibilityError) as ctx:
            check_eligibility(FakeConnection([]), self.owner)

        self.assertEqual(ctx.exception.result.total, Decimal(0))
        self.assertEqual(ctx.exception.result.accounts, 0)

    def test_missing_amounts_count_as_zero(self) -> None:
        accounts = [
            keyed_account(ui_amount=None),
            keyed_account(parsed={"info": {}}),
            keyed_account(ui_amount="not-a-number"),
            keyed_account(ui_amount=12.5),
        ]
        self.assertEqual(total_holdings(accounts), Decimal("12.5"))

    def test_queries_access_mint_for_owner(self) -> None:
        connection = FakeConnection([keyed_account(ui_amount=20000)])

        check_eligibility(connection, self.owner)

        owner, opts = connection.calls[0]
        self.assertEqual(owner, self.owner)
        self.assertEqual(str(opts.mint), ACCESS_TOKEN_MINT)

    def test_query_failure_is_an_eligibility_error(self) -> None:
        connection = FakeConnection(error=SolanaRpcException("rpc down"))
        with self.assertRaises(EligibilityError):
            check_eligibility(connection, self.owner)


if __name__ == "__main__":
    unittest.main()
