"""
Cash and credit ledger for FASHIONSIM.

The weekly waterfall, strictly in this order:
1. cash += revenue
2. pay operating outflows from cash, drawing any shortfall on credit
3. interest on the resulting credit balance, paid the same way
4. automatic pay-down of min(cash, credit)
5. final week only: GMC shortfall penalty, then a second pay-down

Drawing past the credit limit raises CreditLimitExceededError; the
commit that caused it is refused rather than clamped.
"""

import logging
from decimal import Decimal
from typing import Optional

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.models.money import ZERO, to_money
from fashionsim.models.report import CashWaterfall

logger = logging.getLogger(__name__)


class CreditLimitExceededError(Exception):
    """Raised when a payment would push credit past the limit."""

    def __init__(self, required: Decimal, limit: Decimal):
        self.required = required
        self.limit = limit
        super().__init__(
            f"Credit limit exceeded: {required:,.2f} needed, limit is {limit:,.2f}"
        )


class CashLedger:
    """Applies a week's cash movements to cash on hand and the credit line."""

    def __init__(self, config: Optional[FashionSimConfig] = None):
        self.config = config or get_default_config()

    @property
    def credit_limit(self) -> Decimal:
        return self.config.finance.credit_limit

    def available_funds(self, cash: Decimal, credit: Decimal) -> Decimal:
        """Cash plus unused credit."""
        return cash + (self.credit_limit - credit)

    def pay(self, cash: Decimal, credit: Decimal, amount: Decimal) -> tuple[Decimal, Decimal]:
        """Pay an amount from cash, then credit.

        Returns:
            Tuple of (cash, credit) after payment

        Raises:
            CreditLimitExceededError: If credit would exceed the limit
        """
        amount = to_money(amount)
        if amount <= 0:
            return cash, credit
        if cash >= amount:
            return to_money(cash - amount), credit
        new_credit = to_money(credit + amount - cash)
        if new_credit > self.credit_limit:
            raise CreditLimitExceededError(new_credit, self.credit_limit)
        logger.debug("Drew %s on credit", new_credit - credit)
        return ZERO, new_credit

    def paydown(self, cash: Decimal, credit: Decimal) -> tuple[Decimal, Decimal, Decimal]:
        """Repay credit with spare cash.

        Returns:
            Tuple of (cash, credit, amount repaid)
        """
        amount = min(cash, credit)
        if amount <= 0:
            return cash, credit, ZERO
        return to_money(cash - amount), to_money(credit - amount), to_money(amount)

    def interest(self, credit: Decimal) -> Decimal:
        return to_money(credit * self.config.finance.weekly_interest_rate)

    def holding_cost(self, inventory_value: Decimal) -> Decimal:
        return to_money(inventory_value * self.config.finance.holding_cost_rate)

    def settle(
        self,
        cash: Decimal,
        credit: Decimal,
        revenue: Decimal,
        outflows: Decimal,
        gmc_penalty: Decimal = ZERO,
        final_week: bool = False,
    ) -> CashWaterfall:
        """Run the weekly waterfall.

        Args:
            cash: Opening cash on hand
            credit: Opening credit used
            revenue: Revenue recognized this week
            outflows: Total operating outflows this week
            gmc_penalty: GMC shortfall penalty (final week only)
            final_week: Whether step 5 applies

        Returns:
            CashWaterfall with every intermediate balance

        Raises:
            CreditLimitExceededError: If any step exceeds the credit limit
        """
        waterfall = CashWaterfall(
            opening_cash=cash,
            opening_credit=credit,
            revenue=to_money(revenue),
            operating_outflows=to_money(outflows),
        )

        cash = to_money(cash + revenue)
        cash, credit = self.pay(cash, credit, outflows)
        waterfall.cash_after_outflows = cash
        waterfall.credit_after_outflows = credit

        interest = self.interest(credit)
        cash, credit = self.pay(cash, credit, interest)
        waterfall.interest = interest

        cash, credit, repaid = self.paydown(cash, credit)
        waterfall.paydown = repaid

        if final_week:
            penalty = to_money(gmc_penalty)
            cash, credit = self.pay(cash, credit, penalty)
            cash, credit, repaid = self.paydown(cash, credit)
            waterfall.gmc_penalty = penalty
            waterfall.final_paydown = repaid

        waterfall.closing_cash = cash
        waterfall.closing_credit = credit
        return waterfall
