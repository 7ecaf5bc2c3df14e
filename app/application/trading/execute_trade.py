"""
Use case: Execute a Buy or Sell order against the caller's wallet.

Input: ExecuteTradeCommand (user_id, currency_pair, action, price, quantity)
Output: TradeResult
Side effects: Wallet mutation and trade record, committed together.
Failure cases: InvalidPairError, InvalidActionError, InvalidQuantityError,
    InsufficientFundsError, ConflictError, UserNotFoundError.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from app.application.trading.dtos import ExecuteTradeCommand, TradeResult
from app.domain.trading.entities import (
    CurrencyPair,
    Trade,
    TradeAction,
    TradeStatus,
)
from app.domain.trading.errors import InvalidPairError, InvalidQuantityError
from app.domain.trading.wallet_ledger import CurrencyDeltas, WalletLedger

logger = logging.getLogger(__name__)

DEFAULT_PROFIT_BOUND = Decimal("0.0005")
AMOUNT_QUANTUM = Decimal("0.00000001")

ProfitSimulator = Callable[[Decimal, Decimal], Decimal]


def simulate_profit(notional: Decimal, bound: Decimal) -> Decimal:
    """Return a random signed P/L within ±bound × notional."""
    fraction = Decimal(str(random.uniform(-float(bound), float(bound))))
    return (notional * fraction).quantize(AMOUNT_QUANTUM)


@dataclass(frozen=True)
class SettlementPlan:
    """Currency deltas of one order.

    `settlement` moves the notional and the quantity between the pair's
    currencies; `adjustment` carries the simulated P/L of a Sell as a
    separate credit or debit on the quote currency.
    """

    settlement: dict[str, Decimal]
    adjustment: dict[str, Decimal] = field(default_factory=dict)
    profit: Decimal = Decimal("0")

    @property
    def deltas(self) -> list[CurrencyDeltas]:
        return [d for d in (self.settlement, self.adjustment) if d]


def plan_settlement(
    pair: CurrencyPair,
    action: TradeAction,
    price: Decimal,
    quantity: Decimal,
    profit: Decimal = Decimal("0"),
) -> SettlementPlan:
    """Compute the wallet deltas for an order.

    Buy pays price × quantity of the quote currency for `quantity` of the
    base currency; Sell does the reverse and books `profit` on the quote.
    """
    notional = price * quantity
    if action is TradeAction.BUY:
        return SettlementPlan(settlement={pair.quote: -notional, pair.base: quantity})
    return SettlementPlan(
        settlement={pair.quote: notional, pair.base: -quantity},
        adjustment={pair.quote: profit} if profit else {},
        profit=profit,
    )


class ExecuteTradeUseCase:
    """Orchestrates one order from validation to recorded trade.

    Validates the pair against the wallet's currencies, plans the
    settlement, and hands the deltas to the WalletLedger together with
    a factory for the trade record, so the wallet change and the trade
    are persisted in one transaction.
    """

    def __init__(
        self,
        ledger: WalletLedger,
        profit_bound: Decimal = DEFAULT_PROFIT_BOUND,
        profit_simulator: ProfitSimulator = simulate_profit,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        order_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._ledger = ledger
        self._profit_bound = profit_bound
        self._profit_simulator = profit_simulator
        self._clock = clock
        self._order_id_factory = order_id_factory

    def execute(self, command: ExecuteTradeCommand) -> TradeResult:
        """Run the trade execution use case.

        Args:
            command: The order to execute.

        Returns:
            The recorded trade.

        Raises:
            InvalidPairError: If the pair is malformed or not held in the wallet.
            InvalidActionError: If the action is neither Buy nor Sell.
            InvalidQuantityError: If price or quantity is not positive.
            InsufficientFundsError: If the wallet cannot cover the order.
        """
        pair = CurrencyPair.parse(command.currency_pair)
        wallet = self._ledger.get_wallet(command.user_id)
        for currency in (pair.base, pair.quote):
            if not wallet.has(currency):
                raise InvalidPairError(pair.symbol, f"{currency} is not held in the wallet")

        action = TradeAction.parse(command.action)
        price = Decimal(command.price)
        quantity = Decimal(command.quantity)
        if price <= 0:
            raise InvalidQuantityError("price", str(price))
        if quantity <= 0:
            raise InvalidQuantityError("quantity", str(quantity))

        profit = Decimal("0")
        if action is TradeAction.SELL:
            profit = self._profit_simulator(price * quantity, self._profit_bound)
        plan = plan_settlement(pair, action, price, quantity, profit)

        logger.info(
            "Executing trade: user=%s pair=%s action=%s quantity=%s",
            command.user_id,
            pair.symbol,
            action.value,
            quantity,
        )

        def record() -> Trade:
            return Trade(
                order_id=self._order_id_factory(),
                user_id=command.user_id,
                pair=pair,
                action=action,
                price=price,
                quantity=quantity,
                status=TradeStatus.FILLED,
                timestamp=self._clock(),
                profit=plan.profit,
            )

        _, trade = self._ledger.debit_credit(command.user_id, plan.deltas, record=record)

        logger.info("Trade filled: order_id=%s", trade.order_id)
        return TradeResult.from_entity(trade)
