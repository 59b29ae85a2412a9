"""Lot engine for cost-basis accounting.

Two ways to attribute cost to sold shares:
- FIFO: a queue of lots, oldest consumed first (LotTracker)
- Average cost: one pool, cost prorated by quantity (AverageCostPool)

Both scale quantities on splits and leave cost untouched, so a split never
changes the cost basis.
"""

from collections import deque
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol

from folio.services.portfolio.models import Lot
from folio.system.log_system import LoggerFactory
from folio.utilities.money import ZERO

logger = LoggerFactory.get_logger()


class CostBasisMethod(str, Enum):
    """How cost is attributed to disposed shares."""

    AVERAGE = "average"
    FIFO = "fifo"

    @classmethod
    def parse(cls, text: str) -> "CostBasisMethod":
        key = text.strip().lower()
        if key in ("avg", "average-cost", "average_cost"):
            return cls.AVERAGE
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown cost basis method {text!r}, want 'average' or 'fifo'") from None


class CostTracker(Protocol):
    """Replay target shared by both cost basis methods."""

    def acquire(self, on: date, quantity: Decimal, cost: Decimal) -> None: ...

    def split(self, numerator: int, denominator: int) -> None: ...

    def dispose(self, quantity: Decimal) -> Decimal:
        """Remove quantity and return its cost of sale."""
        ...

    def total_quantity(self) -> Decimal: ...

    def total_cost(self) -> Decimal: ...


class LotTracker:
    """
    FIFO lot queue for one security.

    Disposals close the oldest lots first. A partially closed lot stays at
    the front of the queue with its remaining quantity and cost.

    Example:
        >>> tracker = LotTracker()
        >>> tracker.add_lot(Lot(acquired_on=date(2025, 1, 2), quantity=Decimal("100"), cost=Decimal("1000")))
        >>> tracker.add_lot(Lot(acquired_on=date(2025, 2, 3), quantity=Decimal("100"), cost=Decimal("1200")))
        >>> tracker.dispose(Decimal("150"))
        Decimal('1600')
        >>> tracker.get_lots()
        [Lot(acquired_on=datetime.date(2025, 2, 3), quantity=Decimal('50'), cost=Decimal('600'))]
    """

    def __init__(self) -> None:
        self._lots: deque[Lot] = deque()

    def add_lot(self, lot: Lot) -> None:
        """
        Append lot at the back of the queue.

        Raises:
            ValueError: If lot quantity is zero
        """
        if lot.quantity == 0:
            raise ValueError("Cannot add lot with zero quantity")
        self._lots.append(lot)

    def acquire(self, on: date, quantity: Decimal, cost: Decimal) -> None:
        self.add_lot(Lot(acquired_on=on, quantity=quantity, cost=cost))

    def split(self, numerator: int, denominator: int) -> None:
        """Scale every lot's quantity by numerator/denominator; cost is untouched."""
        self._lots = deque(
            lot.model_copy(update={"quantity": lot.quantity * numerator / denominator}) for lot in self._lots
        )

    def match_close(self, quantity: Decimal) -> list[tuple[Lot, Decimal, Decimal]]:
        """
        Match quantity against lots, oldest first.

        Args:
            quantity: Quantity to close (positive)

        Returns:
            (lot, quantity_closed, cost_closed) tuples in match order

        Raises:
            ValueError: If quantity is zero or negative

        Example:
            >>> # Close 150 shares from [100 for 1000, 100 for 1200]
            >>> tracker.match_close(Decimal("150"))
            >>> # Returns: [(Lot(100, 1000), 100, 1000), (Lot(100, 1200), 50, 600)]
            >>> # Leaves: [Lot(50, 600)]
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        available = self.total_quantity()
        if quantity > available:
            logger.warning(
                "lot_tracker.insufficient_quantity",
                requested=str(quantity),
                available=str(available),
            )

        matches: list[tuple[Lot, Decimal, Decimal]] = []
        remaining_to_close = quantity

        while remaining_to_close > 0 and self._lots:
            lot = self._lots[0]

            if lot.quantity <= remaining_to_close:
                # Full lot close
                self._lots.popleft()
                matches.append((lot, lot.quantity, lot.cost))
                remaining_to_close -= lot.quantity
            else:
                # Partial lot close: the remainder keeps the unused cost
                closed_cost = lot.cost * remaining_to_close / lot.quantity
                self._lots[0] = lot.model_copy(
                    update={"quantity": lot.quantity - remaining_to_close, "cost": lot.cost - closed_cost}
                )
                matches.append((lot, remaining_to_close, closed_cost))
                remaining_to_close = ZERO

        return matches

    def dispose(self, quantity: Decimal) -> Decimal:
        """Close quantity and return the cost of the shares sold."""
        return sum((cost for _, _, cost in self.match_close(quantity)), start=ZERO)

    def get_lots(self) -> list[Lot]:
        """Open lots, oldest first."""
        return list(self._lots)

    def total_quantity(self) -> Decimal:
        return sum((lot.quantity for lot in self._lots), start=ZERO)

    def total_cost(self) -> Decimal:
        return sum((lot.cost for lot in self._lots), start=ZERO)

    def clear(self) -> None:
        self._lots.clear()


class AverageCostPool:
    """
    Running (quantity, cost) pool for one security.

    A disposal removes cost in proportion to the quantity sold:
    cost_of_sale = cost x disposed / quantity.
    """

    def __init__(self) -> None:
        self._quantity = ZERO
        self._cost = ZERO

    def acquire(self, on: date, quantity: Decimal, cost: Decimal) -> None:
        self._quantity += quantity
        self._cost += cost

    def split(self, numerator: int, denominator: int) -> None:
        self._quantity = self._quantity * numerator / denominator

    def dispose(self, quantity: Decimal) -> Decimal:
        if self._quantity == 0:
            return ZERO
        if quantity > self._quantity:
            logger.warning(
                "lot_tracker.insufficient_quantity",
                requested=str(quantity),
                available=str(self._quantity),
            )
            quantity = self._quantity
        cost_of_sale = self._cost * quantity / self._quantity
        self._quantity -= quantity
        self._cost -= cost_of_sale
        return cost_of_sale

    def total_quantity(self) -> Decimal:
        return self._quantity

    def total_cost(self) -> Decimal:
        return self._cost


def new_cost_tracker(method: CostBasisMethod | str) -> CostTracker:
    """
    Create the tracker implementing method.

    Raises:
        ValueError: If method is unknown
    """
    if not isinstance(method, CostBasisMethod):
        method = CostBasisMethod.parse(method)
    if method is CostBasisMethod.FIFO:
        return LotTracker()
    return AverageCostPool()
