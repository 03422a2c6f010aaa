"""
Point-of-sale cart.

A Cart holds the lines of the sale being rung up, keyed by inventory item.
It never holds more units of an item than the stock seen when the item was
last added. Totals are derived from the lines on every read.
"""
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Dict, Iterator, List, Optional


@dataclass
class CartLine:
    item_id: int
    name: str
    brand: str
    size: str
    price: Decimal
    stock: int
    cart_quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.cart_quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data['price'] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CartLine':
        return cls(
            item_id=int(data['item_id']),
            name=data.get('name', ''),
            brand=data.get('brand', ''),
            size=data.get('size', ''),
            price=Decimal(str(data['price'])),
            stock=int(data['stock']),
            cart_quantity=int(data['cart_quantity']),
        )


class Cart:
    """In-progress sale, one line per inventory item."""

    def __init__(self, lines: Optional[List[CartLine]] = None):
        self._lines: Dict[int, CartLine] = {}
        for line in lines or []:
            self._lines[line.item_id] = line

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, item_id) -> bool:
        return item_id in self._lines

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self._lines.values()), Decimal('0.00'))

    @property
    def item_count(self) -> int:
        return sum(line.cart_quantity for line in self._lines.values())

    def get(self, item_id: int) -> Optional[CartLine]:
        return self._lines.get(item_id)

    def add(self, item) -> CartLine:
        """
        Add one unit of an inventory item.

        A new line starts at 1. An existing line is first capped at the
        item's current stock, then grows by one while still below it.
        """
        line = self._lines.get(item.id)
        if line is None:
            line = CartLine(
                item_id=item.id,
                name=item.name,
                brand=item.brand,
                size=item.size,
                price=Decimal(str(item.price)),
                stock=int(item.quantity),
            )
            self._lines[item.id] = line
            return line

        line.stock = int(item.quantity)
        line.price = Decimal(str(item.price))
        line.cart_quantity = min(line.cart_quantity, line.stock)
        if line.cart_quantity < line.stock:
            line.cart_quantity += 1
        return line

    def update_quantity(self, item_id: int, requested: int) -> Optional[CartLine]:
        """
        Set a line's quantity, capped at the line's stock.

        Only the upper bound is enforced. A zero or negative request stays in
        the cart as given; checkout refuses such lines.
        """
        line = self._lines.get(item_id)
        if line is None:
            return None
        line.cart_quantity = min(int(requested), line.stock)
        return line

    def remove(self, item_id: int) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def to_session(self) -> list:
        return [line.to_dict() for line in self._lines.values()]

    @classmethod
    def from_session(cls, data) -> 'Cart':
        return cls([CartLine.from_dict(entry) for entry in data or []])
