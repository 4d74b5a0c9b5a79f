"""
Cart totals.

Pure functions over a sequence of cart lines, recomputed on every render.
Amounts are whole currency units (IDR).
"""
from typing import Iterable, Mapping

from storefront.schemas.cart import CartSummary

FREE_SHIPPING_THRESHOLD = 500000
SHIPPING_COST = 25000


def subtotal(lines: Iterable[Mapping]) -> int:
    return sum(line["price"] * line["quantity"] for line in lines)


def discount_total(lines: Iterable[Mapping]) -> int:
    total = 0
    for line in lines:
        if line.get("discount", 0) > 0 and line.get("original_price"):
            total += (line["original_price"] - line["price"]) * line["quantity"]
    return total


def shipping_cost(lines: Iterable[Mapping]) -> int:
    # Strictly above the threshold; exactly 500000 still pays shipping
    return 0 if subtotal(lines) > FREE_SHIPPING_THRESHOLD else SHIPPING_COST


def free_shipping_remaining(lines: Iterable[Mapping]) -> int:
    return max(0, FREE_SHIPPING_THRESHOLD - subtotal(lines))


def free_shipping_progress(lines: Iterable[Mapping]) -> float:
    """Percentage of the free-shipping threshold reached, capped at 100."""
    return min(subtotal(lines) / FREE_SHIPPING_THRESHOLD * 100, 100.0)


def total(lines: Iterable[Mapping]) -> int:
    lines = list(lines)
    return subtotal(lines) - discount_total(lines) + shipping_cost(lines)


def summarize(lines: Iterable[Mapping]) -> CartSummary:
    lines = list(lines)
    return CartSummary(
        subtotal=subtotal(lines),
        discount_total=discount_total(lines),
        shipping_cost=shipping_cost(lines),
        free_shipping_remaining=free_shipping_remaining(lines),
        free_shipping_progress=free_shipping_progress(lines),
        total=total(lines),
        item_count=sum(line["quantity"] for line in lines),
        line_count=len(lines),
    )


def format_price(amount: int) -> str:
    """Format an amount the way the shop displays it: ``Rp 1.250.000``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(int(amount)):,}".replace(",", ".")
