"""Price and stock display for tire products."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Optional

from loguru import logger

PRICE_ON_REQUEST = "Price on request"

STOCK_LABELS = {
    "instock": "In Stock",
    "outofstock": "Out of Stock",
    "onbackorder": "On Backorder",
}
DEFAULT_STOCK_LABEL = "Check Availability"


def parse_amount(raw) -> Optional[Decimal]:
    """Parse a stored price; ``None`` for empty, zero or garbage values."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        amount = Decimal(text)
    except InvalidOperation:
        logger.warning(f"Ignoring unparseable price value: {text!r}")
        return None
    if not amount.is_finite() or amount == 0:
        return None
    return amount


def availability(stock_status: Optional[str]) -> str:
    """Map a stock status code to its display label."""
    return STOCK_LABELS.get((stock_status or "").strip(), DEFAULT_STOCK_LABEL)


class PriceFormatter:
    """Render tire prices the way the storefront shows them.

    Plain mode formats ``_price`` as ``$1,234.56``. Commerce mode also
    knows about sales and renders a struck-through regular price next to
    the sale price when the sale is lower.
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize price formatter.

        Args:
            config: Optional commerce configuration dictionary
        """
        config = config or {}
        self.commerce_enabled = config.get("enabled", False)
        self.currency_symbol = config.get("currency_symbol", "$")

    def money(self, amount: Decimal) -> str:
        rounded = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{self.currency_symbol}{rounded:,.2f}"

    def format(self, meta: Dict[str, str]) -> str:
        """Format the price of a product.

        Args:
            meta: Product meta values keyed by meta key

        Returns:
            Display price
        """
        if self.commerce_enabled:
            regular = parse_amount(meta.get("_regular_price"))
            sale = parse_amount(meta.get("_sale_price"))
            if regular is not None and sale is not None and sale < regular:
                return f"<del>{self.money(regular)}</del> <ins>{self.money(sale)}</ins>"

        price = parse_amount(meta.get("_price"))
        if price is None:
            return PRICE_ON_REQUEST
        return self.money(price)
