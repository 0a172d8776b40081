"""Decimal-safe conversions between human amounts and token base units."""

from decimal import Decimal, InvalidOperation, localcontext

from allodisburse.domain.models.token import TokenInfo

# Enough digits for 78-digit uint256 values plus 18 fractional digits
_PRECISION = 100

MAX_UINT256 = 2**256 - 1


def parse_decimal(amount: str) -> Decimal | None:
    """Parse a human-entered amount. Returns None for anything not a finite number."""
    try:
        value = Decimal(amount.strip())
    except (InvalidOperation, AttributeError):
        return None
    if not value.is_finite():
        return None
    return value


def to_base_units(amount: Decimal | str, decimals: int) -> int:
    """Scale to base units, truncating toward zero. Never touches floats."""
    value = parse_decimal(amount) if isinstance(amount, str) else amount
    if value is None:
        raise ValueError(f"Invalid amount: {amount}")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int(value.scaleb(decimals))


def from_base_units(amount: int, decimals: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(amount).scaleb(-decimals)


def format_amount(amount: int, token: TokenInfo) -> str:
    """Render base units for display, e.g. 1500000 USDC(6) -> '1.5 USDC'."""
    value = from_base_units(amount, token.decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text} {token.symbol}"
