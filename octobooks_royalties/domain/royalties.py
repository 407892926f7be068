"""Royalty calculator - splits a sale between platform, author and publisher"""

from decimal import Decimal, ROUND_DOWN
from typing import Optional
from octobooks_royalties.domain.models import (
    DEFAULT_ROYALTY_CONFIG,
    RoyaltyConfig,
    RoyaltySplit,
    to_rate,
)
from octobooks_royalties.domain.exceptions import ValidationFailure


def validate_rates(platform_fee_rate: Decimal, author_rate: Decimal, publisher_rate: Decimal) -> None:
    """
    Reject rate sets that would make the platform's net amount negative.

    Each rate must lie in [0, 1] and the three together may not exceed 1.
    """
    for name, rate in (
        ("platform fee rate", platform_fee_rate),
        ("author royalty rate", author_rate),
        ("publisher royalty rate", publisher_rate),
    ):
        if rate < 0 or rate > 1:
            raise ValidationFailure(f"{name} must be between 0 and 1, got {rate}")

    total = platform_fee_rate + author_rate + publisher_rate
    if total > 1:
        raise ValidationFailure(f"Combined royalty rates exceed 100% of the sale ({total})")


def _share(amount_cents: int, rate: Decimal) -> int:
    return int((Decimal(amount_cents) * rate).to_integral_value(rounding=ROUND_DOWN))


def calculate_royalties(
    final_price_cents: int,
    quantity: int,
    author_royalty_rate: Optional[float | Decimal] = None,
    publisher_royalty_rate: Optional[float | Decimal] = None,
    config: RoyaltyConfig = DEFAULT_ROYALTY_CONFIG,
) -> RoyaltySplit:
    """
    Split a sale into platform fee, author royalty, publisher share and net amount.

    Rounding policy:
    - sale amount is exact (integer cents times quantity)
    - each share is truncated to whole cents once, per sale
    - net amount is the remainder and absorbs every sub-cent fraction,
      so the four parts always add up to the sale amount

    Price and quantity are not validated here; callers guard them.

    Args:
        final_price_cents: Unit price actually charged, after discount
        quantity: Units sold in this line item
        author_royalty_rate: Author's fraction, None for the configured default
        publisher_royalty_rate: Publisher's fraction, None for the configured default
        config: Platform fee rate and default royalty rates

    Example:
        ₹300.00 x 2 at 15% / 20% with a 10% fee
        → sale 60000, fee 6000, author 9000, publisher 12000, net 33000
    """
    author_rate = (
        config.default_author_royalty_rate if author_royalty_rate is None else to_rate(author_royalty_rate)
    )
    publisher_rate = (
        config.default_publisher_royalty_rate if publisher_royalty_rate is None else to_rate(publisher_royalty_rate)
    )
    validate_rates(config.platform_fee_rate, author_rate, publisher_rate)

    sale_amount = final_price_cents * quantity
    platform_fee = _share(sale_amount, config.platform_fee_rate)
    author_royalty = _share(sale_amount, author_rate)
    publisher_share = _share(sale_amount, publisher_rate)

    return RoyaltySplit(
        sale_amount_cents=sale_amount,
        platform_fee_cents=platform_fee,
        author_royalty_cents=author_royalty,
        publisher_share_cents=publisher_share,
        net_amount_cents=sale_amount - platform_fee - author_royalty - publisher_share,
    )
