"""
Discount resolution.

Pure functions over immutable snapshots: no session, no I/O, no clock. The
catalog, the cart and checkout all price through this module, so a product
costs the same on every screen for the same tier and rule set.

Resolution is filter + max-reduction. Every rule that passes the filter
proposes a discount amount; the single largest one wins and rules never
stack.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from enums.discount_type import DiscountType
from models.cartItem import CartLineDTO, CartViewDTO
from models.discount_rule import DiscountRuleDTO
from models.product import ProductDTO
from utils.money import ZERO, D, round_money


class PricingService:

    @staticmethod
    def discount_amount(rule: DiscountRuleDTO, amount: Decimal) -> Decimal:
        """Money a rule takes off ``amount``; fixed rules ignore ``amount``."""
        if rule.type == DiscountType.PERCENTAGE:
            return D(amount) * D(rule.value)
        return D(rule.value)

    @staticmethod
    def _matches_tier(rule: DiscountRuleDTO, pricing_tier_id: int | None) -> bool:
        return rule.applicable_to_pricing_tier_id is None or rule.applicable_to_pricing_tier_id == pricing_tier_id

    @staticmethod
    def item_rules(product_id: int,
                   quantity: int | None,
                   pricing_tier_id: int | None,
                   rules: Iterable[DiscountRuleDTO]) -> list[DiscountRuleDTO]:
        """
        Rules eligible for one line item.

        ``quantity=None`` means no quantity context (catalog listing), which
        skips the minimum-quantity gate. Rules gated on an order amount only
        ever apply to the cart total.
        """
        candidates = []
        for rule in rules:
            if not rule.is_active:
                continue
            if rule.minimum_order_amount is not None:
                continue
            if rule.applicable_to_product_id is not None and rule.applicable_to_product_id != product_id:
                continue
            if not PricingService._matches_tier(rule, pricing_tier_id):
                continue
            if quantity is not None and rule.minimum_quantity is not None and quantity < rule.minimum_quantity:
                continue
            candidates.append(rule)
        return candidates

    @staticmethod
    def cart_rules(sub_total: Decimal,
                   pricing_tier_id: int | None,
                   rules: Iterable[DiscountRuleDTO]) -> list[DiscountRuleDTO]:
        return [
            rule for rule in rules
            if rule.is_active
            and rule.minimum_order_amount is not None
            and PricingService._matches_tier(rule, pricing_tier_id)
            and D(sub_total) >= D(rule.minimum_order_amount)
        ]

    @staticmethod
    def best_discount(rules: Iterable[DiscountRuleDTO], amount: Decimal) -> Decimal:
        best = ZERO
        for rule in rules:
            candidate = PricingService.discount_amount(rule, amount)
            if candidate > best:
                best = candidate
        return best

    @staticmethod
    def effective_unit_price(product: ProductDTO,
                             quantity: int | None,
                             pricing_tier_id: int | None,
                             rules: Sequence[DiscountRuleDTO]) -> Decimal:
        """
        Per-unit price after the best item-level discount.

        Always within [0, base price].
        """
        base_price = round_money(product.price)
        candidates = PricingService.item_rules(product.id, quantity, pricing_tier_id, rules)
        best = PricingService.best_discount(candidates, base_price)
        return round_money(max(ZERO, base_price - best))

    @staticmethod
    def cart_discount(sub_total: Decimal,
                      pricing_tier_id: int | None,
                      rules: Sequence[DiscountRuleDTO]) -> Decimal:
        candidates = PricingService.cart_rules(sub_total, pricing_tier_id, rules)
        return round_money(PricingService.best_discount(candidates, D(sub_total)))

    @staticmethod
    def calculate_cart(lines: Sequence[tuple[int | None, ProductDTO, int]],
                       pricing_tier_id: int | None,
                       rules: Sequence[DiscountRuleDTO]) -> CartViewDTO:
        """
        Price a cart.

        Args:
            lines: (cart item id, product snapshot, quantity) per line
            pricing_tier_id: Caller's tier, None for no tier
            rules: Snapshot of the active rules

        Returns:
            CartViewDTO with per-line prices, sub_total, discount_applied and
            total_amount = max(0, sub_total - discount_applied)
        """
        items = []
        sub_total = ZERO
        for cart_item_id, product, quantity in lines:
            unit_price = PricingService.effective_unit_price(product, quantity, pricing_tier_id, rules)
            line_total = round_money(unit_price * quantity)
            sub_total += line_total
            items.append(CartLineDTO(
                id=cart_item_id,
                product_id=product.id,
                name=product.name,
                quantity=quantity,
                unit_price=round_money(product.price),
                discounted_unit_price=unit_price,
                line_total=line_total,
            ))

        sub_total = round_money(sub_total)
        discount_applied = PricingService.cart_discount(sub_total, pricing_tier_id, rules)
        total_amount = round_money(max(ZERO, sub_total - discount_applied))
        return CartViewDTO(
            items=items,
            sub_total=sub_total,
            discount_applied=discount_applied,
            total_amount=total_amount,
        )
