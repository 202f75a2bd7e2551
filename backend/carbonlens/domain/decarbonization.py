"""
Implied decarbonization rate from an implied carbon price.

Piecewise-linear scenario mapping:
    $50/tCO2  -> ~2% annual reduction (slow transition)
    $100/tCO2 -> ~4% annual reduction (moderate transition)
    $200/tCO2 -> ~7% annual reduction (rapid transition)
Prices above $200 are capped at 7%.
"""

MAX_DECARB_RATE = 0.07


def calculate_implied_decarb_rate(implied_carbon_price: float) -> float:
    """Convert an implied carbon price ($/tCO2) into a fractional annual reduction rate."""
    price = implied_carbon_price
    if price <= 0:
        return 0.0
    if price <= 50:
        return (price / 50) * 0.02
    if price <= 100:
        return 0.02 + ((price - 50) / 50) * 0.02
    if price <= 200:
        return 0.04 + ((price - 100) / 100) * 0.03
    return min(MAX_DECARB_RATE, 0.07 + ((price - 200) / 200) * 0.01)
