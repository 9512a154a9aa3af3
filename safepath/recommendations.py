"""Human-readable safety advice derived from crime statistics."""

from safepath.config import ScoringConfig, get_scoring_config
from safepath.crime_data import CrimeEstimate

BASELINE_ADVICE = "Stay aware of your surroundings at all times."
COMPANION_ADVICE = "Try to travel with a companion in this area."
VALUABLES_ADVICE = "Keep valuables out of sight or securely stored."
EXPENSIVE_ITEMS_ADVICE = "Avoid displaying expensive items in public."
WELL_LIT_ADVICE = "Stay in well-lit areas at night."
ALTERNATE_ROUTE_ADVICE = "Consider alternate routes if possible."
MAIN_STREETS_ADVICE = "Stay on main streets and avoid shortcuts through less populated areas."
LOW_CRIME_ADVICE = "This area generally has lower crime rates compared to surrounding areas."


def recommendations(
    crime_estimate: CrimeEstimate | None,
    config: ScoringConfig | None = None,
) -> list[str]:
    """
    Safety recommendations for a crime estimate, baseline advice first.

    Category rules are independent of each other; the high/low total crime
    advice is one or the other. No estimate gives an empty list.
    """
    if crime_estimate is None:
        return []
    thresholds = (config or get_scoring_config()).recommendations

    stats = crime_estimate.crime_stats or {}
    total = crime_estimate.total_crime_rate or 0.0

    advice = [BASELINE_ADVICE]

    if stats.get("violent-crime", 0) > thresholds.violent_crime:
        advice.append(COMPANION_ADVICE)

    if stats.get("property-crime", 0) > thresholds.property_crime:
        advice.append(VALUABLES_ADVICE)

    if stats.get("robbery", 0) > thresholds.robbery:
        advice.append(EXPENSIVE_ITEMS_ADVICE)
        advice.append(WELL_LIT_ADVICE)

    if total > thresholds.high_total:
        advice.append(ALTERNATE_ROUTE_ADVICE)
        advice.append(MAIN_STREETS_ADVICE)
    elif total < thresholds.low_total:
        advice.append(LOW_CRIME_ADVICE)

    return advice
