from safepath.recommendations import (
    ALTERNATE_ROUTE_ADVICE,
    BASELINE_ADVICE,
    COMPANION_ADVICE,
    EXPENSIVE_ITEMS_ADVICE,
    LOW_CRIME_ADVICE,
    MAIN_STREETS_ADVICE,
    VALUABLES_ADVICE,
    WELL_LIT_ADVICE,
    recommendations,
)
from tests.conftest import make_estimate


def test_no_estimate_gives_no_recommendations():
    assert recommendations(None) == []


def test_baseline_advice_comes_first():
    advice = recommendations(make_estimate({"violent-crime": 1.0}, total=20.0))
    assert advice == [BASELINE_ADVICE]


def test_robbery_triggers_both_advisories():
    advice = recommendations(make_estimate({
        "violent-crime": 0.0,
        "property-crime": 0.0,
        "robbery": 8.0,
        "homicide": 0.0,
    }))

    assert advice[0] == BASELINE_ADVICE
    assert EXPENSIVE_ITEMS_ADVICE in advice
    assert WELL_LIT_ADVICE in advice
    assert COMPANION_ADVICE not in advice


def test_category_thresholds_are_strict():
    advice = recommendations(make_estimate({
        "violent-crime": 5.0,
        "property-crime": 15.0,
        "robbery": 5.0,
    }, total=25.0))
    assert advice == [BASELINE_ADVICE]


def test_high_and_low_totals_are_mutually_exclusive():
    high = recommendations(make_estimate({}, total=50.0))
    low = recommendations(make_estimate({}, total=8.0))

    assert ALTERNATE_ROUTE_ADVICE in high and MAIN_STREETS_ADVICE in high
    assert LOW_CRIME_ADVICE not in high
    assert LOW_CRIME_ADVICE in low
    assert ALTERNATE_ROUTE_ADVICE not in low and MAIN_STREETS_ADVICE not in low


def test_all_rules_fire_in_fixed_order():
    advice = recommendations(make_estimate({
        "violent-crime": 6.0,
        "property-crime": 20.0,
        "robbery": 10.0,
    }, total=45.0))

    assert advice == [
        BASELINE_ADVICE,
        COMPANION_ADVICE,
        VALUABLES_ADVICE,
        EXPENSIVE_ITEMS_ADVICE,
        WELL_LIT_ADVICE,
        ALTERNATE_ROUTE_ADVICE,
        MAIN_STREETS_ADVICE,
    ]
