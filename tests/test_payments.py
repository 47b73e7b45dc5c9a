# tests/test_payments.py
from datetime import datetime

import pytest

from delivery_advisor.errors import PaymentMethodNotFoundError
from delivery_advisor.models import FailedAttempt
from delivery_advisor.payments import PaymentEngine, choose_variant, detect_device_type, get_time_of_day

NOW = datetime(2025, 10, 15, 14, 0)
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0 Safari/537.36"
IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148"
ANDROID_UA = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0 Mobile Safari/537.36"


@pytest.fixture
def engine():
    return PaymentEngine()


# --- Costs ---

def test_card_fee(engine):
    cost = engine.calculate_total_cost("liqpay-card", 1000, now=NOW)

    assert cost.fee == pytest.approx(27.5)
    assert cost.total == pytest.approx(1027.5)
    assert cost.savings is None
    assert cost.promotion is None


def test_cashback_is_reported_as_savings(engine):
    cost = engine.calculate_total_cost("mono-card", 1000, now=NOW)

    assert cost.fee == pytest.approx(25)
    assert cost.total == pytest.approx(1025)
    assert cost.savings == pytest.approx(10)
    assert cost.promotion.type == "Discount"


def test_expired_promotion_is_ignored(engine):
    cost = engine.calculate_total_cost("mono-card", 1000, now=datetime(2027, 1, 1))

    assert cost.savings is None
    assert cost.promotion is None


def test_fixed_fee_for_cash_on_delivery(engine):
    cost = engine.calculate_total_cost("cash-on-delivery", 500, now=NOW)

    assert cost.fee == 20
    assert cost.total == 520


def test_no_fee_promotion_waives_the_fee():
    method = {
        'id': 'promo-card', 'name': 'Promo card', 'description': 'Card with a fee holiday',
        'fee_percentage': 2, 'fee_fixed': 0, 'minimum_amount': 1, 'maximum_amount': 100000,
        'trust_score': 90, 'convenience_score': 90, 'speed_score': 90,
        'triggers': [{'trigger': 'savings', 'strength': 100, 'message': 'No fee this month'}],
        'average_completion_time': 30, 'success_rate': 95, 'user_satisfaction': 4.5,
        'promotion': {'type': 'no_fee', 'value': 0, 'description': 'No fee', 'valid_until': '2030-01-01'},
    }
    engine = PaymentEngine([PaymentEngine._to_model(method)])

    cost = engine.calculate_total_cost("promo-card", 1000, now=NOW)

    assert cost.fee == 0
    assert cost.total == 1000
    assert cost.savings == pytest.approx(20)
    assert cost.promotion.type == "Free payment"


def test_unknown_method(engine):
    with pytest.raises(PaymentMethodNotFoundError, match="bitcoin"):
        engine.calculate_total_cost("bitcoin", 100)
    assert engine.calculate_payment_fee("bitcoin", 100) == 0
    assert engine.calculate_payment_fee("liqpay-card", 1000) == pytest.approx(27.5)


# --- Profile ---

@pytest.mark.parametrize("user_agent, device", [
    (DESKTOP_UA, "desktop"),
    (IPHONE_UA, "mobile"),
    (ANDROID_UA, "mobile"),
    ("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)", "tablet"),
])
def test_device_detection(user_agent, device):
    assert detect_device_type(user_agent) == device


@pytest.mark.parametrize("hour, period", [(0, "night"), (5, "night"), (8, "morning"), (14, "afternoon"), (19, "evening"), (23, "night")])
def test_time_of_day(hour, period):
    assert get_time_of_day(datetime(2025, 10, 15, hour)) == period


def test_first_desktop_order_profile(engine):
    profile = engine.analyze_user_profile(DESKTOP_UA, 800, [], NOW)

    assert profile.device_type == "desktop"
    assert profile.risk_tolerance == "high"
    assert profile.price_sensitivity == "medium"
    assert profile.convenience_preference == "security"
    assert profile.is_first_time
    assert not profile.has_apple_pay and not profile.has_google_pay
    assert profile.time_of_day == "afternoon"
    assert profile.day_of_week == "weekday"


def test_returning_customer_profile(engine):
    history = [{"payment_method": "mono-card"}, {"payment_method": "mono-card"}, {"payment_method": "liqpay-card"}]

    profile = engine.analyze_user_profile(DESKTOP_UA, 3000, history, datetime(2025, 10, 18, 10, 0))

    assert profile.risk_tolerance == "medium"
    assert profile.price_sensitivity == "high"
    assert profile.convenience_preference == "familiarity"
    assert profile.preferred_methods == ["mono-card", "liqpay-card"]
    assert profile.day_of_week == "weekend"


def test_wallet_availability(engine):
    assert engine.analyze_user_profile(IPHONE_UA, 500, timestamp=NOW).has_apple_pay
    android = engine.analyze_user_profile(ANDROID_UA, 500, timestamp=NOW)
    assert android.has_google_pay and not android.has_apple_pay
    assert android.convenience_preference == "speed"


# --- Recommendations ---

def test_first_desktop_order_recommendations(engine):
    """Wallets are hidden on desktop; Mono's cashback puts it ahead of the first-order picks."""
    profile = engine.analyze_user_profile(DESKTOP_UA, 800, [], NOW)

    recommendations = engine.get_payment_recommendations(profile, 800, now=NOW)

    assert [rec.method for rec in recommendations] == ["mono-card", "liqpay-card", "cash-on-delivery"]
    assert [rec.confidence for rec in recommendations] == pytest.approx([15, 10, 10])
    assert all(rec.variant == "control" for rec in recommendations)


def test_mobile_returning_customer_recommendations(engine):
    """
    Expected confidences for an iPhone customer paying 6000 UAH who used Mono before:
    mono 15.2 - 10 + 28.5 + 17.6 + 15 + 20 = 86.3
    apple 21.12 + 25 - 10 + 30 + 19.6 = 85.72
    cash on delivery 15.2 + 10 + 12 + 17 = 54.2
    liqpay 13.6 - 10 + 25.5 + 19 = 48.1
    """
    profile = engine.analyze_user_profile(IPHONE_UA, 6000, [{"payment_method": "mono-card"}], NOW)

    recommendations = engine.get_payment_recommendations(profile, 6000, now=NOW)

    assert [rec.method for rec in recommendations] == ["mono-card", "apple-pay", "cash-on-delivery", "liqpay-card"]
    assert [rec.confidence for rec in recommendations] == pytest.approx([86.3, 85.72, 54.2, 48.1])
    mono = recommendations[0]
    assert mono.savings == pytest.approx(60)
    assert "Your usual payment method" in mono.reasoning
    assert recommendations[1].advantages[0] == "One-touch payment"


def test_amount_limits(engine):
    profile = engine.analyze_user_profile(DESKTOP_UA, 50, [], NOW)

    methods = [rec.method for rec in engine.get_payment_recommendations(profile, 50, now=NOW)]

    assert "cash-on-delivery" not in methods


def test_user_friction(engine):
    profile = engine.analyze_user_profile(IPHONE_UA, 6000, [{"payment_method": "mono-card"}], NOW)

    # base 5, not preferred +10, three requirements +15
    assert engine.calculate_user_friction(engine.get_method("apple-pay"), profile) == 30
    assert engine.calculate_user_friction(engine.get_method("mono-card"), profile) == 15

    failed = profile.model_copy(update={
        "failed_attempts": [FailedAttempt(method="mono-card", reason="declined", timestamp=NOW)] * 2,
    })
    assert engine.calculate_user_friction(engine.get_method("mono-card"), failed) == 45


def test_psychological_match(engine):
    profile = engine.analyze_user_profile(IPHONE_UA, 6000, [], NOW)

    # (98 * 0.8 + 100 * 0.8) / 3 triggers
    assert engine.calculate_psychological_match(engine.get_method("apple-pay"), profile) == pytest.approx(52.8)


def test_variant_is_stable_per_session():
    assert choose_variant(None) == "control"
    assert choose_variant("session-1") == choose_variant("session-1")
    assert choose_variant("session-1") in ("control", "experiment_1", "experiment_2")


def test_presentation_variants(engine):
    profile = engine.analyze_user_profile(IPHONE_UA, 6000, [{"payment_method": "mono-card"}], NOW)
    ranked = engine.get_payment_recommendations(profile, 6000, now=NOW)

    mobile_first = engine.apply_personalization(ranked, profile, "experiment_1")
    savings_first = engine.apply_personalization(ranked, profile, "experiment_2")

    assert [rec.method for rec in mobile_first] == ["apple-pay", "mono-card", "cash-on-delivery", "liqpay-card"]
    assert [rec.method for rec in savings_first] == ["mono-card", "apple-pay", "cash-on-delivery", "liqpay-card"]
    assert all(rec.variant == "experiment_1" for rec in mobile_first)
