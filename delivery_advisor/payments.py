# delivery_advisor/payments.py
"""
Payment engine: fees and promotions of the accepted payment methods, customer
profile inference, and ranking of methods for a given customer and order.
"""
import hashlib
import re
from datetime import datetime
from typing import List, Optional

from . import domain
from .config import logger
from .errors import PaymentMethodNotFoundError
from .models import (
    AppliedPromotion, PaymentCost, PaymentMethodDetails, PaymentRecommendation, Promotion, UserPaymentProfile,
)

PSYCHOLOGICAL_MATCH_WEIGHT = 0.4
MOBILE_WALLET_BONUS = 25
NO_FEE_BONUS = 20
LOW_FEE_BONUS = 10
HIGH_FEE_PENALTY = 10
LOW_FEE_THRESHOLD = 50
SPEED_WEIGHT = 0.3
TRUST_WEIGHT = 0.2
PROMOTION_BONUS = 15
PREFERRED_METHOD_BONUS = 20
FIRST_ORDER_BONUS = 10


def detect_device_type(user_agent: str) -> str:
    if re.search(r"Mobile|Android|iPhone", user_agent):
        return 'mobile'
    if re.search(r"iPad|Tablet", user_agent):
        return 'tablet'
    return 'desktop'


def get_time_of_day(timestamp: datetime) -> str:
    hour = timestamp.hour
    if hour < 6:
        return 'night'
    if hour < 12:
        return 'morning'
    if hour < 18:
        return 'afternoon'
    if hour < 22:
        return 'evening'
    return 'night'


def get_day_of_week(timestamp: datetime) -> str:
    return 'weekend' if timestamp.weekday() >= 5 else 'weekday'


def choose_variant(session_key: Optional[str]) -> str:
    """Stable presentation variant for a session; sessions without a key see the control ordering."""
    if not session_key:
        return 'control'
    digest = hashlib.sha256(session_key.encode("utf-8")).hexdigest()
    return domain.PRESENTATION_VARIANTS[int(digest, 16) % len(domain.PRESENTATION_VARIANTS)]


class PaymentEngine:
    """Ranks payment methods for a customer and computes what each one costs."""

    def __init__(self, methods: Optional[List[PaymentMethodDetails]] = None):
        if methods is None:
            methods = [self._to_model(method) for method in domain.PAYMENT_METHODS]
        self.methods = methods

    @staticmethod
    def _to_model(method: dict) -> PaymentMethodDetails:
        data = dict(method)
        if data.get('promotion'):
            promotion = dict(data['promotion'])
            promotion['valid_until'] = datetime.fromisoformat(promotion['valid_until']).replace(hour=23, minute=59, second=59)
            data['promotion'] = Promotion(**promotion)
        return PaymentMethodDetails(**data)

    def get_method(self, method_id: str) -> PaymentMethodDetails:
        for method in self.methods:
            if method.id == method_id:
                return method
        raise PaymentMethodNotFoundError(method_id)

    @staticmethod
    def active_promotion(method: PaymentMethodDetails, now: Optional[datetime] = None) -> Optional[Promotion]:
        now = now or datetime.now()
        if method.promotion and method.promotion.valid_until >= now:
            return method.promotion
        return None

    # --- Costs ---

    def calculate_payment_fee(self, method_id: str, amount: float) -> float:
        """Fee before promotions. Unknown methods cost nothing."""
        try:
            method = self.get_method(method_id)
        except PaymentMethodNotFoundError:
            return 0.0
        return method.fee_fixed + amount * method.fee_percentage / 100

    def calculate_total_cost(self, method_id: str, amount: float, now: Optional[datetime] = None) -> PaymentCost:
        """
        Computes the fee and total of paying `amount` with a method.

        A "no_fee" promotion waives the fee; a "discount" promotion is reported as savings
        (cashback) without changing the total.

        Raises:
            PaymentMethodNotFoundError: For an unknown method.
        """
        method = self.get_method(method_id)
        total_fee = amount * method.fee_percentage / 100 + method.fee_fixed

        final_fee = total_fee
        applied = None
        promotion = self.active_promotion(method, now)
        if promotion and promotion.type == 'no_fee':
            final_fee = 0.0
            applied = AppliedPromotion(type='Free payment', discount=total_fee, description=promotion.description)
        elif promotion and promotion.type == 'discount':
            applied = AppliedPromotion(
                type='Discount', discount=amount * promotion.value / 100, description=promotion.description
            )

        return PaymentCost(
            original_amount=amount,
            fee=final_fee,
            total=amount + final_fee,
            savings=applied.discount if applied else None,
            promotion=applied,
        )

    # --- Customer profile ---

    def analyze_user_profile(
        self,
        user_agent: str,
        order_total: float,
        order_history: Optional[List[dict]] = None,
        timestamp: Optional[datetime] = None,
    ) -> UserPaymentProfile:
        """
        Infers a payment profile from the request context.

        Args:
            user_agent: The browser's user agent string.
            order_total: Amount of the current order in UAH.
            order_history: Previous orders; each may carry a "payment_method" key.
            timestamp: Time of the checkout. Defaults to now.
        """
        order_history = order_history or []
        timestamp = timestamp or datetime.now()
        device_type = detect_device_type(user_agent)

        if order_total > 5000:
            risk_tolerance = 'low'
        elif order_total > 1000:
            risk_tolerance = 'medium'
        else:
            risk_tolerance = 'high'

        if device_type == 'mobile':
            convenience_preference = 'speed'
        else:
            convenience_preference = 'security' if not order_history else 'familiarity'

        preferred = []
        for order in order_history:
            method = order.get("payment_method")
            if method and method not in preferred:
                preferred.append(method)

        return UserPaymentProfile(
            risk_tolerance=risk_tolerance,
            price_sensitivity='medium' if not order_history else 'high',
            convenience_preference=convenience_preference,
            device_type=device_type,
            preferred_methods=preferred,
            order_value=order_total,
            is_first_time=not order_history,
            has_apple_pay=device_type == 'mobile' and 'iPhone' in user_agent,
            has_google_pay=device_type == 'mobile' and 'Android' in user_agent,
            time_of_day=get_time_of_day(timestamp),
            day_of_week=get_day_of_week(timestamp),
        )

    # --- Recommendations ---

    def get_payment_recommendations(
        self,
        profile: UserPaymentProfile,
        order_total: float,
        session_key: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[PaymentRecommendation]:
        """
        Ranks the methods available for this customer and amount, best first.

        The presentation variant is derived from `session_key`, so the same session always
        sees the same ordering.
        """
        available = self.filter_available_methods(profile, order_total)
        recommendations = [self.evaluate_method(method, profile, order_total, now) for method in available]
        recommendations.sort(key=lambda rec: rec.confidence, reverse=True)

        variant = choose_variant(session_key)
        logger.info(f"Ranked {len(recommendations)} payment methods for a {order_total:.2f} UAH order ({variant}).")
        return self.apply_personalization(recommendations, profile, variant)

    def filter_available_methods(self, profile: UserPaymentProfile, order_total: float) -> List[PaymentMethodDetails]:
        available = []
        for method in self.methods:
            if not method.is_available:
                continue
            if order_total < method.minimum_amount or order_total > method.maximum_amount:
                continue
            if method.id == 'apple-pay' and not profile.has_apple_pay:
                continue
            if method.id == 'google-pay' and not profile.has_google_pay:
                continue
            available.append(method)
        return available

    def evaluate_method(
        self,
        method: PaymentMethodDetails,
        profile: UserPaymentProfile,
        order_total: float,
        now: Optional[datetime] = None,
    ) -> PaymentRecommendation:
        confidence = 0.0
        reasoning: List[str] = []
        advantages: List[str] = []
        disadvantages: List[str] = []

        psychological_match = self.calculate_psychological_match(method, profile)
        confidence += psychological_match * PSYCHOLOGICAL_MATCH_WEIGHT
        if psychological_match > 80:
            reasoning.append(f"Great fit for your profile ({psychological_match:.0f}% match)")

        if profile.device_type == 'mobile' and method.id in domain.MOBILE_WALLETS:
            confidence += MOBILE_WALLET_BONUS
            reasoning.append("Best suited to your mobile device")
            advantages.append("One-touch payment")

        cost = self.calculate_total_cost(method.id, order_total, now=now)
        if profile.price_sensitivity == 'high':
            if cost.fee == 0:
                confidence += NO_FEE_BONUS
                reasoning.append("No fee")
                advantages.append("Saves the payment fee")
            elif cost.fee < LOW_FEE_THRESHOLD:
                confidence += LOW_FEE_BONUS
                reasoning.append("Low fee")
            else:
                confidence -= HIGH_FEE_PENALTY
                disadvantages.append(f"Fee of {cost.fee:.2f} UAH")

        if profile.convenience_preference == 'speed':
            confidence += method.speed_score * SPEED_WEIGHT
            if method.average_completion_time < 30:
                reasoning.append("Very fast checkout")
                advantages.append(f"Paid in {method.average_completion_time:.0f} seconds")

        if profile.risk_tolerance == 'low':
            confidence += method.trust_score * TRUST_WEIGHT
            if method.success_rate > 95:
                reasoning.append("Highly reliable")
                advantages.append(f"{method.success_rate:.0f}% of payments succeed")

        promotion = self.active_promotion(method, now)
        if promotion:
            confidence += PROMOTION_BONUS
            reasoning.append(f"Promotion: {promotion.description}")
            advantages.append(promotion.description)

        if method.id in profile.preferred_methods:
            confidence += PREFERRED_METHOD_BONUS
            reasoning.append("Your usual payment method")

        if profile.is_first_time and method.id in domain.FIRST_ORDER_METHODS:
            confidence += FIRST_ORDER_BONUS
            reasoning.append("Recommended for a first order")

        return PaymentRecommendation(
            method=method.id,
            confidence=min(100.0, max(0.0, confidence)),
            reasoning=reasoning,
            psychological_match=psychological_match,
            advantages=advantages,
            disadvantages=disadvantages or None,
            total_cost=cost.total,
            savings=cost.savings,
            estimated_time=method.average_completion_time,
            user_friction_score=self.calculate_user_friction(method, profile),
        )

    @staticmethod
    def calculate_psychological_match(method: PaymentMethodDetails, profile: UserPaymentProfile) -> float:
        """Average strength of the method's triggers that resonate with the profile, 0-100."""
        if not method.triggers:
            return 0.0

        match = 0.0
        for trigger in method.triggers:
            if trigger.trigger == 'speed':
                applies = profile.convenience_preference == 'speed'
            elif trigger.trigger == 'security':
                applies = profile.risk_tolerance == 'low'
            elif trigger.trigger == 'familiarity':
                applies = profile.convenience_preference == 'familiarity'
            elif trigger.trigger == 'savings':
                applies = profile.price_sensitivity == 'high'
            else:
                applies = profile.age_group in ('18-25', '26-35')
            if applies:
                match += trigger.strength * domain.TRIGGER_WEIGHTS[trigger.trigger]

        return min(100.0, match / len(method.triggers))

    @staticmethod
    def calculate_user_friction(method: PaymentMethodDetails, profile: UserPaymentProfile) -> float:
        friction = domain.BASE_FRICTION.get(method.id, domain.DEFAULT_FRICTION)

        if method.id not in profile.preferred_methods:
            friction += 10

        failed_attempts = sum(1 for attempt in profile.failed_attempts if attempt.method == method.id)
        friction += failed_attempts * 15
        friction += len(method.requirements) * 5

        return min(100.0, friction)

    @staticmethod
    def apply_personalization(
        recommendations: List[PaymentRecommendation], profile: UserPaymentProfile, variant: str
    ) -> List[PaymentRecommendation]:
        """
        Reorders recommendations for the presentation variant:
        control keeps the confidence order, experiment_1 lists mobile wallets first on mobile,
        experiment_2 lists methods with savings first.
        """
        ordered = list(recommendations)
        if variant == 'experiment_1' and profile.device_type == 'mobile':
            ordered.sort(key=lambda rec: (rec.method not in domain.MOBILE_WALLETS, -rec.confidence))
        elif variant == 'experiment_2':
            ordered.sort(key=lambda rec: (not rec.savings, -rec.confidence))
        return [rec.model_copy(update={"variant": variant}) for rec in ordered]
