# delivery_advisor/core/recommend.py
"""
Ranking of delivery options against the customer's preferences:
    - Preference score (budget 40, speed 35, reliability 25, service bonuses)
    - Recommendation reasons and confidence
    - Optimization suggestions relative to the recommended option
"""
from typing import List

from .. import domain
from ..models import DeliveryOption, Optimization, RiskAnalysis, UserPreferences

BUDGET_WEIGHT = 40
BUDGET_INDIFFERENT_SCORE = 30
SPEED_WEIGHT = 35
RELIABILITY_WEIGHT = 0.25
EXCELLENT_TRACKING_BONUS = 5
CUSTOMER_SERVICE_BONUS = 3
CUSTOMER_SERVICE_THRESHOLD = 4

RISK_LEVELS = {'low': 0, 'medium': 1, 'high': 2}


def _ranks(options: List[DeliveryOption], key) -> List[int]:
    """Rank of every option, n for the best and 1 for the worst; ties keep enumeration order."""
    n = len(options)
    order = sorted(range(n), key=lambda i: key(options[i]))
    ranks = [0] * n
    for position, index in enumerate(order):
        ranks[index] = n - position
    return ranks


class Recommender:
    """Picks the delivery option that best matches the customer's preferences."""

    def score_options(self, options: List[DeliveryOption], preferences: UserPreferences) -> List[float]:
        n = len(options)
        cost_ranks = _ranks(options, lambda option: option.total_cost)
        speed_ranks = _ranks(options, lambda option: option.estimated_days.most_likely)

        scores = []
        for i, option in enumerate(options):
            score = 0.0

            if preferences.budget == 'low':
                score += (cost_ranks[i] / n) * BUDGET_WEIGHT
            elif preferences.budget == 'high':
                score += BUDGET_INDIFFERENT_SCORE

            if preferences.speed == 'high':
                score += (speed_ranks[i] / n) * SPEED_WEIGHT

            if preferences.reliability == 'high':
                score += option.predictions.on_time_probability * RELIABILITY_WEIGHT

            if option.convenience.tracking_quality == 'excellent':
                score += EXCELLENT_TRACKING_BONUS
            if option.convenience.customer_service >= CUSTOMER_SERVICE_THRESHOLD:
                score += CUSTOMER_SERVICE_BONUS

            scores.append(score)
        return scores

    def select(self, options: List[DeliveryOption], preferences: UserPreferences) -> DeliveryOption:
        """
        Returns the highest-scoring option.
        The first option reaching the best score wins; with no positive score, the first option is kept.
        """
        scores = self.score_options(options, preferences)
        best_index, best_score = 0, 0.0
        for i, score in enumerate(scores):
            if score > best_score:
                best_index, best_score = i, score
        return options[best_index]

    @staticmethod
    def generate_reasons(recommended: DeliveryOption, options: List[DeliveryOption]) -> List[str]:
        reasons = [
            "Best balance of price and quality",
            f"High reliability ({recommended.predictions.on_time_probability:.0f}%)",
        ]
        if recommended.total_cost <= min(option.total_cost for option in options):
            reasons.append("Lowest total cost")
        if recommended.estimated_days.most_likely <= min(option.estimated_days.most_likely for option in options):
            reasons.append("Fastest delivery")
        if recommended.convenience.tracking_quality == 'excellent':
            reasons.append("Excellent tracking")
        return reasons

    @staticmethod
    def calculate_confidence(recommended: DeliveryOption, risks: RiskAnalysis) -> float:
        confidence = 85 + 10 * recommended.predictions.on_time_probability / 100
        confidence -= 5 * RISK_LEVELS[recommended.predictions.quality_risk]
        holiday_risk = max((risk.probability for risk in risks.logistics_risks if risk.type == 'holiday'), default=0)
        if holiday_risk >= domain.HIGH_HOLIDAY_RISK_THRESHOLD:
            confidence -= 5
        return min(100.0, max(0.0, confidence))

    @staticmethod
    def generate_optimizations(recommended: DeliveryOption, options: List[DeliveryOption]) -> List[Optimization]:
        """Suggests the alternative that beats the recommendation on each axis, with the gain."""
        optimizations = []

        cheapest = min(options, key=lambda option: option.total_cost)
        if cheapest.total_cost < recommended.total_cost:
            if cheapest.method == 'pickup':
                suggestion = "Collect the order at the studio to save on delivery"
            else:
                suggestion = f"Switch to {domain.METHOD_LABELS[cheapest.method]} to save on delivery"
            optimizations.append(Optimization(
                type='cost',
                suggestion=suggestion,
                potential_saving=round(recommended.total_cost - cheapest.total_cost, 2),
                implementation_complexity='easy',
            ))

        fastest = min(options, key=lambda option: option.estimated_days.most_likely)
        if fastest.estimated_days.most_likely < recommended.estimated_days.most_likely:
            optimizations.append(Optimization(
                type='speed',
                suggestion=f"Choose {domain.METHOD_LABELS[fastest.method]} to receive the order sooner",
                potential_saving=recommended.estimated_days.most_likely - fastest.estimated_days.most_likely,
                implementation_complexity='easy',
            ))

        most_reliable = max(options, key=lambda option: option.predictions.on_time_probability)
        if most_reliable.predictions.on_time_probability > recommended.predictions.on_time_probability:
            optimizations.append(Optimization(
                type='reliability',
                suggestion=f"{domain.METHOD_LABELS[most_reliable.method]} arrives on time more often",
                potential_saving=round(
                    most_reliable.predictions.on_time_probability - recommended.predictions.on_time_probability, 2
                ),
                implementation_complexity='easy',
            ))

        greenest = min(options, key=lambda option: option.sustainability.carbon_footprint)
        if greenest.sustainability.carbon_footprint < recommended.sustainability.carbon_footprint:
            optimizations.append(Optimization(
                type='sustainability',
                suggestion=f"{domain.METHOD_LABELS[greenest.method]} has a lower carbon footprint",
                potential_saving=round(
                    recommended.sustainability.carbon_footprint - greenest.sustainability.carbon_footprint, 3
                ),
                implementation_complexity='medium',
            ))

        return optimizations
