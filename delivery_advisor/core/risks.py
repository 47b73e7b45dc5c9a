# delivery_advisor/core/risks.py
"""
Risk analysis of a shipment: weather, carrier logistics and parcel damage.
"""
from datetime import date, datetime

from .. import domain
from ..models import City, LogisticsRisk, PackageRisk, PackagingDetails, RiskAnalysis, WeatherRisk


def calculate_holiday_risk(when: datetime) -> float:
    """Probability (%) that a public holiday in the coming week slows carriers down."""
    today = when.date()
    for month, day in domain.PUBLIC_HOLIDAYS:
        for year in (today.year, today.year + 1):
            days_until = (date(year, month, day) - today).days
            if 0 <= days_until <= domain.HOLIDAY_WINDOW_DAYS:
                return domain.PEAK_HOLIDAY_RISK
    return domain.BASE_HOLIDAY_RISK


class RiskAnalyzer:
    """Lists the risks a shipment is exposed to, with probabilities in %."""

    def analyze(self, city: City, packaging: PackagingDetails, now: datetime) -> RiskAnalysis:
        weather_risks = [
            WeatherRisk(type='rain', probability=domain.RAIN_RISK, impact='low',
                        mitigation='Moisture-proof reinforced packaging'),
        ]
        if now.month in domain.WINTER_MONTHS:
            weather_risks.append(
                WeatherRisk(type='snow', probability=domain.SNOW_RISK, impact='medium',
                            mitigation=f'Allow extra transit days to {city.name} in winter')
            )

        logistics_risks = [
            LogisticsRisk(type='holiday', probability=calculate_holiday_risk(now), impact='medium',
                          affected_regions=['all']),
        ]

        damage_probability = domain.FRAGILE_DAMAGE_RISK if packaging.is_fragile else domain.STANDARD_DAMAGE_RISK
        package_risks = [
            PackageRisk(type='damage', probability=damage_probability,
                        preventive_measures=['Reinforced packaging', 'Insurance', '"Fragile" labelling']),
        ]

        return RiskAnalysis(
            weather_risks=weather_risks,
            logistics_risks=logistics_risks,
            package_risks=package_risks,
        )
