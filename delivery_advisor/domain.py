# delivery_advisor/domain.py
"""
Domain Tables Module for the Delivery Advisor.\n
This module centralizes the business coefficients and reference data used by the scoring engine.\n
By isolating these tables, tariffs and carrier profiles can be updated without touching the algorithms.\n
"""

# --- Packaging Coefficients ---
"""
These tables drive the packaging analysis.\n
- ITEM_DENSITIES: Material density per product type, in kg/m3.\n
- CONTENT_MATERIALS: The material category each product type is packed as.\n
- FRAGILE_PRODUCTS / SPECIAL_HANDLING_PRODUCTS: Product types that need extra care.\n
- PACKAGING_COSTS: Surcharges in UAH added on top of the base box.\n
"""
ITEM_DENSITIES = {
    'canvas': 800,
    'acrylic': 1200,
    'business-cards': 900,
    'flyers': 900,
    'stickers': 900,
    'poster': 80,
    'banner': 500,
}
DEFAULT_DENSITY = 500

CONTENT_MATERIALS = {
    'canvas': 'canvas',
    'acrylic': 'acrylic',
    'business-cards': 'paper',
    'flyers': 'paper',
    'stickers': 'paper',
    'poster': 'paper',
    'banner': 'textile',
    'metal': 'metal',
}

FRAGILE_PRODUCTS = {'canvas', 'acrylic'}
SPECIAL_HANDLING_PRODUCTS = {'acrylic'}

DEFAULT_ITEM_DEPTH_MM = 20
FRAGILE_PADDING_CM = 5
STANDARD_PADDING_CM = 2
VOLUMETRIC_DIVISOR = 4000  # Nova Poshta standard
MEDIUM_REINFORCEMENT_WEIGHT_KG = 5

PACKAGING_COSTS = {
    'base': 25,
    'heavy': 50,
    'medium': 25,
    'fragile_stickers': 10,
    'moisture_protection': 15,
}
INSURANCE_RATE = 0.02
PACKAGING_INSURANCE_THRESHOLD = 1000

# --- Carrier Profiles ---
"""
Static service profile of every delivery method the studio offers.\n
- days_offset: (min, max, most likely) added to the destination's average delivery days.\n
- fixed_days: When set, the estimate ignores the destination and uses these values instead.\n
- packaging_multiplier / carbon_multiplier: Scale the parcel's packaging cost and route footprint.\n
"""
CARRIER_PROFILES = {
    'nova-poshta-warehouse': {
        'provider': 'nova-poshta',
        'service_type': 'WarehouseWarehouse',
        'days_offset': (0, 1, 0),
        'insured': True,
        'packaging_multiplier': 1.0,
        'handling_fee': 0,
        'on_time_probability': 85,
        'tracking_quality': 'excellent',
        'customer_service': 4.2,
        'delivery_flexibility': 80,
        'return_policy': 'easy',
        'max_weight': 30,
        'max_dimensions': (100, 100, 100),
        'carbon_multiplier': 1.0,
        'packaging_recyclable': True,
        'route_optimization': 85,
        'location_type': 'warehouse',
    },
    'nova-poshta-courier': {
        'provider': 'nova-poshta',
        'service_type': 'WarehouseDoors',
        'days_offset': (0, 2, 1),
        'insured': True,
        'packaging_multiplier': 1.0,
        'handling_fee': 0,
        'on_time_probability': 75,
        'tracking_quality': 'excellent',
        'customer_service': 4.2,
        'delivery_flexibility': 95,
        'return_policy': 'easy',
        'max_weight': 30,
        'max_dimensions': (100, 100, 100),
        'carbon_multiplier': 1.3,
        'packaging_recyclable': True,
        'route_optimization': 70,
        'location_type': 'courier',
    },
    'ukrposhta': {
        'provider': 'ukrposhta',
        'days_offset': (2, 7, 4),
        'insured': False,
        'packaging_multiplier': 0.7,
        'handling_fee': 5,
        'on_time_probability': 60,
        'tracking_quality': 'average',
        'customer_service': 2.8,
        'delivery_flexibility': 40,
        'return_policy': 'difficult',
        'max_weight': 20,
        'max_dimensions': (80, 80, 80),
        'carbon_multiplier': 0.8,
        'packaging_recyclable': False,
        'route_optimization': 50,
        'location_type': 'postoffice',
    },
    'pickup': {
        'provider': 'pickup',
        'fixed_days': (1, 3, 2),
        'insured': False,
        'packaging_multiplier': 0.5,
        'handling_fee': 0,
        'on_time_probability': 99,
        'tracking_quality': 'excellent',
        'customer_service': 5.0,
        'delivery_flexibility': 100,
        'return_policy': 'easy',
        'max_weight': 100,
        'max_dimensions': (200, 200, 200),
        'carbon_multiplier': 0.0,
        'packaging_recyclable': True,
        'route_optimization': 100,
        'location_type': 'pickup',
    },
}

METHOD_LABELS = {
    'nova-poshta-warehouse': 'Nova Poshta warehouse',
    'nova-poshta-courier': 'Nova Poshta courier',
    'ukrposhta': 'Ukrposhta',
    'pickup': 'studio pickup',
}

# Offline Nova Poshta tariff, used when no API key is configured
NOVA_POSHTA_BASE_RATE = 45
NOVA_POSHTA_DOOR_MULTIPLIER = 1.5
UKRPOSHTA_MIN_COST = 35
UKRPOSHTA_RATE_PER_KG = 8

CO2_PER_KM_KG = 0.1  # divided by 1000 per kg of shipping weight

# --- Season & Weather Tables ---
"""
Multipliers and impacts used by the prediction step.\n
- SEASONAL_FACTORS: Multiplier applied to transit days, by calendar month.\n
- MONTHLY_WEATHER_IMPACT: Climatology fallback for the weather impact score (0-100).\n
- WEATHER_CONDITION_IMPACTS: Regex over a forecast's condition text, checked in order.\n
"""
SEASONAL_FACTORS = {
    1: 1.3, 2: 1.3, 3: 1.0, 4: 1.0, 5: 1.0, 6: 0.9,
    7: 0.9, 8: 0.9, 9: 0.9, 10: 1.0, 11: 1.0, 12: 1.3,
}
WINTER_MONTHS = {12, 1, 2}

MONTHLY_WEATHER_IMPACT = {
    1: 35, 2: 30, 3: 20, 4: 15, 5: 10, 6: 10,
    7: 10, 8: 10, 9: 15, 10: 20, 11: 25, 12: 30,
}

WEATHER_CONDITION_IMPACTS = [
    ('(?i)snow|blizzard|sleet|ice', 80),
    ('(?i)thunder|storm', 50),
    ('(?i)rain|drizzle|shower', 20),
    ('(?i)fog|mist', 10),
]
DEFAULT_WEATHER_IMPACT = 5

# --- Risk Tables ---
"""
Probabilities (in %) used by the risk analysis.\n
PUBLIC_HOLIDAYS lists (month, day) pairs of Ukrainian public holidays that slow down carriers.\n
"""
PUBLIC_HOLIDAYS = [(1, 1), (3, 8), (6, 28), (8, 24), (10, 1), (12, 25)]
HOLIDAY_WINDOW_DAYS = 7
BASE_HOLIDAY_RISK = 20
PEAK_HOLIDAY_RISK = 45
HIGH_HOLIDAY_RISK_THRESHOLD = 30

RAIN_RISK = 30
SNOW_RISK = 40
FRAGILE_DAMAGE_RISK = 15
STANDARD_DAMAGE_RISK = 5

# --- City Reference Data ---
"""
Destinations the studio ships to, with their Nova Poshta ref and logistics profile.\n
CITY_ALIASES maps legacy and Russian spellings to the canonical English name.\n
"""
CITIES = [
    {
        'ref': '8d5a980d-391c-11dd-90d9-001a92567626', 'name': 'Kyiv', 'name_ua': 'Київ',
        'region': 'Kyiv', 'region_ua': 'Київська', 'population': 3000000,
        'lat': 50.4501, 'lng': 30.5234,
        'is_regional_center': True, 'has_nova_poshta_hub': True, 'average_delivery_days': 1,
        'courier_available': True, 'warehouse_count': 200, 'last_mile_quality': 'excellent',
    },
    {
        'ref': 'db5c88e0-391c-11dd-90d9-001a92567626', 'name': 'Kharkiv', 'name_ua': 'Харків',
        'region': 'Kharkiv', 'region_ua': 'Харківська', 'population': 1430000,
        'lat': 49.9935, 'lng': 36.2304,
        'is_regional_center': True, 'has_nova_poshta_hub': True, 'average_delivery_days': 2,
        'courier_available': True, 'warehouse_count': 120, 'last_mile_quality': 'good',
    },
    {
        'ref': 'db5c88d0-391c-11dd-90d9-001a92567626', 'name': 'Odesa', 'name_ua': 'Одеса',
        'region': 'Odesa', 'region_ua': 'Одеська', 'population': 1010000,
        'lat': 46.4825, 'lng': 30.7233,
        'is_regional_center': True, 'has_nova_poshta_hub': True, 'average_delivery_days': 2,
        'courier_available': True, 'warehouse_count': 110, 'last_mile_quality': 'good',
    },
    {
        'ref': 'db5c88f5-391c-11dd-90d9-001a92567626', 'name': 'Lviv', 'name_ua': 'Львів',
        'region': 'Lviv', 'region_ua': 'Львівська', 'population': 720000,
        'lat': 49.8397, 'lng': 24.0297,
        'is_regional_center': True, 'has_nova_poshta_hub': True, 'average_delivery_days': 2,
        'courier_available': True, 'warehouse_count': 100, 'last_mile_quality': 'good',
    },
    {
        'ref': 'db5c88f0-391c-11dd-90d9-001a92567626', 'name': 'Dnipro', 'name_ua': 'Дніпро',
        'region': 'Dnipropetrovsk', 'region_ua': 'Дніпропетровська', 'population': 980000,
        'lat': 48.4647, 'lng': 35.0462,
        'is_regional_center': True, 'has_nova_poshta_hub': True, 'average_delivery_days': 2,
        'courier_available': True, 'warehouse_count': 105, 'last_mile_quality': 'good',
    },
]

CITY_ALIASES = {
    'kiev': 'Kyiv',
    'киев': 'Kyiv',
    'kharkov': 'Kharkiv',
    'харьков': 'Kharkiv',
    'odessa': 'Odesa',
    'одесса': 'Odesa',
    'lvov': 'Lviv',
    'львов': 'Lviv',
    'dnepr': 'Dnipro',
    'днепр': 'Dnipro',
}

# --- Payment Method Catalog ---
"""
Payment methods accepted at checkout, with fees and the behavioural scores used for ranking.\n
Fees are a percentage of the amount plus a fixed part in UAH.\n
"""
PAYMENT_METHODS = [
    {
        'id': 'liqpay-card', 'name': 'Card (LiqPay)', 'description': 'Visa, MasterCard via PrivatBank',
        'fee_percentage': 2.75, 'fee_fixed': 0, 'minimum_amount': 1, 'maximum_amount': 100000,
        'trust_score': 95, 'convenience_score': 90, 'speed_score': 85,
        'triggers': [
            {'trigger': 'familiarity', 'strength': 90, 'message': 'The most popular way to pay in Ukraine'},
            {'trigger': 'security', 'strength': 85, 'message': 'Protected by PrivatBank'},
        ],
        'average_completion_time': 45, 'success_rate': 94, 'user_satisfaction': 4.3,
    },
    {
        'id': 'mono-card', 'name': 'Card (Mono)', 'description': 'Pay with monobank',
        'fee_percentage': 2.5, 'fee_fixed': 0, 'minimum_amount': 1, 'maximum_amount': 100000,
        'trust_score': 88, 'convenience_score': 95, 'speed_score': 95,
        'triggers': [
            {'trigger': 'speed', 'strength': 95, 'message': 'The fastest checkout in Ukraine'},
            {'trigger': 'status', 'strength': 70, 'message': 'A modern bank for progressive people'},
        ],
        'average_completion_time': 20, 'success_rate': 96, 'user_satisfaction': 4.6,
        'promotion': {
            'type': 'discount', 'value': 1, 'description': '1% cashback when paying with Mono',
            'valid_until': '2026-12-31',
        },
    },
    {
        'id': 'apple-pay', 'name': 'Apple Pay', 'description': 'Pay with Apple Pay',
        'fee_percentage': 2.75, 'fee_fixed': 0, 'minimum_amount': 1, 'maximum_amount': 100000,
        'trust_score': 98, 'convenience_score': 100, 'speed_score': 100,
        'triggers': [
            {'trigger': 'security', 'strength': 98, 'message': 'Touch ID / Face ID protection'},
            {'trigger': 'speed', 'strength': 100, 'message': 'One-touch payment'},
            {'trigger': 'status', 'strength': 80, 'message': 'Premium checkout experience'},
        ],
        'average_completion_time': 8, 'success_rate': 99, 'user_satisfaction': 4.9,
        'requirements': ['iPhone or iPad', 'iOS 14+', 'Touch ID or Face ID'],
    },
    {
        'id': 'google-pay', 'name': 'Google Pay', 'description': 'Pay with Google Pay',
        'fee_percentage': 2.75, 'fee_fixed': 0, 'minimum_amount': 1, 'maximum_amount': 100000,
        'trust_score': 95, 'convenience_score': 98, 'speed_score': 98,
        'triggers': [
            {'trigger': 'security', 'strength': 95, 'message': 'Protected by Google'},
            {'trigger': 'speed', 'strength': 98, 'message': 'Instant payment'},
            {'trigger': 'familiarity', 'strength': 85, 'message': 'The familiar Android interface'},
        ],
        'average_completion_time': 12, 'success_rate': 97, 'user_satisfaction': 4.7,
        'requirements': ['Android 5.0+', 'NFC', 'Screen lock'],
    },
    {
        'id': 'cash-on-delivery', 'name': 'Cash on delivery', 'description': 'Pay when you collect the parcel',
        'fee_percentage': 0, 'fee_fixed': 20, 'minimum_amount': 100, 'maximum_amount': 30000,
        'trust_score': 85, 'convenience_score': 60, 'speed_score': 40,
        'triggers': [
            {'trigger': 'security', 'strength': 95, 'message': 'Pay only after checking the goods'},
            {'trigger': 'familiarity', 'strength': 80, 'message': 'The usual way for many customers'},
        ],
        'average_completion_time': 0, 'success_rate': 85, 'user_satisfaction': 3.8,
    },
]

MOBILE_WALLETS = {'apple-pay', 'google-pay'}
FIRST_ORDER_METHODS = {'liqpay-card', 'cash-on-delivery'}

# Multiplier applied to a trigger's strength when it matches the customer's profile
TRIGGER_WEIGHTS = {'speed': 0.8, 'security': 0.8, 'familiarity': 0.8, 'savings': 0.9, 'status': 0.6}

BASE_FRICTION = {
    'apple-pay': 5,
    'google-pay': 5,
    'mono-card': 15,
    'liqpay-card': 20,
    'liqpay-privat24': 18,
    'cash-on-delivery': 10,
    'bank-transfer': 40,
}
DEFAULT_FRICTION = 25

PRESENTATION_VARIANTS = ['control', 'experiment_1', 'experiment_2']

# --- Route History Generation ---
"""
Parameters of the synthetic delivery records used to bootstrap route statistics.\n
- HISTORY_DAMAGE_RATES: Share of parcels arriving damaged, by delivery method.\n
- MAX_GENERATED_DELAY_DAYS: Upper bound of the delay drawn for a late parcel.\n
"""
HISTORY_DAMAGE_RATES = {
    'nova-poshta-warehouse': 0.02,
    'nova-poshta-courier': 0.02,
    'ukrposhta': 0.05,
    'pickup': 0.0,
}
MAX_GENERATED_DELAY_DAYS = 3
