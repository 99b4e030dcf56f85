"""Risk scoring engine - deterministic multi-factor fraud scorer"""

from decimal import Decimal
from typing import Callable, List, Optional

from fraudshield.domain.models import RiskAssessment, RiskFactors, RiskLevel, TransactionAttempt

# Home-country locations (matched case-insensitively)
HOME_LOCATIONS = frozenset(
    city.lower()
    for city in [
        "London", "Manchester", "Birmingham", "Leeds", "Glasgow", "Liverpool",
        "Edinburgh", "Bristol", "Cardiff", "Newcastle", "Sheffield", "Belfast",
        "Nottingham", "Cambridge", "Oxford", "Reading", "Leicester", "Brighton",
        "Portsmouth", "Milton Keynes",
    ]
)
TOP_CITY = "london"
MAJOR_CITIES = frozenset({"manchester", "birmingham", "glasgow", "liverpool"})
UNKNOWN_LOCATION = "unknown"

CATEGORY_RISK = {
    "gambling": 0.95,
    "cryptocurrency": 0.9,
    "money_transfer": 0.85,
    "electronics": 0.7,
    "travel": 0.5,
    "entertainment": 0.4,
    "retail": 0.3,
    "food": 0.2,
    "services": 0.4,
    "other": 0.5,
}
HIGH_RISK_CATEGORIES = frozenset({"gambling", "cryptocurrency", "money_transfer"})

PLACEHOLDER_DEVICE_ID = "web-client"
PLACEHOLDER_IP_ADDRESS = "127.0.0.1"

FRAUD_THRESHOLD = 0.6
LOW_RISK_CEILING = 0.3

# Pure function: attempt -> assessment. A trained model can be swapped in behind it.
Scorer = Callable[[TransactionAttempt], RiskAssessment]


def _normalized(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_home_location(location: Optional[str]) -> bool:
    return _normalized(location) in HOME_LOCATIONS


def amount_score(amount: Decimal) -> float:
    """Tiered step function over the attempted amount"""
    if amount >= 10000:
        return 1.0
    if amount >= 5000:
        return 0.85
    if amount >= 2500:
        return 0.7
    if amount >= 1000:
        return 0.5
    if amount >= 500:
        return 0.3
    return 0.1


def category_score(category: str) -> float:
    return CATEGORY_RISK.get(_normalized(category), CATEGORY_RISK["other"])


def location_score(location: Optional[str]) -> float:
    """
    Location risk:
    - missing or outside the home country: 1.0
    - highest-traffic city: 0.4
    - other major cities: 0.3
    - any other home-country location: 0.2
    """
    loc = _normalized(location)
    if not loc or loc not in HOME_LOCATIONS:
        return 1.0
    if loc == TOP_CITY:
        return 0.4
    if loc in MAJOR_CITIES:
        return 0.3
    return 0.2


def verification_score(device_id: Optional[str], ip_address: Optional[str]) -> float:
    """Penalize missing or generic device and network identifiers, capped at 1.0"""
    score = 0.0
    if not device_id or device_id == PLACEHOLDER_DEVICE_ID:
        score += 0.6
    if not ip_address or ip_address == PLACEHOLDER_IP_ADDRESS:
        score += 0.7
    return min(score, 1.0)


def risk_multipliers(attempt: TransactionAttempt) -> List[float]:
    """
    Amplifiers that apply to the attempt, in application order.

    Each condition is evaluated against the attempt itself, never the
    running score.
    """
    category = _normalized(attempt.category)
    location = _normalized(attempt.location)
    high_risk_category = category in HIGH_RISK_CATEGORIES
    abroad = not is_home_location(attempt.location)
    unknown_location = not location or location == UNKNOWN_LOCATION

    rules = [
        (high_risk_category and attempt.amount >= 1000, 1.3),
        (abroad and high_risk_category, 1.5),
        (abroad and attempt.amount >= 5000, 1.4),
        (unknown_location and attempt.amount >= 1000, 1.3),
    ]
    return [multiplier for condition, multiplier in rules if condition]


def risk_level_for(score: float) -> RiskLevel:
    if score <= LOW_RISK_CEILING:
        return RiskLevel.LOW
    if score <= FRAUD_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def is_fraudulent(score: float) -> bool:
    return score > FRAUD_THRESHOLD


def score_transaction(attempt: TransactionAttempt) -> RiskAssessment:
    """
    Main entry point: score a transaction attempt.

    Scoring weights:
    - 25%: Amount tier
    - 25%: Merchant category
    - 30%: Location
    - 20%: Device/network verification

    Amplifiers multiply the weighted score cumulatively; the result is
    clamped to [0, 1] only after all of them are applied.
    """
    factors_amount = amount_score(attempt.amount)
    factors_category = category_score(attempt.category)
    factors_location = location_score(attempt.location)
    factors_verification = verification_score(attempt.device_id, attempt.ip_address)

    base = (
        factors_amount * 0.25
        + factors_category * 0.25
        + factors_location * 0.30
        + factors_verification * 0.20
    )

    multipliers = risk_multipliers(attempt)
    score = base
    for multiplier in multipliers:
        score *= multiplier

    score = min(max(score, 0.0), 1.0)

    return RiskAssessment(
        score=score,
        risk_level=risk_level_for(score),
        flagged=is_fraudulent(score),
        factors=RiskFactors(
            amount_score=factors_amount,
            category_score=factors_category,
            location_score=factors_location,
            verification_score=factors_verification,
            base_score=base,
            multipliers=multipliers,
        ),
    )


def assessment_from_score(score: float) -> RiskAssessment:
    """Rebuild an assessment from a persisted score"""
    return RiskAssessment(score=score, risk_level=risk_level_for(score), flagged=is_fraudulent(score))
