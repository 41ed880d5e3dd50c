"""
Fixed lookup tables used across the engine.
Industry benchmarks, categorical code maps and timeframe conversions.
"""

from typing import Dict, Any


# Companies older than this are treated as mature
MATURITY_AGE_YEARS = 5

# Ordinal codes for categorical profile answers
CONCENTRATION_CODES: Dict[str, int] = {
    "diversified": 0,
    "moderate": 1,
    "concentrated": 2,
}

MARKET_POSITION_CODES: Dict[str, int] = {
    "leader": 3,
    "strong": 2,
    "average": 1,
    "weak": 0,
}

# Desired exit timeframe expressed in years. "flexible" is treated as two years.
TIMEFRAME_YEARS: Dict[str, float] = {
    "6-months": 0.5,
    "1-year": 1.0,
    "2-years": 2.0,
    "3-plus-years": 3.0,
    "flexible": 2.0,
}

# Per-industry multiples and market attractiveness (0-100)
INDUSTRY_BENCHMARKS: Dict[str, Dict[str, Any]] = {
    "technology": {
        "label": "Technology",
        "revenue_multiple": 1.8,
        "earnings_multiple": 8.0,
        "attractiveness": 90,
        "ip_intensive": True,
    },
    "healthcare": {
        "label": "Healthcare",
        "revenue_multiple": 1.4,
        "earnings_multiple": 7.0,
        "attractiveness": 85,
        "ip_intensive": True,
    },
    "manufacturing": {
        "label": "Manufacturing",
        "revenue_multiple": 0.9,
        "earnings_multiple": 5.5,
        "attractiveness": 65,
        "ip_intensive": True,
    },
    "professional-services": {
        "label": "Professional Services",
        "revenue_multiple": 1.0,
        "earnings_multiple": 5.0,
        "attractiveness": 70,
        "ip_intensive": False,
    },
    "financial-services": {
        "label": "Financial Services",
        "revenue_multiple": 1.5,
        "earnings_multiple": 6.5,
        "attractiveness": 75,
        "ip_intensive": False,
    },
    "retail": {
        "label": "Retail",
        "revenue_multiple": 0.6,
        "earnings_multiple": 4.5,
        "attractiveness": 55,
        "ip_intensive": False,
    },
    "construction": {
        "label": "Construction",
        "revenue_multiple": 0.5,
        "earnings_multiple": 4.0,
        "attractiveness": 55,
        "ip_intensive": False,
    },
    "hospitality": {
        "label": "Hospitality",
        "revenue_multiple": 0.7,
        "earnings_multiple": 4.0,
        "attractiveness": 50,
        "ip_intensive": False,
    },
    "distribution": {
        "label": "Distribution",
        "revenue_multiple": 0.6,
        "earnings_multiple": 5.0,
        "attractiveness": 60,
        "ip_intensive": False,
    },
    "other": {
        "label": "Other",
        "revenue_multiple": 0.8,
        "earnings_multiple": 4.5,
        "attractiveness": 60,
        "ip_intensive": False,
    },
}


def canonical_industry(industry: str) -> str:
    """
    Map a free-form industry label onto a benchmark key.

    Case, surrounding whitespace, spaces and underscores are normalized
    ("Professional Services" -> "professional-services").

    Raises:
        ValueError: if the industry has no benchmark entry
    """
    key = "-".join(str(industry).strip().lower().replace("_", " ").split())
    if key not in INDUSTRY_BENCHMARKS:
        raise ValueError(
            f"Unsupported industry '{industry}'. "
            f"Expected one of: {', '.join(INDUSTRY_BENCHMARKS)}"
        )
    return key


def get_industry_benchmarks(industry: str) -> Dict[str, Any]:
    """Return the benchmark row for an already-canonical industry key"""
    return INDUSTRY_BENCHMARKS[industry]


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a computed value into [low, high]"""
    return max(low, min(high, value))
