"""Versioned heuristic coefficient tables.

Every lookup table the heuristic predictors and market extractor rely on lives
here, kept apart from the formulas so tables can be tuned and tested alone.
Bump `version` whenever a value changes; it is echoed in prediction metadata.
"""

from pydantic import BaseModel


class MarketCoefficients(BaseModel):
    industry_growth: dict[str, float]
    industry_aliases: dict[str, str]
    location_competitiveness: dict[str, float]
    industry_demand_supply: dict[str, float]
    location_demand_multipliers: dict[str, float]
    monthly_demand_adjustment: list[float]  # Jan..Dec
    quarterly_seasonality: list[float]  # Q1..Q4
    economic_factors: dict[str, float]
    competition_levels: dict[str, float]  # market_context.competition_level override


class SalaryCoefficients(BaseModel):
    industry_base: dict[str, int]
    default_base: int = 70000
    education_multipliers: list[float]  # index = education level - 1
    location_multipliers: dict[str, float]
    experience_rate: float = 0.08  # +8% per year of experience
    skill_rate: float = 0.02
    skill_cap: float = 0.3


class TimeToHireCoefficients(BaseModel):
    industry_base_days: dict[str, int]
    default_days: int = 21
    complexity_indicators: list[str]
    large_company_markers: list[str]
    startup_markers: list[str]
    large_company_factor: float = 1.3
    startup_factor: float = 0.7
    phase_shares: dict[str, float]


class CoefficientTable(BaseModel):
    version: str
    market: MarketCoefficients
    salary: SalaryCoefficients
    time_to_hire: TimeToHireCoefficients


DEFAULT_COEFFICIENTS = CoefficientTable(
    version="2024.1",
    market=MarketCoefficients(
        industry_growth={
            "technology": 0.12, "software": 0.15, "fintech": 0.18, "healthcare": 0.08,
            "finance": 0.06, "banking": 0.04, "retail": 0.03, "manufacturing": 0.02,
            "education": 0.05, "government": 0.01, "nonprofit": 0.02, "consulting": 0.07,
            "marketing": 0.09, "media": 0.06, "gaming": 0.20, "ecommerce": 0.14,
            "saas": 0.22, "cybersecurity": 0.25, "ai": 0.30, "data": 0.18, "cloud": 0.16,
        },
        industry_aliases={
            "tech": "technology",
            "it": "technology",
            "information technology": "technology",
            "software development": "software",
            "web development": "software",
            "app development": "software",
            "financial technology": "fintech",
            "artificial intelligence": "ai",
            "machine learning": "ai",
            "data science": "data",
            "data analytics": "data",
            "cloud computing": "cloud",
            "devops": "cloud",
            "e-commerce": "ecommerce",
            "online retail": "ecommerce",
            "digital marketing": "marketing",
            "advertising": "marketing",
            "video games": "gaming",
            "game development": "gaming",
        },
        location_competitiveness={
            "san francisco": 0.95, "palo alto": 0.90, "seattle": 0.85, "new york": 0.88,
            "boston": 0.82, "austin": 0.78, "denver": 0.75, "chicago": 0.70,
            "los angeles": 0.72, "san diego": 0.68, "portland": 0.65, "atlanta": 0.62,
            "miami": 0.60, "dallas": 0.58, "houston": 0.55, "phoenix": 0.52,
            "remote": 0.80, "philadelphia": 0.58, "washington dc": 0.75,
            "raleigh": 0.65, "nashville": 0.60,
        },
        industry_demand_supply={
            "technology": 1.4, "software": 1.6, "ai": 2.2, "cybersecurity": 1.9,
            "data": 1.7, "cloud": 1.5, "fintech": 1.3, "healthcare": 1.2,
            "finance": 0.9, "banking": 0.8, "retail": 0.7, "manufacturing": 0.6,
            "education": 0.8, "government": 0.5, "consulting": 1.1, "marketing": 1.0,
            "gaming": 1.3, "ecommerce": 1.2,
        },
        location_demand_multipliers={
            "san francisco": 1.3, "seattle": 1.2, "new york": 1.1, "boston": 1.1,
            "austin": 1.2, "remote": 1.4, "chicago": 1.0, "los angeles": 0.9,
            "atlanta": 0.9, "dallas": 0.8,
        },
        monthly_demand_adjustment=[0.8, 0.9, 1.1, 1.2, 1.1, 1.0, 0.9, 0.8, 1.1, 1.0, 0.8, 0.7],
        quarterly_seasonality=[0.8, 1.1, 0.9, 0.7],
        economic_factors={
            "gdp_growth": 0.02,
            "unemployment_rate": 0.04,
            "inflation_rate": 0.03,
            "interest_rates": 0.05,
            "stock_market_performance": 0.08,
        },
        competition_levels={"low": 0.4, "medium": 0.6, "high": 0.85},
    ),
    salary=SalaryCoefficients(
        industry_base={
            "technology": 85000, "software": 90000, "fintech": 95000, "finance": 80000,
            "healthcare": 75000, "consulting": 85000, "marketing": 65000,
            "education": 55000, "retail": 50000, "manufacturing": 65000,
        },
        education_multipliers=[0.9, 0.95, 1.0, 1.15, 1.25],
        location_multipliers={
            "san francisco": 1.4, "new york": 1.3, "seattle": 1.25, "boston": 1.2,
            "los angeles": 1.15, "chicago": 1.05, "austin": 1.1, "denver": 1.0,
            "atlanta": 0.95, "remote": 1.1,
        },
    ),
    time_to_hire=TimeToHireCoefficients(
        industry_base_days={
            "technology": 18, "software": 16, "fintech": 20, "finance": 25,
            "healthcare": 30, "government": 45, "consulting": 22, "startup": 12,
            "manufacturing": 28,
        },
        complexity_indicators=[
            "senior", "lead", "principal", "architect", "manager", "director",
            "phd", "research", "algorithm", "machine learning", "ai",
        ],
        large_company_markers=["fortune", "enterprise", "corporation"],
        startup_markers=["startup", "series", "equity"],
        phase_shares={
            "application": 0.15,
            "screening": 0.25,
            "interviews": 0.35,
            "decision": 0.15,
            "negotiation": 0.10,
        },
    ),
)


def lookup(table: dict, key: str | None, default=None):
    """Exact key match, then the first entry where either string contains the other."""
    if not key:
        return default
    normalized = key.lower().strip()
    if normalized in table:
        return table[normalized]
    for name, value in table.items():
        if name in normalized or normalized in name:
            return value
    return default


def normalize_industry(industry: str | None, coefficients: CoefficientTable = DEFAULT_COEFFICIENTS) -> str:
    normalized = (industry or "").lower().strip()
    return coefficients.market.industry_aliases.get(normalized, normalized)
