"""Feature vector contracts shared by the extractors and the predictors."""

from datetime import datetime

from pydantic import BaseModel, Field


class CVFeatures(BaseModel):
    """Content statistics of the resume itself."""
    word_count: int = 0
    sections_count: int = 0
    skills_count: int = 0
    experience_years: float = 0.0
    education_level: int = 1  # 1 none/high school, 2 associate, 3 bachelor, 4 master, 5 phd
    certifications_count: int = 0
    projects_count: int = 0
    achievements_count: int = 0
    keyword_density: float = 0.0  # 0-1, share of JD terms present in the CV
    readability_score: float = 0.0  # 0-1
    formatting_score: float = 0.0  # 0-1


class MatchingFeatures(BaseModel):
    """Candidate/job fit signals, each normalized to 0-1."""
    skill_match_percentage: float = Field(0.0, ge=0.0, le=1.0)
    experience_relevance: float = Field(0.0, ge=0.0, le=1.0)
    education_match: float = Field(0.0, ge=0.0, le=1.0)
    industry_experience: float = Field(0.0, ge=0.0, le=1.0)
    location_match: float = Field(0.0, ge=0.0, le=1.0)
    salary_alignment: float = Field(0.0, ge=0.0, le=1.0)
    title_similarity: float = Field(0.0, ge=0.0, le=1.0)
    company_fit: float = Field(0.0, ge=0.0, le=1.0)


class MarketFeatures(BaseModel):
    industry_growth: float = 0.05  # annual growth rate
    location_competitiveness: float = 0.5  # 0-1, 1 = most competitive
    salary_competitiveness: float = 0.5  # 0.1-1
    demand_supply_ratio: float = 1.0  # >1 means more openings than candidates
    seasonality: float = 1.0  # hiring-season multiplier
    economic_indicators: float = 0.5  # 0-1 economic health


class BehaviorFeatures(BaseModel):
    """User activity signals. Defaults are the neutral no-history values."""
    application_timing: float = 1.0  # days between posting and application
    weekday_application: bool = True
    time_of_day: int = Field(14, ge=0, le=23)
    application_method: int = 1  # 1 direct, 2 platform, 3 referral
    cv_optimization_level: float = 0.5
    platform_engagement: float = 0.5
    previous_applications: int = 0


class DerivedFeatures(BaseModel):
    """Composite signals computed from the other groups, each 0-1."""
    overqualification_score: float = Field(0.0, ge=0.0, le=1.0)
    underqualification_score: float = Field(0.0, ge=0.0, le=1.0)
    career_progression_score: float = Field(0.0, ge=0.0, le=1.0)
    stability_score: float = Field(0.0, ge=0.0, le=1.0)
    adaptability_score: float = Field(0.0, ge=0.0, le=1.0)
    leadership_potential: float = Field(0.0, ge=0.0, le=1.0)
    innovation_indicator: float = Field(0.0, ge=0.0, le=1.0)


FEATURE_GROUPS = (
    "cv_features",
    "matching_features",
    "market_features",
    "behavior_features",
    "derived_features",
)


class FeatureVector(BaseModel):
    user_id: str
    job_id: str
    extraction_date: datetime

    cv_features: CVFeatures
    matching_features: MatchingFeatures
    market_features: MarketFeatures
    behavior_features: BehaviorFeatures = BehaviorFeatures()
    derived_features: DerivedFeatures

    def flatten(self) -> dict[str, float]:
        """Flatten all groups into `group.field -> value` (bools become 0/1)."""
        flat: dict[str, float] = {}
        for group in FEATURE_GROUPS:
            for name, value in getattr(self, group).model_dump().items():
                flat[f"{group}.{name}"] = float(value)
        return flat


class FeatureValidation(BaseModel):
    is_valid: bool = False
    completeness: float = 0.0  # populated groups / 5
    quality_score: float = 0.0
    missing_features: list[str] = []
    issues: list[str] = []
