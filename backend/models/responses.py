from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.schemas import FeatureValidation, FeatureVector


class SalaryRange(BaseModel):
    min: int = 0
    max: int = 0
    median: int = 0
    currency: str = "USD"


class ConfidenceInterval(BaseModel):
    lower: int = 0
    upper: int = 0


class IndustryBenchmark(BaseModel):
    industry_median: int = 0
    percentile_rank: int = 50


class RegionalAdjustment(BaseModel):
    base_location: str = "US"
    adjustment_factor: float = 1.0
    cost_of_living_index: int = 100


class SalaryFactor(BaseModel):
    factor: str
    impact: float = 0.0
    description: str = ""


class SalaryPrediction(BaseModel):
    predicted_range: SalaryRange = SalaryRange()
    confidence_interval: ConfidenceInterval = ConfidenceInterval()
    industry_benchmark: IndustryBenchmark = IndustryBenchmark()
    regional_adjustment: RegionalAdjustment = RegionalAdjustment()
    factors: list[SalaryFactor] = []
    negotiation_potential: float = 0.2


class DayRange(BaseModel):
    min: int = 0
    median: int = 0
    max: int = 0


class PhaseBreakdown(BaseModel):
    application: int = 0
    screening: int = 0
    interviews: int = 0
    decision: int = 0
    negotiation: int = 0

    def total(self) -> int:
        return self.application + self.screening + self.interviews + self.decision + self.negotiation


class TimeToHirePrediction(BaseModel):
    estimated_days: DayRange = DayRange()
    phase_breakdown: PhaseBreakdown = PhaseBreakdown()
    current_season: str = ""
    confidence: float = 0.5


class PredictionConfidence(BaseModel):
    """Per-facet confidence. `overall` is lower for the fallback tiers."""
    overall: float = Field(0.5, ge=0.0, le=1.0)
    interview_confidence: float = Field(0.5, ge=0.0, le=1.0)
    offer_confidence: float = Field(0.5, ge=0.0, le=1.0)
    salary_confidence: float = Field(0.5, ge=0.0, le=1.0)
    time_to_hire_confidence: float = Field(0.5, ge=0.0, le=1.0)


class ExpectedImpact(BaseModel):
    interview_boost: float = 0.0
    offer_boost: float = 0.0
    salary_boost: float = 0.0


class Recommendation(BaseModel):
    recommendation_id: str
    type: str  # skill, experience, keyword, content
    priority: int = 3  # 1 = most important
    title: str
    description: str = ""
    action_items: list[str] = []
    expected_impact: ExpectedImpact = ExpectedImpact()


class ModelMetadata(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_version: str = ""
    coefficients_version: str = ""
    features_used: list[str] = []
    training_data_size: int = 0
    last_training_date: datetime | None = None


class SuccessPrediction(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    prediction_id: str
    user_id: str
    job_id: str
    timestamp: datetime

    interview_probability: float = Field(..., ge=0.0, le=1.0)
    offer_probability: float = Field(..., ge=0.0, le=1.0)
    hire_probability: float = Field(..., ge=0.0, le=1.0)  # offer_probability * 0.8

    salary_prediction: SalaryPrediction
    time_to_hire: TimeToHirePrediction
    competitiveness_score: int = Field(..., ge=0, le=100)

    confidence: PredictionConfidence
    recommendations: list[Recommendation] = []
    model_metadata: ModelMetadata = ModelMetadata()


class FeatureExtractionResponse(BaseModel):
    features: FeatureVector
    validation: FeatureValidation
    importance: dict[str, float] = {}


class CacheInvalidationResponse(BaseModel):
    user_id: str
    removed: int
