"""Pipeline-level degradation: strategy chain, heuristic tier and minimal tier.

Tiers, tried in order until one yields a prediction:

    REMOTE             primary pipeline (features + per-outcome predictors)
    HEURISTIC_FULL     HeuristicPredictor, raw CV + JD only, confidence 0.6
    HEURISTIC_MINIMAL  three-signal arithmetic, confidence 0.3, cannot raise
    FAILED             reached only if every tier failed

The heuristic tier deliberately skips the FeatureVector and every feature
service, so a failure there cannot carry over.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from models.requests import ParsedCV, PredictionRequest
from models.responses import (
    ConfidenceInterval,
    DayRange,
    ExpectedImpact,
    IndustryBenchmark,
    ModelMetadata,
    PredictionConfidence,
    Recommendation,
    RegionalAdjustment,
    SalaryFactor,
    SalaryPrediction,
    SalaryRange,
    SuccessPrediction,
    TimeToHirePrediction,
)
from services.cv_signals import (
    education_level,
    extract_required_years,
    flatten_skills,
    job_title_line,
    required_education_level,
    total_experience_years,
)
from services.ml_pipeline.base import HIRE_CONVERSION, MODEL_VERSION, new_prediction_id
from services.ml_pipeline.coefficients import DEFAULT_COEFFICIENTS, CoefficientTable, lookup
from services.ml_pipeline.predictors.salary import percentile_rank
from services.ml_pipeline.predictors.time_to_hire import season_for, split_phases

logger = logging.getLogger(__name__)


class PredictionTier(str, Enum):
    REMOTE = "remote"
    HEURISTIC_FULL = "heuristic_full"
    HEURISTIC_MINIMAL = "heuristic_minimal"
    FAILED = "failed"


class PredictionPipelineError(RuntimeError):
    """Every strategy in the chain failed."""


class _StrategyFailed:
    def __repr__(self) -> str:
        return "STRATEGY_FAILED"


STRATEGY_FAILED: Any = _StrategyFailed()

Strategy = Callable[[PredictionRequest], Awaitable[Any]]


class StrategyChain:
    """Ordered named strategies; the first non-failing result wins."""

    def __init__(self, strategies: list[tuple[PredictionTier, Strategy]]) -> None:
        self.strategies = strategies

    async def run(self, request: PredictionRequest) -> tuple[PredictionTier, Any]:
        for index, (tier, strategy) in enumerate(self.strategies):
            try:
                result = await strategy(request)
            except Exception as e:
                logger.warning("Prediction tier %s failed: %s", tier.value, e)
                result = STRATEGY_FAILED
            if result is STRATEGY_FAILED:
                continue
            if index > 0:
                logger.info("Prediction for %s/%s served by %s tier", request.user_id, request.job_id, tier.value)
            return tier, result
        raise PredictionPipelineError(
            f"All prediction tiers failed for {request.user_id}/{request.job_id} ({PredictionTier.FAILED.value})"
        )


# ---------------------------------------------------------------------------
# Heuristic tier
# ---------------------------------------------------------------------------

# Small fixed vocabulary, independent of the keyword extractor
HEURISTIC_TECH_KEYWORDS = [
    "javascript", "python", "java", "react", "angular", "vue", "nodejs",
    "express", "django", "spring", "mysql", "postgresql", "mongodb",
    "aws", "azure", "docker", "kubernetes", "git", "agile", "api",
]

HEURISTIC_CONFIDENCE = PredictionConfidence(
    overall=0.6,
    interview_confidence=0.6,
    offer_confidence=0.55,
    salary_confidence=0.5,
    time_to_hire_confidence=0.6,
)

_REQUIRED_YEARS_RE = re.compile(r"(\d+)\+?\s*years?\s*experience", re.IGNORECASE)


def _word_overlap(a: str, b: str) -> float:
    words_a, words_b = a.split(), b.split()
    if not words_a or not words_b:
        return 0.0
    matches = sum(1 for wa in words_a if any(wa in wb or wb in wa for wb in words_b))
    return matches / max(len(words_a), len(words_b))


class HeuristicPredictor:
    """Complete prediction from the raw CV and job description."""

    def __init__(self, coefficients: CoefficientTable = DEFAULT_COEFFICIENTS,
                 today: Callable[[], date] = date.today) -> None:
        self.coefficients = coefficients
        self._today = today

    # --- raw signals ---

    def skill_match(self, cv: ParsedCV, job_description: str) -> float:
        cv_skills = [s.lower() for s in flatten_skills(cv.skills) if s.strip()]
        lower_jd = job_description.lower()
        keywords = [k for k in HEURISTIC_TECH_KEYWORDS if k in lower_jd]
        if not cv_skills or not keywords:
            return 0.0
        matches = sum(1 for k in keywords if any(k in s or s in k for s in cv_skills))
        return matches / len(keywords)

    def required_years(self, job_description: str) -> float:
        m = _REQUIRED_YEARS_RE.search(job_description)
        return float(m.group(1)) if m else extract_required_years(job_description)

    def cv_quality(self, cv: ParsedCV) -> float:
        quality = 0.5
        if len(cv.personal_info.summary) > 50:
            quality += 0.2
        if cv.experience:
            quality += 0.2
        if len(flatten_skills(cv.skills)) >= 5:
            quality += 0.1
        return min(1.0, quality)

    def title_match(self, cv: ParsedCV, job_description: str) -> float:
        job_title = job_title_line(job_description).lower()
        scores = [_word_overlap(role.position.lower(), job_title) for role in cv.experience if role.position]
        return max(scores, default=0.0)

    def education_match(self, cv: ParsedCV, job_description: str) -> float:
        if not cv.education:
            return 0.5
        if required_education_level(job_description) > 0:
            return 1.0 if education_level(cv.education) >= 3 else 0.5
        return 0.8

    # --- outcomes ---

    def predict_interview(self, request: PredictionRequest) -> float:
        cv, jd = request.cv, request.job_description
        score = 0.12
        years = total_experience_years(cv.experience)
        if years >= 5:
            score += 0.15
        elif years >= 2:
            score += 0.10
        elif years >= 1:
            score += 0.05
        score += self.skill_match(cv, jd) * 0.25
        level = education_level(cv.education)
        if level >= 3:
            score += 0.15
        elif level >= 2:
            score += 0.08
        score += self.cv_quality(cv) * 0.15
        score += self.title_match(cv, jd) * 0.10
        score += 0.5 * 0.05  # industry bonus has no signal here
        return max(0.02, min(0.85, score))

    def predict_offer(self, request: PredictionRequest, interview: float | None = None) -> float:
        cv, jd = request.cv, request.job_description
        if interview is None:
            interview = self.predict_interview(request)
        conversion = 0.35
        skill = self.skill_match(cv, jd)
        if skill > 0.8:
            conversion += 0.15
        elif skill > 0.6:
            conversion += 0.10
        elif skill > 0.4:
            conversion += 0.05

        years = total_experience_years(cv.experience)
        required = self.required_years(jd)
        if required <= years <= required * 2:
            conversion += 0.10
        elif years < required * 0.7:
            conversion -= 0.15
        elif years > required * 3:
            conversion -= 0.10

        conversion += self.education_match(cv, jd) * 0.05
        return max(0.01, min(0.70, interview * conversion))

    def predict_salary(self, request: PredictionRequest) -> SalaryPrediction:
        table = self.coefficients.salary
        cv = request.cv
        industry = (request.industry or "technology").lower().strip()
        base = table.industry_base.get(industry, table.default_base)

        years = total_experience_years(cv.experience)
        level = education_level(cv.education)
        experience_multiplier = 1 + years * table.experience_rate
        education_multiplier = table.education_multipliers[min(level, 5) - 1]
        location_multiplier = lookup(table.location_multipliers, request.location, 1.0)
        skills_multiplier = 1 + min(0.20, len(flatten_skills(cv.skills)) * table.skill_rate)

        median = round(base * experience_multiplier * education_multiplier * location_multiplier * skills_multiplier)
        low, high = round(median * 0.8), round(median * 1.25)
        return SalaryPrediction(
            predicted_range=SalaryRange(min=low, max=high, median=median),
            confidence_interval=ConfidenceInterval(lower=round(low * 0.9), upper=round(high * 1.1)),
            industry_benchmark=IndustryBenchmark(industry_median=base, percentile_rank=percentile_rank(median, base)),
            regional_adjustment=RegionalAdjustment(
                base_location=request.location or "US",
                adjustment_factor=location_multiplier,
                cost_of_living_index=round(100 * location_multiplier),
            ),
            factors=[
                SalaryFactor(
                    factor="experience",
                    impact=round(experience_multiplier - 1, 3),
                    description="Experience multiplier effect",
                )
            ],
        )

    def predict_time_to_hire(self, request: PredictionRequest) -> TimeToHirePrediction:
        table = self.coefficients.time_to_hire
        lower_jd = request.job_description.lower()
        industry = (request.industry or "").lower().strip()
        days = table.industry_base_days.get(industry, table.default_days)

        complexity = min(1.0, sum(1 for i in table.complexity_indicators if i in lower_jd) / 5)
        days *= 0.8 + complexity * 0.4
        if any(m in lower_jd for m in table.startup_markers):
            days *= table.startup_factor
        elif any(m in lower_jd for m in table.large_company_markers):
            days *= table.large_company_factor

        median = max(1, round(days))
        return TimeToHirePrediction(
            estimated_days=DayRange(min=max(1, round(median * 0.8)), median=median, max=round(median * 1.3)),
            phase_breakdown=split_phases(median, table.phase_shares),
            current_season=season_for(self._today().month),
            confidence=0.6,
        )

    def competitiveness(self, request: PredictionRequest) -> int:
        cv = request.cv
        score = (
            self.skill_match(cv, request.job_description) * 30
            + min(total_experience_years(cv.experience) / 10, 1.0) * 25
            + education_level(cv.education) / 5 * 20
            + self.cv_quality(cv) * 25
        )
        return round(max(10, min(95, score)))

    def basic_recommendations(self, request: PredictionRequest) -> list[Recommendation]:
        cv, jd = request.cv, request.job_description
        recommendations = []
        if self.skill_match(cv, jd) < 0.6:
            recommendations.append(Recommendation(
                recommendation_id="improve_skills",
                type="skill",
                priority=1,
                title="Improve skill alignment",
                description="Your skills match could be stronger for this role",
                action_items=["Add relevant skills you already have", "Learn the most requested missing skill"],
                expected_impact=ExpectedImpact(interview_boost=0.2, offer_boost=0.15, salary_boost=0.08),
            ))
        if total_experience_years(cv.experience) < self.required_years(jd) * 0.8:
            recommendations.append(Recommendation(
                recommendation_id="highlight_experience",
                type="experience",
                priority=2,
                title="Better highlight relevant experience",
                description="Emphasize experience that directly relates to this role",
                action_items=["Quantify results in each role", "Include relevant projects"],
                expected_impact=ExpectedImpact(interview_boost=0.15, offer_boost=0.2, salary_boost=0.05),
            ))
        return recommendations

    def predict(self, request: PredictionRequest) -> SuccessPrediction:
        interview = self.predict_interview(request)
        offer = self.predict_offer(request, interview)
        return SuccessPrediction(
            prediction_id=new_prediction_id(),
            user_id=request.user_id,
            job_id=request.job_id,
            timestamp=datetime.now(timezone.utc),
            interview_probability=interview,
            offer_probability=offer,
            hire_probability=offer * HIRE_CONVERSION,
            salary_prediction=self.predict_salary(request),
            time_to_hire=self.predict_time_to_hire(request),
            competitiveness_score=self.competitiveness(request),
            confidence=HEURISTIC_CONFIDENCE.model_copy(),
            recommendations=self.basic_recommendations(request),
            model_metadata=ModelMetadata(
                model_version=MODEL_VERSION,
                coefficients_version=self.coefficients.version,
                features_used=["experience", "skills", "education", "job_description"],
            ),
        )

    def health_check(self) -> bool:
        try:
            request = PredictionRequest(
                user_id="health_check",
                job_id="health_check",
                cv=ParsedCV(skills=["python"]),
                job_description="Software Engineer\nPython developer, 2+ years experience",
            )
            prediction = self.predict(request)
            return 0 < prediction.interview_probability < 1 and prediction.salary_prediction.predicted_range.median > 0
        except Exception as e:
            logger.warning("Heuristic predictor health check failed: %s", e)
            return False


# ---------------------------------------------------------------------------
# Minimal tier
# ---------------------------------------------------------------------------

MINIMAL_CONFIDENCE = 0.3


def _safe(read: Callable[[], Any], default: Any) -> Any:
    try:
        return read()
    except Exception:
        return default


def minimal_prediction(request: PredictionRequest) -> SuccessPrediction:
    """Arithmetic over experience years, skill count and has-education. No I/O."""
    years = _safe(lambda: total_experience_years(request.cv.experience), 0.0)
    skills = _safe(lambda: len(flatten_skills(request.cv.skills)), 0)
    has_education = _safe(lambda: bool(request.cv.education), False)

    experience_bonus = 0.10 if years >= 5 else 0.06 if years >= 2 else 0.03 if years >= 1 else 0.0
    skills_bonus = 0.06 if skills >= 10 else 0.04 if skills >= 5 else 0.02 if skills >= 1 else 0.0
    education_bonus = 0.03 if has_education else 0.0

    interview = 0.12 + experience_bonus + skills_bonus + education_bonus
    offer = 0.04 + (experience_bonus + skills_bonus + education_bonus) * 0.4
    median = round(65000 * (1 + 0.03 * min(years, 20)))
    days = 30

    return SuccessPrediction(
        prediction_id=new_prediction_id(),
        user_id=_safe(lambda: request.user_id, "unknown"),
        job_id=_safe(lambda: request.job_id, "unknown"),
        timestamp=datetime.now(timezone.utc),
        interview_probability=interview,
        offer_probability=offer,
        hire_probability=offer * HIRE_CONVERSION,
        salary_prediction=SalaryPrediction(
            predicted_range=SalaryRange(min=round(median * 0.8), max=round(median * 1.25), median=median),
            confidence_interval=ConfidenceInterval(lower=round(median * 0.7), upper=round(median * 1.4)),
            industry_benchmark=IndustryBenchmark(industry_median=65000, percentile_rank=50),
        ),
        time_to_hire=TimeToHirePrediction(
            estimated_days=DayRange(min=21, median=days, max=45),
            phase_breakdown=split_phases(days, DEFAULT_COEFFICIENTS.time_to_hire.phase_shares),
            current_season=season_for(datetime.now(timezone.utc).month),
            confidence=MINIMAL_CONFIDENCE,
        ),
        competitiveness_score=round(30 + (experience_bonus + skills_bonus + education_bonus) * 100),
        confidence=PredictionConfidence(
            overall=MINIMAL_CONFIDENCE,
            interview_confidence=MINIMAL_CONFIDENCE,
            offer_confidence=MINIMAL_CONFIDENCE,
            salary_confidence=MINIMAL_CONFIDENCE,
            time_to_hire_confidence=MINIMAL_CONFIDENCE,
        ),
        recommendations=[],
        model_metadata=ModelMetadata(
            model_version=MODEL_VERSION,
            coefficients_version=DEFAULT_COEFFICIENTS.version,
            features_used=["experience", "skills", "education"],
        ),
    )


class FallbackManager:
    """Heuristic-then-minimal tail of the strategy chain."""

    def __init__(self, heuristic: HeuristicPredictor | None = None) -> None:
        self.heuristic = heuristic if heuristic is not None else HeuristicPredictor()

    async def heuristic_strategy(self, request: PredictionRequest) -> SuccessPrediction:
        return self.heuristic.predict(request)

    async def minimal_strategy(self, request: PredictionRequest) -> SuccessPrediction:
        return minimal_prediction(request)

    def strategies(self) -> list[tuple[PredictionTier, Strategy]]:
        return [
            (PredictionTier.HEURISTIC_FULL, self.heuristic_strategy),
            (PredictionTier.HEURISTIC_MINIMAL, self.minimal_strategy),
        ]

    async def generate(self, request: PredictionRequest) -> SuccessPrediction:
        _, prediction = await StrategyChain(self.strategies()).run(request)
        return prediction
