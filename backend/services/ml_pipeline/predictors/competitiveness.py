"""Candidate competitiveness score (0-100) for a job."""

from models.schemas import FeatureVector

BASE_SCORE = 20
MIN_SCORE, MAX_SCORE = 5, 95


class CompetitivenessAnalyzer:
    def analyze(self, features: FeatureVector) -> int:
        cv = features.cv_features
        score = BASE_SCORE
        score += features.matching_features.skill_match_percentage * 30
        score += min(cv.experience_years / 10, 1.0) * 25
        score += cv.education_level / 5 * 20
        score += features.market_features.demand_supply_ratio * 7.5
        score += (cv.readability_score + cv.formatting_score) / 2 * 10
        return round(max(MIN_SCORE, min(MAX_SCORE, score)))
