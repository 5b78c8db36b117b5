"""Improvement suggestions derived from a feature vector and its validation."""

import logging

from models.responses import ExpectedImpact, Recommendation
from models.schemas import FeatureValidation, FeatureVector

logger = logging.getLogger(__name__)

SKILL_GAP_THRESHOLD = 0.7
EXPERIENCE_RELEVANCE_THRESHOLD = 0.6
KEYWORD_DENSITY_THRESHOLD = 0.5

# validation issue -> (type, title, action items)
_CONTENT_ISSUES: dict[str, tuple[str, str, list[str]]] = {
    "CV word count is too low": (
        "content",
        "Expand your CV content",
        ["Describe responsibilities for each role", "Add measurable achievements"],
    ),
    "No work experience detected": (
        "experience",
        "Add work experience",
        ["List internships, freelance or volunteer roles", "Include start and end dates"],
    ),
    "No skills detected": (
        "skill",
        "Add a skills section",
        ["List the technical skills you use", "Group skills by category"],
    ),
}


class RecommendationEngine:
    def generate(
        self,
        features: FeatureVector,
        validation: FeatureValidation | None = None,
        importance: dict[str, float] | None = None,
    ) -> list[Recommendation]:
        """Suggestions ordered by priority (1 first), at most one per type."""
        importance = importance or {}
        matching = features.matching_features
        candidates: list[Recommendation] = []

        if matching.skill_match_percentage < SKILL_GAP_THRESHOLD:
            gap = SKILL_GAP_THRESHOLD - matching.skill_match_percentage
            weight = importance.get("matching_features.skill_match_percentage", 0.2)
            candidates.append(Recommendation(
                recommendation_id="improve_skills",
                type="skill",
                priority=1,
                title="Close the skills gap",
                description="Several skills named in the job description are missing from your CV.",
                action_items=[
                    "Add the job's required skills you already have",
                    "Take a short course in the most requested missing skill",
                ],
                expected_impact=ExpectedImpact(
                    interview_boost=round(gap * weight * 2, 3),
                    offer_boost=round(gap * weight * 1.5, 3),
                    salary_boost=0.05,
                ),
            ))

        if matching.experience_relevance < EXPERIENCE_RELEVANCE_THRESHOLD:
            candidates.append(Recommendation(
                recommendation_id="highlight_experience",
                type="experience",
                priority=2,
                title="Highlight relevant experience",
                description="Your experience descriptions do not mirror this role's responsibilities.",
                action_items=[
                    "Lead each role with the work closest to this job",
                    "Use the job description's terminology",
                ],
                expected_impact=ExpectedImpact(interview_boost=0.15, offer_boost=0.2, salary_boost=0.03),
            ))

        if features.cv_features.keyword_density < KEYWORD_DENSITY_THRESHOLD:
            candidates.append(Recommendation(
                recommendation_id="optimize_keywords",
                type="keyword",
                priority=2,
                title="Optimize for applicant tracking systems",
                description="Few of the job description's key terms appear in your CV.",
                action_items=["Mirror exact phrases from the job posting", "Spell out acronyms once"],
                expected_impact=ExpectedImpact(interview_boost=0.1, offer_boost=0.05),
            ))

        if validation is not None:
            for issue in validation.issues:
                if issue not in _CONTENT_ISSUES:
                    continue
                rec_type, title, actions = _CONTENT_ISSUES[issue]
                candidates.append(Recommendation(
                    recommendation_id=f"fix_{rec_type}",
                    type=rec_type,
                    priority=3,
                    title=title,
                    description=issue,
                    action_items=actions,
                    expected_impact=ExpectedImpact(interview_boost=0.05),
                ))

        seen: set[str] = set()
        recommendations: list[Recommendation] = []
        for rec in sorted(candidates, key=lambda r: r.priority):
            if rec.type in seen:
                continue
            seen.add(rec.type)
            recommendations.append(rec)
        return recommendations
