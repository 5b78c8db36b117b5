"""Inter-component Pydantic contracts for the prediction pipeline."""

from models.schemas.features import (
    BehaviorFeatures,
    CVFeatures,
    DerivedFeatures,
    FeatureValidation,
    FeatureVector,
    MarketFeatures,
    MatchingFeatures,
)
from models.schemas.usage import ApplicationRecord, SessionRecord, UserProfile

__all__ = [
    "CVFeatures",
    "MatchingFeatures",
    "MarketFeatures",
    "BehaviorFeatures",
    "DerivedFeatures",
    "FeatureVector",
    "FeatureValidation",
    "ApplicationRecord",
    "SessionRecord",
    "UserProfile",
]
