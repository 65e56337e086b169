"""
Therapy Layer

Lipid targets, current-therapy gap assessment, treatment recommendations
and PCSK9 inhibitor coverage.

Usage:
    targets = determine_targets(record, RiskContext(highest_risk=22.0))
    assessment = assess_current_therapy(record, targets)
    recommendations = generate_recommendations(record, assessment, targets)
    coverage = assess_pcsk9_coverage(record, assessment)
"""
from .assessment import assess_current_therapy, max_statin_reached, statin_intensity
from .base import (
    CoverageAssessment,
    DrugClass,
    DrugRecommendation,
    OtherTherapyNote,
    RecommendationAction,
    RecommendationSet,
    Severity,
    TargetRiskTier,
    TherapyAssessment,
    TherapyEvaluation,
    TherapyTargets,
)
from .coverage import assess_pcsk9_coverage
from .recommendations import generate_recommendations
from .targets import determine_targets

__all__ = [
    "CoverageAssessment",
    "DrugClass",
    "DrugRecommendation",
    "OtherTherapyNote",
    "RecommendationAction",
    "RecommendationSet",
    "Severity",
    "TargetRiskTier",
    "TherapyAssessment",
    "TherapyEvaluation",
    "TherapyTargets",
    "assess_current_therapy",
    "assess_pcsk9_coverage",
    "determine_targets",
    "generate_recommendations",
    "max_statin_reached",
    "statin_intensity",
]
