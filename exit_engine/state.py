"""
LangGraph state definition for the exit-readiness pipeline.
Single source of truth for all data flowing through the workflow.
"""

import operator
from typing import TypedDict, Dict, Any, Optional, List, Annotated

from exit_engine.utils.data_models import (
    BusinessProfile,
    DimensionScores,
    FieldError,
    ImprovementPhase,
    NormalizedFeatures,
    Recommendation,
    RiskAssessment,
    ValuationEstimate,
    ValueEnhancement,
)


def merge_timings(left: Dict[str, float], right: Dict[str, float]) -> Dict[str, float]:
    merged = dict(left or {})
    merged.update(right or {})
    return merged


def keep_first_error(left: Optional[str], right: Optional[str]) -> Optional[str]:
    # Parallel nodes may both fail in one superstep; the first error wins
    return left or right


class EngineState(TypedDict, total=False):
    """
    Complete state for one analysis run.
    Nodes return partial updates; only the reducer channels may be written
    by the parallel assessment and risk nodes in the same step.
    """
    # Input data
    correlation_id: str
    raw_profile: Any
    use_remote: bool
    target_score: float

    # Node outputs
    profile: Optional[BusinessProfile]
    features: Optional[NormalizedFeatures]
    scores: Optional[DimensionScores]
    valuation: Optional[ValuationEstimate]
    source_path: Optional[str]
    risk_result: Optional[RiskAssessment]
    recommendations_result: Optional[List[Recommendation]]
    improvement_plan: Optional[List[ImprovementPhase]]
    time_to_readiness: Optional[int]
    value_enhancement: Optional[ValueEnhancement]

    # Execution metadata
    validation_errors: Optional[List[FieldError]]
    error: Annotated[Optional[str], keep_first_error]
    processing_time: Annotated[Dict[str, float], merge_timings]
    messages: Annotated[List[str], operator.add]
