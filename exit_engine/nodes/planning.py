"""
Planning node for LangGraph workflow.
Schedules the improvement roadmap and estimates what completing it is worth.
"""

import logging
from datetime import datetime
from typing import Dict, Any

from exit_engine.core.improvement_plan import (
    DEFAULT_TARGET_SCORE,
    build_improvement_plan,
    time_to_readiness_months,
)
from exit_engine.core.value_enhancement import estimate_value_enhancement

logger = logging.getLogger(__name__)


def planning_node(state: Dict[str, Any]) -> Dict[str, Any]:
    start_time = datetime.now()
    logger.info(f"=== PLANNING NODE STARTED - ID: {state['correlation_id']} ===")

    try:
        target_score = state.get("target_score") or DEFAULT_TARGET_SCORE
        plan = build_improvement_plan(state["scores"], target_score=target_score)
        months = time_to_readiness_months(plan)
        logger.info(f"Improvement plan: {len(plan)} phase(s) toward {target_score}, ready in ~{months} month(s)")

        enhancement = estimate_value_enhancement(state["features"], state["valuation"], plan)
        logger.info(
            f"Value enhancement: {enhancement.current_value:,.0f} -> {enhancement.potential_value:,.0f} "
            f"(+{enhancement.percentage_increase}%)"
        )

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"=== PLANNING NODE COMPLETED - {processing_time:.2f}s ===")

        return {
            "improvement_plan": plan,
            "time_to_readiness": months,
            "value_enhancement": enhancement,
            "processing_time": {"planning": processing_time},
            "messages": [f"Planning completed in {processing_time:.2f}s - {len(plan)} phase(s)"],
        }

    except Exception as e:
        logger.error(f"Error in planning node: {str(e)}", exc_info=True)
        return {
            "error": f"Planning failed: {str(e)}",
            "messages": [f"ERROR in planning: {str(e)}"],
        }
