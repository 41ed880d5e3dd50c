"""
Recommendations node for LangGraph workflow.
Joins the assessment and risk branches and applies the rule table.
"""

import logging
from datetime import datetime
from typing import Dict, Any

from exit_engine.core.recommendations import generate_recommendations

logger = logging.getLogger(__name__)


def recommendations_node(state: Dict[str, Any]) -> Dict[str, Any]:
    start_time = datetime.now()
    logger.info(f"=== RECOMMENDATIONS NODE STARTED - ID: {state['correlation_id']} ===")

    if state.get("error"):
        logger.warning("Skipping recommendations - upstream node failed")
        return {}

    try:
        recommendations = generate_recommendations(
            state["scores"],
            state["risk_result"],
            state["profile"],
            valuation=state.get("valuation"),
        )

        high_priority = sum(1 for rec in recommendations if rec.priority == "high")
        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"=== RECOMMENDATIONS NODE COMPLETED - {processing_time:.2f}s ===")

        return {
            "recommendations_result": recommendations,
            "processing_time": {"recommendations": processing_time},
            "messages": [
                f"Recommendations completed in {processing_time:.2f}s - "
                f"{len(recommendations)} total, {high_priority} high priority"
            ],
        }

    except Exception as e:
        logger.error(f"Error in recommendations node: {str(e)}", exc_info=True)
        return {
            "error": f"Recommendations failed: {str(e)}",
            "messages": [f"ERROR in recommendations: {str(e)}"],
        }
