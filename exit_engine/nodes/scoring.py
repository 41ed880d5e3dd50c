"""
Assessment node for LangGraph workflow.
Produces dimension scores and the valuation through the configured
scoring strategy (local rules, or the remote model with local fallback).
"""

import logging
from datetime import datetime
from typing import Dict, Any

from langchain_core.runnables import RunnableConfig

from exit_engine.tools.scoring_gateway import LocalScorer

logger = logging.getLogger(__name__)


def assessment_node(state: Dict[str, Any], config: RunnableConfig) -> Dict[str, Any]:
    start_time = datetime.now()
    correlation_id = state["correlation_id"]
    logger.info(f"=== ASSESSMENT NODE STARTED - ID: {correlation_id} ===")

    scorer = ((config or {}).get("configurable") or {}).get("scorer") or LocalScorer()

    try:
        outcome = scorer.assess(state["features"], correlation_id)

        logger.info(
            f"Scores ({outcome.source_path}): "
            + ", ".join(f"{item.dimension}={item.score}" for item in outcome.scores.as_list())
        )
        logger.info(
            f"Valuation: {outcome.valuation.low:,.0f} - {outcome.valuation.high:,.0f} "
            f"(point {outcome.valuation.point:,.0f}, {outcome.valuation.confidence_pct}% confidence)"
        )

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"=== ASSESSMENT NODE COMPLETED - {processing_time:.2f}s ===")

        return {
            "scores": outcome.scores,
            "valuation": outcome.valuation,
            "source_path": outcome.source_path,
            "processing_time": {"assessment": processing_time},
            "messages": [
                f"Assessment completed in {processing_time:.2f}s - "
                f"overall {outcome.scores.overall}/100 via {outcome.source_path} scoring"
            ],
        }

    except Exception as e:
        logger.error(f"Error in assessment node: {str(e)}", exc_info=True)
        return {
            "error": f"Assessment failed: {str(e)}",
            "messages": [f"ERROR in assessment: {str(e)}"],
        }
