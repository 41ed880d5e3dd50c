import logging
from datetime import datetime
from typing import Dict, Any

from exit_engine.core.risk import assess_risk

logger = logging.getLogger(__name__)


def risk_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """Rate the five exit-risk categories. Always computed locally."""
    start_time = datetime.now()
    logger.info(f"=== RISK NODE STARTED - ID: {state['correlation_id']} ===")

    try:
        risk = assess_risk(state["features"])

        for factor in risk.categories:
            logger.debug(f"{factor.category}: {factor.level} ({'; '.join(factor.drivers) or 'no drivers'})")

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"=== RISK NODE COMPLETED - {processing_time:.2f}s - overall {risk.overall_level} ===")

        return {
            "risk_result": risk,
            "processing_time": {"risk": processing_time},
            "messages": [f"Risk assessment completed in {processing_time:.2f}s - overall {risk.overall_level}"],
        }

    except Exception as e:
        logger.error(f"Error in risk node: {str(e)}", exc_info=True)
        return {
            "error": f"Risk assessment failed: {str(e)}",
            "messages": [f"ERROR in risk: {str(e)}"],
        }
