"""
Intake node for LangGraph workflow.
Validates the submitted profile and derives the normalized feature set.
"""

import logging
from datetime import datetime
from typing import Dict, Any

from exit_engine.core.normalizer import normalize_profile, validate_profile
from exit_engine.errors import ProfileValidationError

logger = logging.getLogger(__name__)


def intake_node(state: Dict[str, Any]) -> Dict[str, Any]:
    """
    Intake node that accepts a business profile.

    This node:
    1. Validates every profile field, collecting all violations
    2. Normalizes the profile into bounded features

    Args:
        state: Current workflow state

    Returns:
        Partial state update with the profile and features, or the
        validation errors when the profile is rejected
    """
    start_time = datetime.now()
    correlation_id = state["correlation_id"]
    logger.info(f"=== INTAKE NODE STARTED - ID: {correlation_id} ===")

    messages = [f"Intake started at {start_time.isoformat()}"]

    try:
        logger.info("Validating business profile...")
        try:
            profile = validate_profile(state["raw_profile"])
        except ProfileValidationError as e:
            logger.warning(f"Profile rejected - {len(e.errors)} error(s) for {correlation_id}")
            return {
                "validation_errors": e.errors,
                "error": str(e),
                "processing_time": {"intake": (datetime.now() - start_time).total_seconds()},
                "messages": messages + [f"Intake rejected profile: {len(e.errors)} error(s)"],
            }

        logger.info(f"Normalizing profile for {profile.industry} business")
        features = normalize_profile(profile)

        processing_time = (datetime.now() - start_time).total_seconds()
        messages.append(
            f"Intake completed in {processing_time:.2f}s - "
            f"industry: {features.industry}, "
            f"advantage strength: {features.competitive_advantage_strength}/10"
        )
        logger.info(f"=== INTAKE NODE COMPLETED - {processing_time:.2f}s ===")

        return {
            "profile": profile,
            "features": features,
            "processing_time": {"intake": processing_time},
            "messages": messages,
        }

    except Exception as e:
        logger.error(f"Error in intake node: {str(e)}", exc_info=True)
        return {
            "error": f"Intake failed: {str(e)}",
            "messages": messages + [f"ERROR in intake: {str(e)}"],
        }
