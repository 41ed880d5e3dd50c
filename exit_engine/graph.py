"""
LangGraph workflow orchestration for the exit-readiness engine.
Defines the node execution order, state flow and the public analyze entry points.
"""

import logging
import threading
import time
from typing import Any, Dict, Mapping, Optional, Union

from langgraph.graph import StateGraph, END

from exit_engine.config import ENGINE_VERSION, EngineSettings, load_settings
from exit_engine.errors import EngineError, ProfileValidationError, RateLimitExceeded
from exit_engine.state import EngineState
from exit_engine.nodes.intake import intake_node
from exit_engine.nodes.scoring import assessment_node
from exit_engine.nodes.risk import risk_node
from exit_engine.nodes.recommendations import recommendations_node
from exit_engine.nodes.planning import planning_node
from exit_engine.tools.report_sink import ReportSink, dispatch_report
from exit_engine.tools.scoring_gateway import (
    LocalScorer,
    RemoteScorer,
    ScoringGateway,
    generate_correlation_id,
)
from exit_engine.utils.data_models import (
    AnalysisOptions,
    AnalysisReport,
    BusinessProfile,
    ReportMetadata,
)
from exit_engine.utils.rate_limiter import FixedWindowRateLimiter, RateLimiter

logger = logging.getLogger(__name__)

ProfileInput = Union[BusinessProfile, Mapping[str, Any]]

_default_limiter: Optional[RateLimiter] = None
_default_limiter_lock = threading.Lock()

_compiled_workflow = None
_report_sinks: Dict[Optional[str], ReportSink] = {}
_shared_lock = threading.Lock()


def route_after_intake(state: Dict[str, Any]):
    """Stop on a rejected profile, otherwise fan out to assessment and risk"""
    if state.get("error"):
        return END
    return ["assessment", "risk"]


def route_after_recommendations(state: Dict[str, Any]) -> str:
    if state.get("error"):
        return END
    return "planning"


def create_workflow():
    """
    Creates the LangGraph workflow for an exit-readiness analysis.

    intake -> {assessment, risk} -> recommendations -> planning

    Returns:
        Compiled StateGraph ready for execution
    """
    workflow = StateGraph(EngineState)

    workflow.add_node("intake", intake_node)
    workflow.add_node("assessment", assessment_node)
    workflow.add_node("risk", risk_node)
    workflow.add_node("recommendations", recommendations_node)
    workflow.add_node("planning", planning_node)

    workflow.set_entry_point("intake")
    workflow.add_conditional_edges("intake", route_after_intake, ["assessment", "risk", END])
    # Recommendations wait for both branches of the fan-out
    workflow.add_edge(["assessment", "risk"], "recommendations")
    workflow.add_conditional_edges("recommendations", route_after_recommendations, ["planning", END])
    workflow.add_edge("planning", END)

    return workflow.compile()


def get_workflow():
    """Compiled workflow shared by every run in this process"""
    global _compiled_workflow
    with _shared_lock:
        if _compiled_workflow is None:
            _compiled_workflow = create_workflow()
        return _compiled_workflow


def get_report_sink(webhook_url: Optional[str]) -> ReportSink:
    with _shared_lock:
        sink = _report_sinks.get(webhook_url)
        if sink is None:
            sink = _report_sinks[webhook_url] = ReportSink(webhook_url)
        return sink


def get_default_limiter(settings: EngineSettings) -> RateLimiter:
    """Process-wide limiter, created on first use from settings"""
    global _default_limiter
    with _default_limiter_lock:
        if _default_limiter is None:
            _default_limiter = FixedWindowRateLimiter(
                limit=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        return _default_limiter


def select_scorer(options: AnalysisOptions, settings: EngineSettings, gateway: Optional[ScoringGateway] = None):
    if not options.use_remote:
        return LocalScorer()

    if gateway is None and settings.remote_enabled:
        gateway = ScoringGateway(
            base_url=settings.ml_service_url,
            api_key=settings.ml_api_key,
            timeout=settings.ml_service_timeout,
        )
    return RemoteScorer(gateway)


def _prepare_run(profile, options, caller_id, limiter, settings, gateway):
    if options is None:
        options = AnalysisOptions()
    if settings is None:
        settings = load_settings()
    if limiter is None:
        limiter = get_default_limiter(settings)

    # Rate limiting happens before any validation or remote work
    decision = limiter.check(caller_id)
    if not decision.allowed:
        raise RateLimitExceeded(decision.retry_after_seconds, caller_id=caller_id)

    correlation_id = options.correlation_id or generate_correlation_id()
    logger.info(f"Starting analysis {correlation_id} for caller {caller_id}")

    initial_state = {
        "correlation_id": correlation_id,
        "raw_profile": profile,
        "use_remote": options.use_remote,
        "target_score": options.target_score or settings.improvement_target_score,
        "error": None,
        "processing_time": {},
        "messages": [],
    }
    run_config = {"configurable": {"scorer": select_scorer(options, settings, gateway)}}
    return initial_state, run_config, settings


def _finalize_run(result: Dict[str, Any], started: float, settings: EngineSettings) -> AnalysisReport:
    correlation_id = result["correlation_id"]

    if result.get("validation_errors"):
        raise ProfileValidationError(result["validation_errors"])
    if result.get("error"):
        logger.error(f"Workflow error for {correlation_id}: {result['error']}")
        raise EngineError(result["error"])

    latency_ms = round((time.perf_counter() - started) * 1000, 1)
    try:
        report = AnalysisReport(
            overall_score=result["scores"].overall,
            scores=result["scores"],
            valuation=result["valuation"],
            risk=result["risk_result"],
            recommendations=tuple(result["recommendations_result"]),
            improvement_plan=tuple(result["improvement_plan"]),
            time_to_readiness=result["time_to_readiness"],
            value_enhancement=result["value_enhancement"],
            metadata=ReportMetadata(
                correlation_id=correlation_id,
                source_path=result["source_path"],
                latency_ms=latency_ms,
                engine_version=ENGINE_VERSION,
            ),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise EngineError(f"Incomplete analysis for {correlation_id}: {e}") from e

    logger.info(
        f"Analysis {correlation_id} completed in {latency_ms:.0f}ms - "
        f"stages: {', '.join(result.get('processing_time', {}))}"
    )

    dispatch_report(report, get_report_sink(settings.report_webhook_url))
    return report


def analyze(
    profile: ProfileInput,
    options: Optional[AnalysisOptions] = None,
    caller_id: str = "anonymous",
    *,
    limiter: Optional[RateLimiter] = None,
    settings: Optional[EngineSettings] = None,
    gateway: Optional[ScoringGateway] = None,
) -> AnalysisReport:
    """
    Run one complete analysis.

    Args:
        profile: a BusinessProfile or a raw mapping (camelCase or snake_case keys)
        options: remote scoring, correlation id and target score overrides
        caller_id: rate-limit key
        limiter, settings, gateway: overrides for the process defaults

    Returns:
        A fully populated, immutable AnalysisReport

    Raises:
        RateLimitExceeded: the caller has no requests left in the window
        ProfileValidationError: the profile failed validation
        EngineError: any other failure; partial reports are never returned
    """
    started = time.perf_counter()
    initial_state, run_config, settings = _prepare_run(profile, options, caller_id, limiter, settings, gateway)

    try:
        result = get_workflow().invoke(initial_state, config=run_config)
    except Exception as e:
        logger.error(f"Error in workflow: {str(e)}", exc_info=True)
        raise EngineError(f"Analysis failed: {str(e)}") from e

    return _finalize_run(result, started, settings)


async def analyze_async(
    profile: ProfileInput,
    options: Optional[AnalysisOptions] = None,
    caller_id: str = "anonymous",
    *,
    limiter: Optional[RateLimiter] = None,
    settings: Optional[EngineSettings] = None,
    gateway: Optional[ScoringGateway] = None,
) -> AnalysisReport:
    """Async entry point with the same contract as analyze"""
    started = time.perf_counter()
    initial_state, run_config, settings = _prepare_run(profile, options, caller_id, limiter, settings, gateway)

    try:
        result = await get_workflow().ainvoke(initial_state, config=run_config)
    except Exception as e:
        logger.error(f"Error in workflow: {str(e)}", exc_info=True)
        raise EngineError(f"Analysis failed: {str(e)}") from e

    return _finalize_run(result, started, settings)
