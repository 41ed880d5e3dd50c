from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.responses import JSONResponse
import uvicorn
import json
import math
import time
from typing import Any, Dict, Optional

from exit_engine.config import ENGINE_VERSION, load_settings
from exit_engine.errors import EngineError, ProfileValidationError, RateLimitExceeded
from exit_engine.graph import analyze_async, get_workflow
from exit_engine.utils.data_models import AnalysisOptions
from exit_engine.utils.logging_config import setup_logging
from exit_engine.utils.rate_limiter import FixedWindowRateLimiter

settings = load_settings()
logger = setup_logging(settings.log_level)

app = FastAPI(
    title="Exit Readiness API",
    description="Exit-readiness scoring, valuation and improvement planning for small and mid-sized businesses",
    version=ENGINE_VERSION
)

API_KEY = settings.api_key

# One limiter per process, shared by every request
limiter = FixedWindowRateLimiter(
    limit=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
)


# Authentication dependency
async def verify_api_key(x_api_key: Optional[str] = Header(None)):
    if x_api_key != API_KEY:
        raise HTTPException(status_code=403, detail="Invalid API Key")
    return x_api_key


def caller_identity(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Rate-limit key for a request: the socket peer.

    X-Forwarded-For is client-controlled, so its first hop is only used when
    the service runs behind a proxy that sets it (TRUST_FORWARDED_FOR).
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


def invalid_data_response(details) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid business data", "details": details}
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "Exit Readiness API",
        "version": ENGINE_VERSION,
        "remoteScoring": settings.remote_enabled
    }


# Debug endpoint for workflow visualization
@app.get("/api/workflow-graph")
async def get_workflow_graph():
    """Get a visual representation of the LangGraph workflow"""
    try:
        graph_def = get_workflow().get_graph().draw_mermaid()

        return {
            "graph": graph_def,
            "nodes": ["intake", "assessment", "risk", "recommendations", "planning"],
            "description": "LangGraph workflow for exit-readiness analysis"
        }
    except Exception as e:
        logger.error(f"Could not render workflow graph: {str(e)}")
        return {
            "error": str(e),
            "description": "Could not generate workflow visualization"
        }


# Main analysis endpoint
@app.post("/api/analyze")
async def analyze_business(
    request: Request,
    api_key: str = Depends(verify_api_key)
):
    """
    Analyze a business profile.

    Returns the camelCase report. Validation failures list every
    offending field; rate-limited callers get a Retry-After header.
    """
    request_start_time = time.time()
    caller_id = caller_identity(request, settings.trust_forwarded_for)

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return invalid_data_response([{"field": "body", "message": "Request body must be valid JSON"}])

    if not isinstance(body, dict):
        return invalid_data_response([{"field": "body", "message": "Request body must be a JSON object"}])

    profile: Dict[str, Any] = dict(body)
    use_remote = profile.pop("useRemote", profile.pop("use_remote", False)) is True

    logger.info(f"Received analysis request from {caller_id} (remote: {use_remote})")

    try:
        report = await analyze_async(
            profile,
            AnalysisOptions(use_remote=use_remote),
            caller_id,
            limiter=limiter,
            settings=settings,
        )

    except RateLimitExceeded as e:
        retry_after = int(math.ceil(e.retry_after_seconds))
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded", "retryAfterSeconds": retry_after},
            headers={"Retry-After": str(retry_after)}
        )
    except ProfileValidationError as e:
        logger.info(f"Rejected profile from {caller_id}: {len(e.errors)} error(s)")
        return invalid_data_response(e.to_details())
    except EngineError as e:
        logger.error(f"Error processing analysis: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    total_time = time.time() - request_start_time
    logger.info(
        f"Analysis {report.metadata.correlation_id} completed in {total_time:.2f}s - "
        f"overall {report.overall_score}/100, source {report.metadata.source_path}"
    )
    return report.to_response()


# Error handler
@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


# Run the server
if __name__ == "__main__":
    if settings.api_key == "your-secure-api-key-here":
        logger.warning("API_KEY not set - using the default development key")
    if settings.remote_enabled:
        logger.info(f"Remote scoring available at {settings.ml_service_url}")
    else:
        logger.info("No ML_SERVICE_URL - remote requests will use local scoring")

    uvicorn.run(app, host="0.0.0.0", port=8000)
