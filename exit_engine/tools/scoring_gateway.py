"""
Local and remote scoring strategies.

ScoringGateway talks to the remote predictive service and reports its
outcome through an explicit state machine:

    IDLE -> REQUESTING -> SUCCEEDED | FAILED | TIMED_OUT

RemoteScorer uses the gateway and falls back to LocalScorer on FAILED or
TIMED_OUT, so gateway problems never surface to callers; they only show up
as source_path="local" in the report metadata.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import requests

from exit_engine.core.benchmarks import clamp
from exit_engine.core.normalizer import feature_payload
from exit_engine.core.scoring_logic import score_dimensions
from exit_engine.core.valuation import estimate_valuation
from exit_engine.utils.data_models import (
    DIMENSIONS,
    DimensionScores,
    NormalizedFeatures,
    ValuationEstimate,
)

logger = logging.getLogger(__name__)

PREDICT_PATH = "/v1/predict/exit-readiness"
DEFAULT_TIMEOUT_SECONDS = 30.0
REMOTE_METHODOLOGY = "Remote predictive model"


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex}"


class GatewayState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class GatewayResult:
    state: GatewayState
    correlation_id: str
    # Only the axes the service returned; RemoteScorer fills the rest locally
    scores: Optional[Dict[str, float]] = None
    valuation: Optional[ValuationEstimate] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == GatewayState.SUCCEEDED


@dataclass(frozen=True)
class AssessmentOutcome:
    scores: DimensionScores
    valuation: ValuationEstimate
    source_path: str


class RemotePayloadError(ValueError):
    """The remote service answered 2xx with a body we cannot use"""


def parse_prediction(body: Dict[str, Any]) -> Tuple[Dict[str, float], ValuationEstimate]:
    """
    Convert a remote prediction body into (partial scores, ValuationEstimate).

    The service may return any subset of the `<dimension>_score` keys
    (the production model only predicts financial, operational, strategic
    and legal). Scores and confidence arrive as 0-1 fractions and are scaled
    to 0-100 and clamped.

    Raises:
        RemotePayloadError: if no dimension score is present, or a present
            field is missing or non-numeric
    """
    try:
        predictions = body["predictions"]
        scores = {
            name: round(clamp(float(predictions[f"{name}_score"]) * 100), 1)
            for name in DIMENSIONS
            if predictions.get(f"{name}_score") is not None
        }
        if not scores:
            raise RemotePayloadError("Malformed prediction payload: no dimension scores")

        valuation_range = predictions["valuation_range"]
        low = max(0.0, float(valuation_range["low"]))
        high = max(low, float(valuation_range["high"]))
        point = valuation_range.get("point")
        point = (low + high) / 2 if point is None else clamp(float(point), low, high)
        confidence = clamp(float(predictions["valuation_confidence"]) * 100)
    except RemotePayloadError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RemotePayloadError(f"Malformed prediction payload: {e}") from e

    valuation = ValuationEstimate(
        low=round(low),
        point=round(point),
        high=round(high),
        confidence_pct=round(confidence, 1),
        methodology=REMOTE_METHODOLOGY,
    )
    return scores, valuation


class ScoringGateway:
    """Single-shot client for the remote exit-readiness prediction service"""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session_factory=requests.Session,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session_factory = session_factory
        self.state = GatewayState.IDLE

    def _finish(self, state: GatewayState, correlation_id: str, **kwargs) -> GatewayResult:
        self.state = state
        return GatewayResult(state=state, correlation_id=correlation_id, **kwargs)

    def request(self, features: NormalizedFeatures, correlation_id: str) -> GatewayResult:
        """
        Issue exactly one prediction request, bounded by the timeout.

        The HTTP session is always closed before returning, so no call
        outlives a timeout.
        """
        self.state = GatewayState.REQUESTING

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Request-ID": correlation_id,
        }
        payload = {
            "features": feature_payload(features),
            "model_config": {
                "use_ensemble": True,
                "return_explanations": True,
                "confidence_threshold": 0.7,
            },
        }

        session = self._session_factory()
        try:
            response = session.post(
                f"{self.base_url}{PREDICT_PATH}",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            scores, valuation = parse_prediction(response.json())
            logger.info(f"Remote scoring succeeded for {correlation_id}")
            return self._finish(GatewayState.SUCCEEDED, correlation_id, scores=scores, valuation=valuation)
        except requests.exceptions.Timeout:
            logger.error(f"Remote scoring timed out after {self.timeout}s for {correlation_id}")
            return self._finish(GatewayState.TIMED_OUT, correlation_id, error="timeout")
        except requests.exceptions.RequestException as e:
            logger.error(f"Remote scoring error for {correlation_id}: {str(e)}")
            return self._finish(GatewayState.FAILED, correlation_id, error=str(e))
        except ValueError as e:
            logger.error(f"Remote scoring returned unusable data for {correlation_id}: {str(e)}")
            return self._finish(GatewayState.FAILED, correlation_id, error=str(e))
        finally:
            session.close()


class LocalScorer:
    """Rule-based dimension scores and blended valuation"""

    source_path = "local"

    def assess(self, features: NormalizedFeatures, correlation_id: str) -> AssessmentOutcome:
        return AssessmentOutcome(
            scores=score_dimensions(features),
            valuation=estimate_valuation(features),
            source_path=self.source_path,
        )


def merge_scores(remote: Dict[str, float], features: NormalizedFeatures, correlation_id: str) -> DimensionScores:
    """Remote axes win; axes the service did not predict come from the local scorer"""
    missing = [name for name in DIMENSIONS if name not in remote]
    if not missing:
        return DimensionScores(**remote)

    logger.info(f"Remote scoring omitted {', '.join(missing)} for {correlation_id} - using local scores")
    local = score_dimensions(features)
    return DimensionScores(**{name: remote.get(name, local.get(name)) for name in DIMENSIONS})


class RemoteScorer:
    """Delegates to the remote gateway, falling back to local scoring on any failure"""

    source_path = "remote"

    def __init__(self, gateway: Optional[ScoringGateway], fallback: Optional[LocalScorer] = None):
        self.gateway = gateway
        self.fallback = fallback or LocalScorer()

    def assess(self, features: NormalizedFeatures, correlation_id: str) -> AssessmentOutcome:
        if self.gateway is None:
            logger.warning("No ML service configured - using local scoring")
            return self.fallback.assess(features, correlation_id)

        result = self.gateway.request(features, correlation_id)
        if result.succeeded:
            return AssessmentOutcome(
                scores=merge_scores(result.scores, features, correlation_id),
                valuation=result.valuation,
                source_path=self.source_path,
            )

        logger.warning(f"Falling back to local scoring ({result.state.value}) for {correlation_id}")
        return self.fallback.assess(features, correlation_id)
