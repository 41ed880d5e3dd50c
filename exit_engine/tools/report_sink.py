import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests

from exit_engine.utils.data_models import AnalysisReport

logger = logging.getLogger(__name__)

SINK_TIMEOUT_SECONDS = 10

# Side tasks never block the caller
_executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="report-sink")


class ReportSink:
    """Forward finalized reports to the downstream persistence webhook"""

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = SINK_TIMEOUT_SECONDS, session=None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session or requests

        if not self.webhook_url:
            logger.warning("Report webhook not configured. Using mock mode.")

    def send(self, report: AnalysisReport) -> Dict[str, Any]:
        """Deliver one report. Never raises."""
        correlation_id = report.metadata.correlation_id
        try:
            if not self.webhook_url:
                logger.info(f"Mock mode: Would send report {correlation_id}")
                logger.info(f"  Overall score: {report.overall_score}")
                logger.info(f"  Valuation: {report.valuation.point:,.0f}")
                return {"status": "success", "mode": "mock"}

            response = self.session.post(
                self.webhook_url,
                json=report.to_response(),
                headers={"X-Request-ID": correlation_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.info(f"Report {correlation_id} delivered")
            return {"status": "success", "mode": "live"}

        except Exception as e:
            logger.error(f"Failed to deliver report {correlation_id}: {e}")
            return {"status": "error", "error": str(e)}


def dispatch_report(report: AnalysisReport, sink: Optional[ReportSink] = None) -> Future:
    """Send the report in the background and return the Future"""
    sink = sink or ReportSink()
    return _executor.submit(sink.send, report)
