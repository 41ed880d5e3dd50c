"""Pytest configuration and fixtures."""

import copy
import os

import pytest

# Set before any test module imports api.py, which reads settings at import time.
# Empty values keep a stray .env file from enabling remote calls.
os.environ["API_KEY"] = "test-api-key"
os.environ["ML_SERVICE_URL"] = ""
os.environ["REPORT_WEBHOOK_URL"] = ""
os.environ["RATE_LIMIT_REQUESTS"] = "5"
os.environ["RATE_LIMIT_WINDOW_SECONDS"] = "3600"
os.environ["IMPROVEMENT_TARGET_SCORE"] = "90"
os.environ["TRUST_FORWARDED_FOR"] = ""

from exit_engine.config import EngineSettings  # noqa: E402
from exit_engine.core.normalizer import normalize_profile, validate_profile  # noqa: E402
from exit_engine.utils.rate_limiter import FixedWindowRateLimiter  # noqa: E402

BASE_PROFILE = {
    "companyName": "Northwind Analytics",
    "industry": "technology",
    "companyAgeYears": 10,
    "employeeCount": 35,
    "annualRevenue": 5_000_000,
    "profitMarginPct": 15,
    "revenueGrowthPct": 20,
    "businessModel": "B2B SaaS subscriptions",
    "customerConcentration": "diversified",
    "marketPosition": "strong",
    "competitiveAdvantageText": "Proprietary platform protected by patents, unique data assets and a trusted brand",
    "exitReason": "Retirement",
    "desiredTimeframe": "2-years",
    "checklist": {
        "documentedProcesses": True,
        "financialRecords": True,
        "legalCompliance": True,
        "intellectualProperty": True,
    },
}


@pytest.fixture
def make_profile():
    """Factory for camelCase profile payloads. `checklist` overrides merge into the defaults."""
    def _make(**overrides):
        payload = copy.deepcopy(BASE_PROFILE)
        checklist = overrides.pop("checklist", None)
        if checklist:
            payload["checklist"].update(checklist)
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def profile_payload(make_profile):
    return make_profile()


@pytest.fixture
def make_features(make_profile):
    """Factory for NormalizedFeatures built through the real validation path"""
    def _make(**overrides):
        return normalize_profile(validate_profile(make_profile(**overrides)))
    return _make


@pytest.fixture
def features(make_features):
    return make_features()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def limiter():
    return FixedWindowRateLimiter(limit=1000, window_seconds=3600)
