import argparse
import json
import sys

from exit_engine.config import load_settings
from exit_engine.errors import ProfileValidationError, RateLimitExceeded
from exit_engine.graph import analyze
from exit_engine.utils.data_models import AnalysisOptions
from exit_engine.utils.logging_config import setup_logging

settings = load_settings()
logger = setup_logging(settings.log_level)

SAMPLE_PROFILE = {
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
    "primaryRevenueSources": ["Subscriptions", "Implementation services"],
}


def load_profile(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run an exit-readiness analysis and print the JSON report")
    parser.add_argument("--profile", help="Path to a business profile JSON file (defaults to a sample profile)")
    parser.add_argument("--remote", action="store_true", help="Score with the remote ML service when configured")
    args = parser.parse_args(argv)

    profile = load_profile(args.profile) if args.profile else SAMPLE_PROFILE
    logger.info(f"Analyzing {profile.get('companyName', 'unnamed company')}...")

    try:
        report = analyze(profile, AnalysisOptions(use_remote=args.remote), "cli", settings=settings)
    except ProfileValidationError as e:
        print(json.dumps({"error": "Invalid business data", "details": e.to_details()}, indent=2))
        return 1
    except RateLimitExceeded as e:
        logger.error(str(e))
        return 1

    print(json.dumps(report.to_response(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
