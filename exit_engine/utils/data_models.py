from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional, Tuple

from exit_engine.core.benchmarks import TIMEFRAME_YEARS, canonical_industry

DIMENSIONS: Tuple[str, ...] = (
    "financial",
    "operational",
    "strategic",
    "legal",
    "market",
    "management",
)

Dimension = Literal["financial", "operational", "strategic", "legal", "market", "management"]
Priority = Literal["high", "medium", "low"]
Pillar = Literal["coach", "learn", "execute", "collaborate"]
SourcePath = Literal["local", "remote"]


class EngineModel(BaseModel):
    """Immutable base model. Accepts snake_case or camelCase input, dumps camelCase by alias."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        str_strip_whitespace=True,
    )


class FieldError(EngineModel):
    """One field-level validation problem"""
    field: str
    message: str


class Checklist(EngineModel):
    """Boolean exit-preparation checklist submitted with the profile. Only real booleans are accepted."""
    model_config = ConfigDict(extra="forbid")

    documented_processes: bool = Field(strict=True)
    financial_records: bool = Field(strict=True)
    legal_compliance: bool = Field(strict=True)
    intellectual_property: bool = Field(strict=True)


class BusinessProfile(EngineModel):
    """
    Input description of a business. Every field is required unless noted.

    Numbers and checklist flags must arrive as JSON numbers and booleans;
    strings such as "35" or "no" are rejected rather than coerced.
    """
    model_config = ConfigDict(extra="forbid")

    company_name: str = Field(min_length=1)
    industry: str = Field(min_length=1)
    company_age_years: float = Field(ge=0, strict=True)
    employee_count: int = Field(ge=1, strict=True)
    annual_revenue: float = Field(ge=0, strict=True)
    profit_margin_pct: float = Field(ge=-100, le=100, strict=True)
    revenue_growth_pct: float = Field(ge=-100, le=1000, strict=True)
    business_model: str = Field(min_length=1)
    customer_concentration: Literal["diversified", "moderate", "concentrated"]
    market_position: Literal["leader", "strong", "average", "weak"]
    competitive_advantage_text: str
    exit_reason: str
    desired_timeframe: str
    checklist: Checklist
    primary_revenue_sources: Tuple[str, ...] = ()

    @field_validator("customer_concentration", "market_position", "desired_timeframe", mode="before")
    @classmethod
    def _lowercase_codes(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("industry")
    @classmethod
    def _known_industry(cls, value: str) -> str:
        return canonical_industry(value)

    @field_validator("desired_timeframe")
    @classmethod
    def _known_timeframe(cls, value: str) -> str:
        if value not in TIMEFRAME_YEARS:
            raise ValueError(
                f"Unsupported timeframe '{value}'. Expected one of: {', '.join(TIMEFRAME_YEARS)}"
            )
        return value


class NormalizedFeatures(EngineModel):
    """
    Bounded, derived view of a BusinessProfile used by every scorer.

    Ordinal codes are floats so what-if projections can move them
    fractionally; freshly normalized values are always whole ordinals.
    """
    industry: str
    customer_concentration_code: float = Field(ge=0, le=2)
    market_position_code: float = Field(ge=0, le=3)
    timeframe_years: float
    annual_revenue: float = Field(ge=0)
    profit_margin_pct: float = Field(ge=-100, le=100)
    revenue_growth_pct: float = Field(ge=-100, le=1000)
    employee_count: int = Field(ge=1)
    company_age_years: float = Field(ge=0)
    revenue_per_employee: float = Field(ge=0)
    profit_absolute: float
    maturity_flag: bool
    competitive_advantage_strength: int = Field(ge=0, le=10)
    recurring_revenue_flag: bool
    checklist: Checklist


class DimensionScore(EngineModel):
    dimension: Dimension
    score: float = Field(ge=0, le=100)


class DimensionScores(EngineModel):
    """Exactly one 0-100 score per readiness axis"""
    financial: float = Field(ge=0, le=100)
    operational: float = Field(ge=0, le=100)
    strategic: float = Field(ge=0, le=100)
    legal: float = Field(ge=0, le=100)
    market: float = Field(ge=0, le=100)
    management: float = Field(ge=0, le=100)

    def get(self, dimension: str) -> float:
        return getattr(self, dimension)

    def as_list(self) -> List[DimensionScore]:
        return [DimensionScore(dimension=name, score=self.get(name)) for name in DIMENSIONS]

    @property
    def overall(self) -> float:
        return round(sum(self.get(name) for name in DIMENSIONS) / len(DIMENSIONS), 1)


class MethodEstimate(EngineModel):
    """Output of a single valuation methodology"""
    method: str
    value: float = Field(ge=0)
    confidence_pct: float = Field(ge=0, le=100)


class ValuationEstimate(EngineModel):
    low: float = Field(ge=0)
    point: float = Field(ge=0)
    high: float = Field(ge=0)
    confidence_pct: float = Field(ge=0, le=100)
    methodology: str
    methods: Tuple[MethodEstimate, ...] = ()

    @model_validator(mode="after")
    def _ordered_range(self):
        if not (self.low <= self.point <= self.high):
            raise ValueError(f"valuation range out of order: {self.low} / {self.point} / {self.high}")
        return self


class RiskFactor(EngineModel):
    category: str
    level: float = Field(ge=0, le=100)
    drivers: Tuple[str, ...] = ()


class RiskAssessment(EngineModel):
    categories: Tuple[RiskFactor, ...]
    overall_level: Literal["Low", "Medium", "High"]

    def level_for(self, category: str) -> Optional[float]:
        for factor in self.categories:
            if factor.category == category:
                return factor.level
        return None


class Recommendation(EngineModel):
    id: str
    category: str
    priority: Priority
    title: str
    description: str
    estimated_impact: str
    impact_score: float
    estimated_value: Optional[float] = None
    timeframe: str
    pillar: Pillar


class ImprovementPhase(EngineModel):
    dimension: Dimension
    current_score: float = Field(ge=0, le=100)
    target_score: float = Field(ge=0, le=100)
    actions: Tuple[str, ...]
    timeframe: str

    @model_validator(mode="after")
    def _progresses(self):
        if self.current_score >= self.target_score:
            raise ValueError("improvement phase must raise the score")
        if not self.actions:
            raise ValueError("improvement phase needs at least one action")
        return self


class ValueEnhancement(EngineModel):
    current_value: float = Field(ge=0)
    potential_value: float = Field(ge=0)
    value_increase: float = Field(ge=0)
    percentage_increase: float = Field(ge=0)


class ReportMetadata(EngineModel):
    correlation_id: str
    source_path: SourcePath
    latency_ms: float = Field(ge=0)
    engine_version: str


class AnalysisReport(EngineModel):
    """Final engine output. Never partially populated."""
    overall_score: float = Field(ge=0, le=100)
    scores: DimensionScores
    valuation: ValuationEstimate
    risk: RiskAssessment
    recommendations: Tuple[Recommendation, ...]
    improvement_plan: Tuple[ImprovementPhase, ...]
    time_to_readiness: int = Field(ge=0)
    value_enhancement: ValueEnhancement
    metadata: ReportMetadata

    def to_response(self) -> Dict:
        """camelCase JSON-ready dict for the request boundary"""
        return self.model_dump(mode="json", by_alias=True)


class AnalysisOptions(EngineModel):
    use_remote: bool = False
    correlation_id: Optional[str] = None
    target_score: Optional[float] = Field(default=None, gt=0, le=100)
