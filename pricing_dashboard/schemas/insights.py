"""Versioned insight schemas stored on document analyses.

Every insight payload written by the service is one variant of
``AnalysisInsights``, discriminated by ``kind`` and stamped with
``schemaVersion``. Payloads written before the schema existed are upgraded by
``pricing_dashboard.utils.insight_parser.parse_insights``.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

INSIGHT_SCHEMA_VERSION = 1


def _coerce_str_list(value: Any) -> List[str]:
    """Accept whatever list-ish value an LLM produced and keep it as strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return [str(value)]

    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, dict):
            text = item.get("text") or item.get("title") or item.get("insight")
            items.append(str(text) if text else json.dumps(item, ensure_ascii=False))
        else:
            items.append(str(item))
    return items


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.replace("€", "").replace("$", "").replace("%", "").strip()
        if "," in cleaned and "." not in cleaned:
            cleaned = cleaned.replace(",", ".")
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def _coerce_int(value: Any) -> int:
    number = _coerce_float(value)
    return int(number) if number is not None else 0


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)


def _coerce_dict_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _coerce_metric_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, dict) else {"metric": str(item)} for item in value if item is not None]


StrList = Annotated[List[str], BeforeValidator(_coerce_str_list)]
LooseFloat = Annotated[Optional[float], BeforeValidator(_coerce_float)]
LooseInt = Annotated[int, BeforeValidator(_coerce_int)]
LooseStr = Annotated[str, BeforeValidator(_coerce_str)]
DictList = Annotated[List[Dict[str, Any]], BeforeValidator(_coerce_dict_list)]


class InsightModel(BaseModel):
    """Base model with camelCase aliases matching the dashboard wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class PriceRange(InsightModel):
    min: LooseFloat = 0.0
    max: LooseFloat = 0.0


class TextPriceAnalysis(InsightModel):
    total_prices: LooseInt = 0
    average_price: LooseFloat = 0.0
    price_range: PriceRange = Field(default_factory=PriceRange)
    currency: LooseStr = "unknown"
    price_patterns: StrList = Field(default_factory=list)


class TextQuality(InsightModel):
    confidence: LooseFloat = None
    readability: LooseStr = "unknown"
    completeness: LooseStr = "unknown"


class ExtractedEntities(InsightModel):
    dates: StrList = Field(default_factory=list)
    companies: StrList = Field(default_factory=list)
    addresses: StrList = Field(default_factory=list)
    phone_numbers: StrList = Field(default_factory=list)
    emails: StrList = Field(default_factory=list)


class DocumentSummary(InsightModel):
    """Summary of a single OCR'd or rendered document."""

    kind: Literal["document_summary"] = "document_summary"
    schema_version: int = INSIGHT_SCHEMA_VERSION
    summary: LooseStr = ""
    document_type: LooseStr = ""
    key_findings: StrList = Field(default_factory=list)
    price_analysis: Optional[TextPriceAnalysis] = None
    text_quality: Optional[TextQuality] = None
    business_insights: StrList = Field(default_factory=list)
    recommendations: StrList = Field(default_factory=list)
    extracted_entities: Optional[ExtractedEntities] = None


class KeyMetric(InsightModel):
    metric: LooseStr = ""
    value: Any = None
    change: Optional[LooseStr] = None
    unit: Optional[LooseStr] = None
    benchmark: Optional[LooseStr] = None
    trend: Optional[LooseStr] = None


class WorkbookPriceAnalysis(InsightModel):
    average: LooseFloat = 0.0
    min: LooseFloat = 0.0
    max: LooseFloat = 0.0
    currency: LooseStr = "EUR"
    total_data_points: LooseInt = 0


class DataQuality(InsightModel):
    score: LooseFloat = None
    issues: StrList = Field(default_factory=list)


class BusinessInsights(InsightModel):
    """Insights for a parsed workbook."""

    kind: Literal["business_insights"] = "business_insights"
    schema_version: int = INSIGHT_SCHEMA_VERSION
    summary: LooseStr = ""
    key_metrics: Annotated[List[KeyMetric], BeforeValidator(_coerce_metric_list)] = Field(default_factory=list)
    price_analysis: Optional[WorkbookPriceAnalysis] = None
    recommendations: StrList = Field(default_factory=list)
    data_quality: Optional[DataQuality] = None


class FinancialSummary(InsightModel):
    total_revenue: LooseFloat = None
    total_costs: LooseFloat = None
    profit_margin: LooseFloat = None
    average_price: LooseFloat = None
    occupancy_rate: LooseFloat = None
    room_count: LooseFloat = None


class CalculationBreakdown(InsightModel):
    """Numeric breakdown produced by intelligent restoration."""

    kind: Literal["calculation_breakdown"] = "calculation_breakdown"
    schema_version: int = INSIGHT_SCHEMA_VERSION
    document_type: LooseStr = ""
    statistical_data: DictList = Field(default_factory=list)
    calculation_breakdown: DictList = Field(default_factory=list)
    key_metrics: Annotated[List[KeyMetric], BeforeValidator(_coerce_metric_list)] = Field(default_factory=list)
    financial_summary: Optional[FinancialSummary] = None
    recommendations: StrList = Field(default_factory=list)
    summary: LooseStr = ""


class ProcessingFailure(InsightModel):
    """Placeholder stored when a document could not be processed."""

    kind: Literal["processing_failure"] = "processing_failure"
    schema_version: int = INSIGHT_SCHEMA_VERSION
    error: LooseStr = "Processing failed"
    reason: LooseStr = ""


AnalysisInsights = Annotated[
    Union[DocumentSummary, BusinessInsights, CalculationBreakdown, ProcessingFailure],
    Field(discriminator="kind"),
]

analysis_insights_adapter: TypeAdapter = TypeAdapter(AnalysisInsights)


def dump_insights(insights: Optional[InsightModel]) -> Optional[Dict[str, Any]]:
    """Serialize an insight variant to the JSON stored in the database."""
    if insights is None:
        return None
    return insights.model_dump(by_alias=True, mode="json")
