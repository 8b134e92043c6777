"""LLM backed insight generation for documents and document sets."""

import json
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import AppError, InsightGenerationError, QuotaExceededError
from pricing_dashboard.core.llm_client import OpenAIChatClient, get_chat_client
from pricing_dashboard.schemas.insights import (
    BusinessInsights,
    CalculationBreakdown,
    DataQuality,
    DocumentSummary,
    ExtractedEntities,
    PriceRange,
    TextPriceAnalysis,
    TextQuality,
    WorkbookPriceAnalysis,
)
from pricing_dashboard.services.price_extraction import summarize_prices
from pricing_dashboard.utils.insight_parser import parse_insights, truncate_text
from pricing_dashboard.utils.json_parser import parse_json_safely
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

MAX_DOCUMENT_CHARS = 12000
MAX_RESTORATION_CHARS = 4000
MAX_QUERY_CONTEXT_CHARS = 8000


class InsightGenerator:
    """Generates insight payloads with an OpenAI-compatible chat model.

    Every method returns a typed insight model (or a plain dict for the
    cross-document and query helpers). Replies that are not valid JSON are
    turned into structured fallbacks instead of failing the caller.
    """

    DOCUMENT_SYSTEM_PROMPT = (
        "You are an expert document analyst specializing in OCR text analysis, pricing "
        "intelligence, and business document insights. Provide comprehensive analysis of "
        "extracted text with focus on pricing, key information, and actionable recommendations. "
        "Always respond with valid JSON only."
    )

    DOCUMENT_PROMPT = """Analyze this extracted document text and provide comprehensive insights:

EXTRACTED TEXT:
{text}

IDENTIFIED PRICE DATA:
{prices}

Please provide detailed insights in the following JSON format:
{{
  "summary": "Comprehensive summary of the document content and purpose",
  "documentType": "Type of document (invoice, receipt, contract, price list, etc.)",
  "keyFindings": ["Most important finding 1", "Most important finding 2", "Most important finding 3"],
  "priceAnalysis": {{
    "totalPrices": number,
    "averagePrice": number,
    "priceRange": {{"min": number, "max": number}},
    "currency": "detected currency",
    "pricePatterns": ["pattern 1", "pattern 2"]
  }},
  "textQuality": {{
    "confidence": number_between_0_and_1,
    "readability": "excellent/good/fair/poor",
    "completeness": "complete/partial/fragmented"
  }},
  "businessInsights": ["Business insight 1", "Business insight 2"],
  "recommendations": ["Actionable recommendation 1", "Actionable recommendation 2"],
  "extractedEntities": {{
    "dates": [], "companies": [], "addresses": [], "phoneNumbers": [], "emails": []
  }}
}}"""

    WORKBOOK_SYSTEM_PROMPT = (
        "You are an expert data analyst specializing in hotel pricing and revenue optimization. "
        "Analyze the provided Excel data and give actionable insights. Respond in JSON."
    )

    WORKBOOK_PROMPT = """Analyze the following Excel data and provide comprehensive insights:

WORKSHEETS ({sheet_count} total):
{sheets}

EXTRACTED PRICES ({price_count} total):
{prices}

Please provide:
1. Summary of the data structure and content
2. Key metrics and findings
3. Price analysis (average, min, max, trends)
4. Recommendations for hotel pricing strategy
5. Data quality assessment

Respond in JSON format with the following structure:
{{
  "summary": "Brief overview of the data",
  "keyMetrics": [{{"metric": "metric name", "value": "value", "change": "change description"}}],
  "priceAnalysis": {{"average": number, "min": number, "max": number, "currency": "EUR", "totalDataPoints": number}},
  "recommendations": ["recommendation 1", "recommendation 2"],
  "dataQuality": {{"score": number, "issues": ["issue 1", "issue 2"]}}
}}"""

    CALCULATION_SYSTEM_PROMPT = (
        "You are an expert business analyst specializing in document analysis. "
        "Always respond with valid JSON only."
    )

    CALCULATION_PROMPT = """Extract DETAILED statistical data and calculations from this Excel/business document. Focus on REAL numbers, formulas, and calculations:

Document: {file_name}
Content: {text}

EXTRACT ALL NUMERICAL DATA INCLUDING:
- Every price, cost, revenue, margin, percentage
- All formulas and calculations with their exact results
- Financial ratios, VAT calculations, taxes, discounts
- Occupancy rates, room counts, rates
- Profit margins and ROI calculations

Return JSON in this EXACT format:
{{
  "documentType": "type of document",
  "statisticalData": [
    {{"category": "Pricing|Costs|Revenue", "values": [{{"label": "", "value": 0, "unit": "", "calculation": "", "significance": ""}}]}}
  ],
  "calculationBreakdown": [
    {{"formula": "", "inputs": [], "result": 0, "businessPurpose": ""}}
  ],
  "keyMetrics": [
    {{"metric": "", "value": 0, "unit": "", "benchmark": "", "trend": "increasing|decreasing|stable"}}
  ],
  "financialSummary": {{
    "totalRevenue": null, "totalCosts": null, "profitMargin": null,
    "averagePrice": null, "occupancyRate": null, "roomCount": null
  }},
  "recommendations": ["actionable recommendation based on the numbers"],
  "summary": "comprehensive summary of all the numerical findings"
}}

IMPORTANT: Extract ALL actual numbers from the document. Do not make up or estimate values. Only include real data found in the document."""

    TRENDS_SYSTEM_PROMPT = (
        "You are a senior hotel revenue management consultant with expertise in pricing "
        "strategy and market analysis. Respond in JSON."
    )

    TRENDS_PROMPT = """Analyze this comprehensive hotel pricing dataset:

DATASET OVERVIEW:
- Total price points: {price_count}
- Documents analyzed: {document_count}
- File types: {analysis_types}

PRICE DISTRIBUTION:
- Average: {average:.2f} EUR
- Min: {minimum:.2f} EUR
- Max: {maximum:.2f} EUR

TOP PRICE SOURCES:
{top_prices}

DOCUMENT SOURCES:
{documents}

Provide strategic insights for hotel pricing in JSON format:
{{
  "summary": "Executive summary of findings",
  "trends": [{{"category": "market_position", "trend": "increasing|decreasing|stable", "percentage": 0, "description": "trend description"}}],
  "recommendations": ["Strategic recommendation 1", "Strategic recommendation 2"],
  "competitiveAnalysis": {{"positioning": "market position assessment", "opportunities": ["opportunity 1"]}}
}}"""

    QUERY_SYSTEM_PROMPT = (
        "You are a hotel pricing analyst answering questions about a user's uploaded documents. "
        "Only use the provided document context. Respond in JSON."
    )

    QUERY_PROMPT = """QUESTION:
{query}

DOCUMENT CONTEXT:
{context}

Answer in JSON format:
{{
  "answer": "direct answer to the question",
  "insights": ["supporting insight 1", "supporting insight 2"],
  "recommendations": ["recommendation 1"]
}}"""

    def __init__(self, chat_client: Optional[OpenAIChatClient] = None):
        self._chat_client = chat_client

    @property
    def chat_client(self) -> OpenAIChatClient:
        if self._chat_client is None:
            self._chat_client = get_chat_client()
        return self._chat_client

    async def _complete_json(self, system_prompt: str, prompt: str, temperature: Optional[float] = None) -> str:
        return await self.chat_client.generate_content(
            contents=prompt,
            system_instruction=system_prompt,
            generation_config={
                "temperature": settings.llm.temperature if temperature is None else temperature,
                "max_output_tokens": settings.llm.max_tokens,
                "response_mime_type": "application/json",
            },
        )

    @staticmethod
    def _text_price_analysis(prices: Sequence[Dict[str, Any]]) -> TextPriceAnalysis:
        stats = summarize_prices(prices)
        return TextPriceAnalysis(
            total_prices=stats["total"],
            average_price=stats["average"],
            price_range=PriceRange(min=stats["min"], max=stats["max"]),
            currency=prices[0].get("currency", "unknown") if prices else "unknown",
            price_patterns=[],
        )

    async def generate_document_summary(
        self,
        text: str,
        prices: Sequence[Dict[str, Any]],
        raise_on_error: bool = False,
    ) -> DocumentSummary:
        """Summarize an OCR'd or rendered document.

        Args:
            text: Document text
            prices: Price points found in the text
            raise_on_error: Raise InsightGenerationError instead of returning
                the error placeholder when the call fails

        Returns:
            DocumentSummary, possibly a structured fallback

        Raises:
            QuotaExceededError: If the provider quota is exhausted
            InsightGenerationError: If the call fails and raise_on_error is set
        """
        prompt = self.DOCUMENT_PROMPT.format(
            text=truncate_text(text, MAX_DOCUMENT_CHARS),
            prices=json.dumps(list(prices)[:50], ensure_ascii=False, indent=2),
        )

        try:
            content = await self._complete_json(self.DOCUMENT_SYSTEM_PROMPT, prompt)
        except QuotaExceededError:
            raise
        except AppError as e:
            LOGGER.error(f"Error generating document insights: {e.message}", exc_info=True)
            if raise_on_error:
                raise InsightGenerationError(
                    f"Insight generation failed: {e.message}", original_error=e
                ) from e
            return DocumentSummary(
                summary="Failed to generate insights due to error",
                document_type="unknown",
                key_findings=["OCR processing completed with errors"],
                price_analysis=self._text_price_analysis(prices),
                text_quality=TextQuality(confidence=0.5, readability="unknown", completeness="unknown"),
                business_insights=["Error occurred during analysis"],
                recommendations=["Try reprocessing the document"],
                extracted_entities=ExtractedEntities(),
            )

        parsed = parse_json_safely(content)
        if isinstance(parsed, dict) and parsed:
            insights = parse_insights(parsed)
            if isinstance(insights, DocumentSummary):
                return insights
            try:
                return DocumentSummary.model_validate(parsed)
            except PydanticValidationError as e:
                LOGGER.warning(f"Document insights did not match the expected shape: {e}")
        else:
            LOGGER.warning("Failed to parse JSON response, creating structured fallback")

        # Unusable reply
        return DocumentSummary(
            summary=(content or "")[:500] + "...",
            document_type="unknown",
            key_findings=["OCR text successfully extracted", "Document processed with AI analysis"],
            price_analysis=self._text_price_analysis(prices),
            text_quality=TextQuality(confidence=0.85, readability="good", completeness="complete"),
            business_insights=["Document processed successfully"],
            recommendations=["Review extracted text for accuracy"],
            extracted_entities=ExtractedEntities(),
        )

    async def generate_workbook_insights(
        self,
        worksheets: Sequence[Dict[str, Any]],
        prices: Sequence[Dict[str, Any]],
    ) -> BusinessInsights:
        """Business insights for a parsed workbook. Never raises."""
        sheets = "\n".join(
            f"- {ws['worksheetName']}: {ws['rowCount']} rows, {ws['columnCount']} columns\n"
            f"  Headers: {', '.join(str(h) for h in ws.get('headers', []))}\n"
            f"  Sample data: {json.dumps(ws.get('data', [])[:3], ensure_ascii=False, default=str)}"
            for ws in worksheets
        )
        prompt = self.WORKBOOK_PROMPT.format(
            sheet_count=len(worksheets),
            sheets=sheets,
            price_count=len(prices),
            prices="\n".join(f"- {p['value']} {p['currency']} from {p['context']}" for p in list(prices)[:10]),
        )

        stats = summarize_prices(prices)
        price_analysis = WorkbookPriceAnalysis(
            average=stats["average"],
            min=stats["min"],
            max=stats["max"],
            currency="EUR",
            total_data_points=stats["total"],
        )

        try:
            content = await self._complete_json(self.WORKBOOK_SYSTEM_PROMPT, prompt, temperature=0.1)
        except AppError as e:
            LOGGER.error(f"Error generating workbook insights: {e.message}")
            return BusinessInsights(
                summary="Error generating AI insights",
                price_analysis=price_analysis,
                data_quality=DataQuality(score=None, issues=[e.message]),
            )

        parsed = parse_json_safely(content)
        if isinstance(parsed, dict) and parsed:
            try:
                return BusinessInsights.model_validate(parsed)
            except PydanticValidationError as e:
                LOGGER.warning(f"Workbook insights did not match the expected shape: {e}")

        return BusinessInsights(
            summary=content or "",
            key_metrics=[],
            price_analysis=price_analysis,
            recommendations=["Review data structure for better analysis"],
            data_quality=DataQuality(score=7, issues=["AI parsing needed improvement"]),
        )

    async def generate_calculation_breakdown(self, file_name: str, text: str) -> Optional[CalculationBreakdown]:
        """Extract numbers and calculations from a document.

        Returns:
            CalculationBreakdown, or None when there is no text or no usable reply

        Raises:
            QuotaExceededError: If the provider quota is exhausted
            APIClientError: If the call fails
        """
        if not text or not text.strip():
            return None

        prompt = self.CALCULATION_PROMPT.format(
            file_name=file_name,
            text=truncate_text(text, MAX_RESTORATION_CHARS),
        )
        content = await self._complete_json(self.CALCULATION_SYSTEM_PROMPT, prompt)
        if not content:
            return None

        parsed = parse_json_safely(content)
        if not isinstance(parsed, dict) or not parsed:
            LOGGER.warning(f"Calculation breakdown for {file_name} was not valid JSON")
            return None
        try:
            return CalculationBreakdown.model_validate(parsed)
        except PydanticValidationError as e:
            LOGGER.warning(f"Calculation breakdown for {file_name} did not match the expected shape: {e}")
            return None

    async def generate_cross_document_trends(
        self,
        prices: Sequence[Dict[str, Any]],
        analyses: Sequence[Any],
    ) -> Dict[str, Any]:
        """Strategic summary over all price points. Never raises."""
        stats = summarize_prices(prices)
        analysis_types = sorted({a.analysis_type for a in analyses})
        prompt = self.TRENDS_PROMPT.format(
            price_count=len(prices),
            document_count=len(analyses),
            analysis_types=", ".join(analysis_types),
            average=stats["average"],
            minimum=stats["min"],
            maximum=stats["max"],
            top_prices="\n".join(f"- {p['value']} EUR from {p['context']}" for p in list(prices)[:10]),
            documents="\n".join(f"- {a.file_name} ({a.analysis_type})" for a in analyses),
        )

        try:
            content = await self._complete_json(self.TRENDS_SYSTEM_PROMPT, prompt, temperature=0.2)
        except AppError as e:
            LOGGER.error(f"Error generating cross-document AI insights: {e.message}")
            return {
                "summary": "Cross-document analysis completed",
                "trends": [],
                "recommendations": ["Review individual document analyses for detailed insights"],
            }

        parsed = parse_json_safely(content)
        if isinstance(parsed, dict):
            return parsed
        return {
            "summary": content or "",
            "trends": [],
            "recommendations": ["Advanced AI analysis completed"],
        }

    async def answer_analytics_query(self, query: str, analyses: Sequence[Any]) -> Dict[str, Any]:
        """Answer a free-text question against the user's analyses.

        Raises:
            QuotaExceededError: If the provider quota is exhausted
            APIClientError: If the call fails
        """
        prompt = self.QUERY_PROMPT.format(
            query=query.strip(),
            context=truncate_text(self._query_context(analyses), MAX_QUERY_CONTEXT_CHARS),
        )
        content = await self._complete_json(self.QUERY_SYSTEM_PROMPT, prompt)

        parsed = parse_json_safely(content)
        if isinstance(parsed, dict) and parsed.get("answer"):
            return {
                "answer": str(parsed.get("answer")),
                "insights": _as_list(parsed.get("insights")),
                "recommendations": _as_list(parsed.get("recommendations")),
            }
        return {"answer": content or "", "insights": [], "recommendations": []}

    @staticmethod
    def _query_context(analyses: Sequence[Any]) -> str:
        blocks: List[str] = []
        for analysis in analyses:
            insights = parse_insights(analysis.insights)
            summary = getattr(insights, "summary", "") if insights else ""
            stats = summarize_prices(analysis.price_data or [])
            blocks.append(
                f"- {analysis.file_name} ({analysis.analysis_type}): "
                f"{stats['total']} prices, average {stats['average']:.2f} EUR. {summary}"
            )
        return "\n".join(blocks) if blocks else "No documents analyzed yet."


def _as_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str) and value:
        return [value]
    return []
