# smartfarm/services/llm.py
"""
OpenAI-backed implementation of the assistant's language-model capabilities.

The prompts describe the schema (generated from the SQLAlchemy metadata), the
routing rules and the SQL rules; the replies are parsed into RouteDecision,
plain text, or ChartSpec.
"""
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from openai import AsyncOpenAI
from sqlalchemy import MetaData

from smartfarm.core.config import OPENAI_API_KEY, OPENAI_BASE_URL, OPENAI_MODEL, LLM_TIMEOUT_SECONDS
from smartfarm.core.errors import AssistantNotConfigured
from smartfarm.services.assistant import AssistantModel, ChartSpec, RouteDecision, parse_route_decision

logger = logging.getLogger(__name__)

MAX_PROMPT_ROWS = 200

# Never described to the model
HIDDEN_COLUMNS = {("users", "hashed_password")}

LANGUAGE_NAMES = {
    "az": "Azerbaijani",
    "en": "English",
}

DIALECT_NAMES = {
    "postgresql": "PostgreSQL",
    "mysql": "MySQL",
    "mariadb": "MariaDB",
    "sqlite": "SQLite",
}

ROUTE_CLASSIFICATION_PROMPT = """You are an intelligent assistant for a Smart Farm Management System. Your job is to analyze user queries and route them appropriately.

The Smart Farm system manages:
- Users/Farmers who own the farm
- Fields (farm areas with location and size)
- Plant Types (crops like Tomato, Wheat, Cucumber with irrigation schedules)
- Plant Batches (groups of plants in fields with planting dates, quantities, health status)
- Irrigation Events (scheduled and completed watering events)
- Notes (observations about plants - diseases, harvest, fertilizer, etc.)
- Status History (tracking plant health changes over time)

CURRENT USER ID: {user_id}

DATABASE ({dialect}) SCHEMA:
{schema}

ROUTING RULES:
1. Route 0 - OFF-TOPIC: If the question is NOT related to farming, agriculture, plants, irrigation, fields, or this farm management system. Return route 0 with a short, friendly redirect message in "data".
2. Route 1 - TEXT QUERY: If the user wants textual information that can be answered with a database query (counts, lists, statuses, details, history, etc.). Return route 1 with an SQL query.
3. Route 2 - VISUALIZATION: If the user explicitly asks for a chart, graph, plot, visualization, or if the data is best represented visually (trends over time, comparisons, distributions). Return route 2 with an SQL query.

IMPORTANT SQL RULES:
- Write exactly one SELECT statement. Never modify data.
- Always filter by deleted_at IS NULL for soft-deleted tables (fields, plant_batches, notes)
- Only return data owned by the current user: fields.user_id = {user_id}
- Use the actual user id {user_id}. Do NOT use placeholders like 'current_user_id'
- Use meaningful JOINs to get related data
- Use aggregations (COUNT, SUM, AVG) where appropriate
- Use {dialect} date functions
- Return readable column names with AS aliases

LANGUAGE RULES:
- Detect the language of the user's question
- If the user writes in Azerbaijani, set the "language" field to "az"
- If the user writes in English, set the "language" field to "en"
- For any other language, use its ISO 639-1 code

Respond ONLY with a valid JSON object in this exact format:
{{
    "route": 0 | 1 | 2,
    "data": "SQL query here or rejection message",
    "type": "text" | "sql",
    "reasoning": "Brief explanation of why this route was chosen",
    "language": "az" | "en" | "other"
}}"""

TEXT_RESPONSE_PROMPT = """You are a helpful Smart Farm assistant. Convert the SQL query results into a friendly, informative response for the farmer.

GUIDELINES:
- Be concise but informative
- Use bullet points for lists
- Include relevant numbers and statistics
- Format dates in a readable way (e.g., "December 13, 2024")
- If the result is empty, say that no matching data was found and suggest what the farmer could check
- Use farming terminology naturally
- Add helpful insights when relevant

LANGUAGE: Respond in {language}.

SQL Query executed:
{query}

Query Results{row_note}:
{results}

Provide a natural, helpful response to the user's question: "{question}\""""

CHART_GENERATION_PROMPT = """You are a data visualization expert. Describe the best chart for the query results.

REQUIREMENTS:
- Pick one chart_type from: bar, line, pie, doughnut, polarArea, radar
- Use time on the x axis (line chart) for trends, bar charts for comparisons, pie/doughnut for distributions
- Every dataset needs a human-readable label; labels are the category or x-axis values
- Every dataset's data list must have exactly one number per label
- Give the chart a short, descriptive title

SQL Query:
{query}

Query Results{row_note}:
{results}

User's Question: "{question}"

Return ONLY a valid JSON object with this format:
{{
    "title": "Chart title",
    "chart_type": "bar",
    "labels": ["label 1", "label 2"],
    "datasets": [{{"label": "Series name", "data": [1, 2]}}]
}}"""


def describe_schema(metadata: MetaData = None, hidden: Iterable = HIDDEN_COLUMNS) -> str:
    """One line per table: columns with types, primary and foreign keys."""
    if metadata is None:
        from smartfarm.models import Base
        metadata = Base.metadata

    hidden = set(hidden)
    lines = []
    for table in metadata.sorted_tables:
        columns = []
        for column in table.columns:
            if (table.name, column.name) in hidden:
                continue
            parts = [column.name, str(column.type)]
            if column.primary_key:
                parts.append("PK")
            for fk in column.foreign_keys:
                parts.append(f"-> {fk.target_fullname}")
            if not column.nullable and not column.primary_key:
                parts.append("NOT NULL")
            columns.append(" ".join(parts))
        lines.append(f"{table.name}({', '.join(columns)})")
    return "\n".join(lines)


def language_name(tag: str) -> str:
    return LANGUAGE_NAMES.get((tag or "en").lower(), tag)


def format_rows(rows: List[Dict[str, Any]]):
    """JSON for the prompt plus a note when rows were cut."""
    shown = rows[:MAX_PROMPT_ROWS]
    note = f" (first {len(shown)} of {len(rows)} rows)" if len(rows) > len(shown) else ""
    return json.dumps(shown, indent=2, default=str), note


class OpenAIAssistantModel(AssistantModel):
    """
    AssistantModel over the OpenAI Chat Completions API.

    Args:
        client: AsyncOpenAI client (carries the API key and request timeout)
        model: Model identifier
        dialect: SQL dialect name of the target database
        schema: Schema description; generated from the models if omitted
    """

    def __init__(self, client: AsyncOpenAI, model: str = OPENAI_MODEL, dialect: str = "postgresql", schema: Optional[str] = None):
        self.client = client
        self.model = model
        self.dialect = DIALECT_NAMES.get(dialect, dialect)
        self.schema = schema if schema is not None else describe_schema()

    async def complete(self, messages: List[Dict[str, str]], temperature: float, json_mode: bool = False) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self.client.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""

    async def classify(self, question: str, history: List[Dict[str, str]], user_id: int) -> RouteDecision:
        prompt = ROUTE_CLASSIFICATION_PROMPT.format(user_id=user_id, dialect=self.dialect, schema=self.schema)
        messages = [{"role": "system", "content": prompt}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in history)
        messages.append({"role": "user", "content": question})
        content = await self.complete(messages, temperature=0.3, json_mode=True)
        return parse_route_decision(content)

    async def summarize(self, question: str, sql: str, rows: List[Dict[str, Any]], language: str) -> str:
        results, row_note = format_rows(rows)
        prompt = TEXT_RESPONSE_PROMPT.format(
            language=language_name(language),
            query=sql,
            results=results,
            row_note=row_note,
            question=question,
        )
        return (await self.complete([{"role": "system", "content": prompt}], temperature=0.7)).strip()

    async def visualize(self, question: str, sql: str, rows: List[Dict[str, Any]]) -> ChartSpec:
        results, row_note = format_rows(rows)
        prompt = CHART_GENERATION_PROMPT.format(query=sql, results=results, row_note=row_note, question=question)
        content = await self.complete([{"role": "system", "content": prompt}], temperature=0.5, json_mode=True)
        return ChartSpec.model_validate_json(content)


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    if not OPENAI_API_KEY:
        raise AssistantNotConfigured("OpenAI API key not configured")
    kwargs: Dict[str, Any] = {"api_key": OPENAI_API_KEY, "timeout": LLM_TIMEOUT_SECONDS}
    if OPENAI_BASE_URL:
        kwargs["base_url"] = OPENAI_BASE_URL
    logger.info("OpenAI client initialised (model=%s)", OPENAI_MODEL)
    return AsyncOpenAI(**kwargs)


def get_assistant_model() -> AssistantModel:
    """
    Dependency providing the configured assistant model.

    Raises:
        AssistantNotConfigured: if OPENAI_API_KEY is not set
    """
    from smartfarm.core.database import engine
    return OpenAIAssistantModel(get_openai_client(), model=OPENAI_MODEL, dialect=engine.dialect.name, schema=_schema_description())


@lru_cache(maxsize=1)
def _schema_description() -> str:
    return describe_schema()
