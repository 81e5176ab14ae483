# smartfarm/services/assistant.py
"""
"Chat with your data" assistant pipeline.

A question goes through three strictly sequential stages:

1. Classify: the language model picks a route (0 off-topic, 1 text answer,
   2 chart) and, for routes 1 and 2, writes one SELECT statement.
2. Execute: the statement passes the read-only filter and runs once.
3. Respond: the model summarises the rows (route 1) or describes a chart
   (route 2), which is rendered here into a bounded HTML snippet.

Any failure short-circuits to a short apology. Nothing is retried and no
exception leaves the pipeline except AssistantNotConfigured.
"""
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from smartfarm.core.config import CHAT_HISTORY_TURNS
from smartfarm.core.errors import (
    AssistantNotConfigured,
    ClassificationParseError,
    QueryExecutionError,
    UnsafeQueryError,
)
from smartfarm.services.sql_guard import ensure_read_only

logger = logging.getLogger(__name__)

ROUTE_OFF_TOPIC = 0
ROUTE_TEXT = 1
ROUTE_CHART = 2

MAX_CHART_HEIGHT = 400  # px
CHART_TYPES = ("bar", "line", "pie", "doughnut", "polarArea", "radar")
CHART_COLORS = ("#10b981", "#3b82f6", "#f59e0b", "#f43f5e", "#8b5cf6")

OFF_TOPIC_MESSAGE = (
    "I'm sorry, but I can only help with questions related to your Smart Farm - plants, fields, "
    "irrigation, and farm management. Please ask me something about your farm!"
)
CLASSIFICATION_FAILED_MESSAGE = (
    "I'm sorry, I didn't quite understand that. Could you ask about your plants, fields, "
    "irrigation schedule, or farm statistics?"
)
FALLBACK_MESSAGE = (
    "I'm not sure how to help with that. Please try asking about your plants, fields, "
    "irrigation schedule, or farm statistics."
)
NO_QUERY_MESSAGE = "I couldn't formulate a proper query for your request. Could you please rephrase your question?"
UNSAFE_QUERY_MESSAGE = "I'm sorry, I can only read your farm data, so I couldn't run that request."
EXECUTION_FAILED_MESSAGE = (
    "I'm sorry, I encountered an issue retrieving that information. Please try rephrasing your question."
)
NO_DATA_MESSAGE = "I couldn't find any data matching your question."
NO_CHART_DATA_MESSAGE = "I couldn't find any data to chart for that question."
RESPONSE_FAILED_MESSAGE = "I'm sorry, I found the data but couldn't put together a response. Please try again."
GENERIC_ERROR_MESSAGE = "I'm sorry, something went wrong while processing your request. Please try again."


class RouteDecision(BaseModel):
    """Parsed classifier output."""
    route: int
    data: str = ""
    type: str = "text"
    reasoning: str = ""
    language: str = "en"

    @field_validator("data", "type", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value):
        return value or "en"


def parse_route_decision(content: str) -> RouteDecision:
    """
    Parse the classifier's JSON reply.

    Raises:
        ClassificationParseError: if the reply is not a JSON object of the expected shape
    """
    try:
        payload = json.loads(content or "")
    except (TypeError, ValueError) as e:
        raise ClassificationParseError(f"Classifier returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ClassificationParseError("Classifier returned JSON that is not an object")
    try:
        return RouteDecision.model_validate(payload)
    except PydanticValidationError as e:
        raise ClassificationParseError(f"Classifier returned an unexpected shape: {e}") from e


class ChartDataset(BaseModel):
    label: str
    data: List[Optional[float]]

    @field_validator("label", mode="before")
    @classmethod
    def _label_to_str(cls, value):
        return "" if value is None else str(value)


class ChartSpec(BaseModel):
    """Chart description returned by the model for route 2."""
    title: str
    chart_type: str = "bar"
    labels: List[str]
    datasets: List[ChartDataset]

    @field_validator("title", mode="before")
    @classmethod
    def _title_to_str(cls, value):
        return "Chart" if not value else str(value)

    @field_validator("chart_type", mode="before")
    @classmethod
    def _known_chart_type(cls, value):
        return value if value in CHART_TYPES else "bar"

    @field_validator("labels", mode="before")
    @classmethod
    def _labels_to_str(cls, value):
        return [str(label) for label in value] if isinstance(value, list) else value

    def chart_config(self) -> Dict[str, Any]:
        """Chart.js configuration with labels, legend and title always declared."""
        single_series_colors = list(CHART_COLORS) if self.chart_type in ("pie", "doughnut", "polarArea") else None
        datasets = []
        for index, dataset in enumerate(self.datasets):
            color = CHART_COLORS[index % len(CHART_COLORS)]
            datasets.append({
                "label": dataset.label,
                "data": dataset.data,
                "backgroundColor": single_series_colors or color,
                "borderColor": color,
                "borderWidth": 2,
            })
        return {
            "type": self.chart_type,
            "data": {"labels": self.labels, "datasets": datasets},
            "options": {
                "responsive": True,
                "maintainAspectRatio": False,
                "plugins": {
                    "legend": {"display": True, "position": "top", "labels": {"color": "#1f2937"}},
                    "title": {"display": True, "text": self.title, "color": "#111827"},
                },
            },
        }


def render_chart_html(spec: ChartSpec) -> str:
    """Self-contained HTML snippet for a Chart.js chart, capped at MAX_CHART_HEIGHT pixels."""
    canvas_id = f"chart-{uuid.uuid4().hex[:12]}"
    config = json.dumps(spec.chart_config()).replace("</", "<\\/")
    return (
        f'<div class="assistant-chart" style="position: relative; width: 100%; '
        f'height: {MAX_CHART_HEIGHT}px; max-height: {MAX_CHART_HEIGHT}px;">'
        f'<canvas id="{canvas_id}"></canvas></div>'
        f"<script>(function () {{"
        f'var ctx = document.getElementById("{canvas_id}");'
        f"if (ctx && window.Chart) {{ new Chart(ctx, {config}); }}"
        f"}})();</script>"
    )


class AssistantModel(ABC):
    """
    The language-model capabilities the pipeline needs.

    Implementations may be slow or fail; the pipeline handles both.
    """

    @abstractmethod
    async def classify(self, question: str, history: List[Dict[str, str]], user_id: int) -> RouteDecision:
        """Route the question and, for routes 1 and 2, generate a SELECT statement."""

    @abstractmethod
    async def summarize(self, question: str, sql: str, rows: List[Dict[str, Any]], language: str) -> str:
        """Describe the rows as a natural-language answer in the given language."""

    @abstractmethod
    async def visualize(self, question: str, sql: str, rows: List[Dict[str, Any]]) -> ChartSpec:
        """Describe a chart of the rows."""


@dataclass
class AssistantTurn:
    """One processed question. Not persisted."""
    question: str
    route: int
    language: str = "en"
    generated_sql: Optional[str] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)
    text: Optional[str] = None
    chart: Optional[ChartSpec] = None
    html: Optional[str] = None

    @property
    def is_chart(self) -> bool:
        return self.chart is not None

    def to_response(self) -> Dict[str, Any]:
        if self.is_chart:
            reply = {
                "type": "chart",
                "html": self.html,
                "title": self.chart.title,
                "chart": self.chart.chart_config(),
            }
        else:
            reply = {"type": "text", "content": self.text}
        reply["language"] = self.language
        if self.generated_sql is not None:
            reply["sql_query"] = self.generated_sql
            reply["raw_data"] = self.rows
        return {"success": True, "route": self.route, "response": reply}


SqlExecutor = Callable[[str], Awaitable[List[Dict[str, Any]]]]


class AssistantPipeline:
    """
    Classify -> Execute -> Respond for a single user turn.

    Args:
        model: Language-model capabilities
        execute_sql: Coroutine running one read-only statement for the current user
        history_turns: How many trailing history messages are passed to the classifier
    """

    def __init__(self, model: AssistantModel, execute_sql: SqlExecutor, history_turns: int = CHAT_HISTORY_TURNS):
        self.model = model
        self.execute_sql = execute_sql
        self.history_turns = history_turns

    async def run(self, question: str, user_id: int, history: Optional[List[Dict[str, str]]] = None) -> AssistantTurn:
        """Answer one question. Always returns a turn, never raises for per-request failures."""
        history = list(history or [])[-self.history_turns:] if self.history_turns > 0 else []
        try:
            return await self._run(question, user_id, history)
        except AssistantNotConfigured:
            raise
        except Exception:
            logger.exception("Assistant pipeline failed for user %s", user_id)
            return AssistantTurn(question=question, route=ROUTE_OFF_TOPIC, text=GENERIC_ERROR_MESSAGE)

    async def _run(self, question: str, user_id: int, history: List[Dict[str, str]]) -> AssistantTurn:
        # Classify
        try:
            decision = await self.model.classify(question, history, user_id)
        except ClassificationParseError as e:
            logger.warning("Could not parse route classification: %s", e)
            return AssistantTurn(question=question, route=ROUTE_OFF_TOPIC, text=CLASSIFICATION_FAILED_MESSAGE)

        logger.info(
            "Route classification: route=%s type=%s language=%s reasoning=%s",
            decision.route, decision.type, decision.language, decision.reasoning,
        )
        language = decision.language

        if decision.route == ROUTE_OFF_TOPIC:
            return AssistantTurn(
                question=question, route=ROUTE_OFF_TOPIC, language=language,
                text=decision.data or OFF_TOPIC_MESSAGE,
            )
        if decision.route not in (ROUTE_TEXT, ROUTE_CHART):
            return AssistantTurn(question=question, route=ROUTE_OFF_TOPIC, language=language, text=FALLBACK_MESSAGE)
        if not decision.data or decision.type != "sql":
            return AssistantTurn(question=question, route=decision.route, language=language, text=NO_QUERY_MESSAGE)

        # Execute
        sql = decision.data
        try:
            statement = ensure_read_only(sql)
            rows = await self.execute_sql(statement)
        except UnsafeQueryError as e:
            logger.warning("Rejected generated SQL (%s): %s", e.keyword, sql)
            return AssistantTurn(
                question=question, route=decision.route, language=language,
                generated_sql=sql, text=UNSAFE_QUERY_MESSAGE,
            )
        except QueryExecutionError as e:
            logger.warning("SQL execution error: %s", e.message)
            return AssistantTurn(
                question=question, route=decision.route, language=language,
                generated_sql=sql, text=EXECUTION_FAILED_MESSAGE,
            )

        # Respond
        turn = AssistantTurn(question=question, route=decision.route, language=language, generated_sql=sql, rows=rows)
        try:
            if decision.route == ROUTE_TEXT:
                turn.text = await self.model.summarize(question, sql, rows, language) or (
                    NO_DATA_MESSAGE if not rows else RESPONSE_FAILED_MESSAGE
                )
            elif not rows:
                turn.text = NO_CHART_DATA_MESSAGE
            else:
                turn.chart = await self.model.visualize(question, sql, rows)
                turn.html = render_chart_html(turn.chart)
        except AssistantNotConfigured:
            raise
        except Exception:
            logger.exception("Failed to format assistant response for route %s", decision.route)
            turn.chart = None
            turn.html = None
            turn.text = RESPONSE_FAILED_MESSAGE
        return turn


CHAT_SUGGESTIONS = [
    "How many plants do I have in total?",
    "Show me plants that need watering",
    "What's the health status of my crops?",
    "Show me a chart of plants by field",
    "Which plants are at risk or critical?",
    "How many irrigation events happened this week?",
    "Show me the distribution of plant types",
    "What notes have been added recently?",
    "Compare plant quantities across fields",
    "Show irrigation history trends",
]
