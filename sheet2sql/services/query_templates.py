"""
Canned SQL suggestions for the chat endpoint.

A message is matched case-insensitively against each template's trigger
words; the first template with any trigger contained in the message wins,
otherwise the fallback template (table structure) is used. No model call is
involved.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from sheet2sql.exceptions.assistant_exceptions import InvalidArgumentError
from sheet2sql.models.api_models import ChatPrompts, ChatReply


class QueryTemplate(BaseModel):
    """A canned query and the words that select it."""

    triggers: list[str] = Field(default_factory=list, description="Lowercase trigger words")
    query: str = Field(description="SQL text")
    description: str = Field(description="What the query does")


DEFAULT_TEMPLATES: list[QueryTemplate] = [
    QueryTemplate(
        triggers=["select", "all", "data", "records"],
        query="SELECT * FROM user_data ORDER BY created_date DESC;",
        description="This query retrieves all records from your dataset, ordered by creation date.",
    ),
    QueryTemplate(
        triggers=["count", "total", "number"],
        query='SELECT COUNT(*) as total_records FROM user_data WHERE status = "active";',
        description="This query counts all active records in your dataset.",
    ),
    QueryTemplate(
        triggers=["average", "avg", "mean"],
        query="SELECT AVG(amount) as average_amount FROM user_data WHERE amount > 0;",
        description="This calculates the average amount from non-zero values.",
    ),
    QueryTemplate(
        triggers=["group", "category", "breakdown"],
        query=(
            "SELECT category, COUNT(*) as count, SUM(amount) as total "
            "FROM user_data GROUP BY category ORDER BY total DESC;"
        ),
        description="This groups your data by category with counts and totals.",
    ),
    QueryTemplate(
        triggers=["duplicate", "duplicate records"],
        query="SELECT email, COUNT(*) as duplicates FROM user_data GROUP BY email HAVING COUNT(*) > 1;",
        description="This finds duplicate records based on email address.",
    ),
]

FALLBACK_TEMPLATE = QueryTemplate(
    query='SELECT column_name, data_type FROM information_schema.columns WHERE table_name = "user_data";',
    description="This query shows the structure of your data table.",
)

SUGGESTED_PROMPTS = [
    "Show me all the data",
    "Count total records",
    "Find duplicates",
    "Group by category",
    "Calculate averages",
]

GREETING = (
    "Hi! I'm ready to help you analyze your Excel data and generate SQL queries. "
    "Try asking me about your data or request specific test scenarios!"
)


def match_template(
    message: str,
    templates: list[QueryTemplate] | None = None,
) -> QueryTemplate:
    """Return the first template triggered by ``message``, or the fallback."""
    lowered = message.lower()
    for template in DEFAULT_TEMPLATES if templates is None else templates:
        if any(trigger in lowered for trigger in template.triggers):
            return template
    return FALLBACK_TEMPLATE


def chat_prompts() -> ChatPrompts:
    """Greeting and starter prompts for a new chat session."""
    return ChatPrompts(greeting=GREETING, suggested_prompts=list(SUGGESTED_PROMPTS))


def suggest_query(message: str, templates: list[QueryTemplate] | None = None) -> ChatReply:
    """
    Answer a chat message with a canned SQL suggestion.

    Raises:
        InvalidArgumentError: If the message is empty or whitespace.
    """
    if not message or not message.strip():
        raise InvalidArgumentError(argument="message", value=message, reason="Message must not be blank")

    template = match_template(message, templates)
    return ChatReply(
        content=f"Based on your request, I've generated a SQL query for you. {template.description}",
        sql_query=template.query,
        description=template.description,
        timestamp=datetime.now(timezone.utc),
    )


def render_query_file(query: str, description: str, generated_at: datetime | None = None) -> str:
    """Render a query as the contents of a downloadable ``.sql`` file."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return f"-- {description}\n-- Generated on {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}\n\n{query}"
