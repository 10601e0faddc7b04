"""
Pydantic models for the knowledge base extracted from a workbook.

The text-generation API is prompted to answer in camelCase JSON, so every
model here accepts camelCase keys (and snake_case field names) and
serializes with camelCase aliases.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class QueryCategory(str, Enum):
    """Kinds of SQL statements the model is asked to produce."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VALIDATION = "VALIDATION"


class ColumnDefinition(BaseModel):
    """A column of a specified table."""

    name: str = Field(description="Column name")
    data_type: str = Field(default="", description="SQL data type")
    is_nullable: bool = Field(default=False, description="Whether NULL is allowed")
    is_primary_key: bool = Field(default=False, description="Whether the column is part of the primary key")
    description: str | None = Field(default=None, description="Free-text description")
    constraints: list[str] | None = Field(default=None, description="Column-level constraints")

    model_config = CAMEL_CONFIG


class Constraint(BaseModel):
    """A table constraint (PRIMARY_KEY, FOREIGN_KEY, UNIQUE or CHECK)."""

    name: str = Field(default="", description="Constraint name")
    type: str = Field(default="CHECK", description="PRIMARY_KEY, FOREIGN_KEY, UNIQUE or CHECK")
    columns: list[str] = Field(default_factory=list, description="Columns covered by the constraint")
    reference: str | None = Field(default=None, description="Referenced table/column for foreign keys")

    model_config = CAMEL_CONFIG


class Relationship(BaseModel):
    """A relationship between two tables."""

    from_table: str = Field(description="Referencing table")
    to_table: str = Field(description="Referenced table")
    from_column: str = Field(default="", description="Referencing column")
    to_column: str = Field(default="", description="Referenced column")
    type: str = Field(default="ONE_TO_MANY", description="ONE_TO_ONE, ONE_TO_MANY or MANY_TO_MANY")

    model_config = CAMEL_CONFIG


class TableSpecification(BaseModel):
    """
    A table described by the workbook.

    Attributes:
        table_name: Name of the table.
        columns: Column definitions in declaration order.
        constraints: Table-level constraints.
        relationships: Relationships to other tables.
    """

    table_name: str = Field(description="Table name")
    columns: list[ColumnDefinition] = Field(default_factory=list, description="Column definitions")
    constraints: list[Constraint] = Field(default_factory=list, description="Table constraints")
    relationships: list[Relationship] = Field(default_factory=list, description="Relationships to other tables")

    model_config = CAMEL_CONFIG


class DataTransformation(BaseModel):
    """A named transformation with its SQL logic."""

    name: str = Field(default="", description="Transformation name")
    description: str = Field(default="", description="What the transformation does")
    sql_logic: str = Field(default="", description="SQL implementing the transformation")
    conditions: list[str] = Field(default_factory=list, description="Conditions under which it applies")

    model_config = CAMEL_CONFIG


class FunctionalRequirement(BaseModel):
    """A functional requirement and the business logic behind it."""

    id: str = Field(default="", description="Requirement identifier")
    description: str = Field(default="", description="Requirement text")
    business_logic: str = Field(default="", description="Business logic implementing it")
    transformations: list[DataTransformation] = Field(default_factory=list, description="Data transformations")

    model_config = CAMEL_CONFIG


class BusinessRule(BaseModel):
    """A business rule and its SQL condition."""

    id: str = Field(default="", description="Rule identifier")
    rule: str = Field(default="", description="Rule text")
    sql_condition: str = Field(default="", description="SQL condition enforcing the rule")
    validation_type: str = Field(default="CHECK", description="CHECK, TRIGGER or PROCEDURE")

    model_config = CAMEL_CONFIG


class SQLQuery(BaseModel):
    """
    A generated SQL query.

    Attributes:
        id: Query identifier. Filled in by the knowledge service when the
            model omits it.
        query: The SQL text.
        description: What the query does.
        category: Statement kind; unknown or missing values become SELECT.
        test_scenario: Identifier of the owning test scenario, if any.
        timestamp: When the query was generated.
    """

    id: str = Field(default="", description="Query identifier")
    query: str = Field(description="SQL text")
    description: str = Field(default="", description="What the query does")
    category: QueryCategory = Field(default=QueryCategory.SELECT, description="Statement kind")
    test_scenario: str | None = Field(default=None, description="Owning test scenario id")
    timestamp: datetime | None = Field(default=None, description="Generation time")

    model_config = CAMEL_CONFIG

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        """Map missing or unrecognized categories to SELECT."""
        if isinstance(v, QueryCategory):
            return v
        if isinstance(v, str):
            candidate = v.strip().upper()
            if candidate in QueryCategory.__members__:
                return candidate
        return QueryCategory.SELECT


class TestScenario(BaseModel):
    """A test scenario with the queries that exercise it."""

    __test__ = False

    id: str = Field(default="", description="Scenario identifier")
    name: str = Field(default="", description="Scenario name")
    description: str = Field(default="", description="What the scenario validates")
    test_queries: list[SQLQuery] = Field(default_factory=list, description="Queries that exercise the scenario")
    expected_results: str = Field(default="", description="Expected outcome")

    model_config = CAMEL_CONFIG

    @field_validator("test_queries", mode="before")
    @classmethod
    def wrap_bare_queries(cls, v: Any) -> Any:
        """Accept plain SQL strings in place of query objects."""
        if not isinstance(v, list):
            return v
        return [{"query": item} if isinstance(item, str) else item for item in v]

    @field_validator("expected_results", mode="before")
    @classmethod
    def stringify_expected_results(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (list, dict)):
            return str(v)
        return v


class ParsedKnowledge(BaseModel):
    """
    The knowledge base extracted from a workbook.

    Attributes:
        table_specifications: Tables, columns, constraints and relationships.
        functional_requirements: Requirements and their transformations.
        business_rules: Rules with SQL conditions.
        test_scenarios: Test scenarios with their queries.
    """

    table_specifications: list[TableSpecification] = Field(
        default_factory=list,
        description="Table specifications",
    )
    functional_requirements: list[FunctionalRequirement] = Field(
        default_factory=list,
        description="Functional requirements",
    )
    business_rules: list[BusinessRule] = Field(
        default_factory=list,
        description="Business rules",
    )
    test_scenarios: list[TestScenario] = Field(
        default_factory=list,
        description="Test scenarios",
    )

    model_config = CAMEL_CONFIG
