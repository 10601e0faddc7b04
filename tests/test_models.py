"""
Tests for the sheet and knowledge models.
"""

import pytest
from pydantic import ValidationError

from sheet2sql.exceptions.assistant_exceptions import InvalidFormatError
from sheet2sql.models.api_models import ChatRequest
from sheet2sql.models.knowledge_models import (
    ParsedKnowledge,
    QueryCategory,
    SQLQuery,
    TestScenario,
)
from sheet2sql.models.sheet_models import CellAddress, Sheet, Workbook


class TestSheet:
    """Tests for the Sheet model."""

    def test_keys_are_canonicalized(self) -> None:
        sheet = Sheet(name="S", cells={"a1": "x", "$B$2": 2, " c3 ": 3})

        assert sheet.cells == {"A1": "x", "B2": 2, "C3": 3}

    def test_none_values_are_dropped(self) -> None:
        sheet = Sheet(name="S", cells={"A1": None, "B1": "kept"})

        assert sheet.cells == {"B1": "kept"}

    def test_invalid_key_raises(self) -> None:
        with pytest.raises(InvalidFormatError):
            Sheet(name="S", cells={"not a cell": 1})

    def test_cell_types_are_preserved(self) -> None:
        sheet = Sheet(name="S", cells={"A1": True, "B1": 1, "C1": 1.5, "D1": "1"})

        assert sheet.cells["A1"] is True
        assert isinstance(sheet.cells["B1"], int)
        assert sheet.cells["C1"] == 1.5
        assert sheet.cells["D1"] == "1"

    def test_address_rejects_zero(self) -> None:
        with pytest.raises(ValidationError):
            CellAddress(column=0, row=1)


class TestWorkbook:
    """Tests for the Workbook model."""

    def test_sheet_lookup(self) -> None:
        workbook = Workbook(file_name="b.xlsx", sheets=[Sheet(name="One"), Sheet(name="Two")])

        assert workbook.sheet_names == ["One", "Two"]
        assert workbook.get_sheet("Two").name == "Two"
        assert workbook.get_sheet("Three") is None


class TestSQLQuery:
    """Tests for SQLQuery."""

    @pytest.mark.parametrize(
        ("category", "expected"),
        [
            ("INSERT", QueryCategory.INSERT),
            ("validation", QueryCategory.VALIDATION),
            (" delete ", QueryCategory.DELETE),
            ("MERGE", QueryCategory.SELECT),
            (None, QueryCategory.SELECT),
            (3, QueryCategory.SELECT),
        ],
    )
    def test_category_coercion(self, category: object, expected: QueryCategory) -> None:
        query = SQLQuery.model_validate({"query": "SELECT 1", "category": category})

        assert query.category == expected

    def test_missing_category_defaults_to_select(self) -> None:
        assert SQLQuery(query="SELECT 1").category == QueryCategory.SELECT

    def test_query_is_required(self) -> None:
        with pytest.raises(ValidationError):
            SQLQuery.model_validate({"description": "no sql"})

    def test_camel_case_round_trip(self) -> None:
        query = SQLQuery.model_validate({"query": "SELECT 1", "testScenario": "TS1"})

        assert query.test_scenario == "TS1"
        assert query.model_dump(by_alias=True)["testScenario"] == "TS1"


class TestTestScenario:
    """Tests for TestScenario."""

    def test_plain_string_queries_are_wrapped(self) -> None:
        scenario = TestScenario.model_validate(
            {
                "id": "TS1",
                "testQueries": ["SELECT 1", {"query": "SELECT 2", "category": "VALIDATION"}],
            }
        )

        assert [q.query for q in scenario.test_queries] == ["SELECT 1", "SELECT 2"]
        assert scenario.test_queries[1].category == QueryCategory.VALIDATION

    def test_expected_results_are_stringified(self) -> None:
        scenario = TestScenario.model_validate({"expectedResults": ["one row"]})

        assert scenario.expected_results == "['one row']"

    def test_null_expected_results(self) -> None:
        assert TestScenario.model_validate({"expectedResults": None}).expected_results == ""


class TestParsedKnowledge:
    """Tests for ParsedKnowledge."""

    def test_accepts_camel_case(self, sample_knowledge: ParsedKnowledge) -> None:
        table = sample_knowledge.table_specifications[0]

        assert table.table_name == "customers"
        assert table.columns[0].is_primary_key is True
        assert table.columns[1].is_nullable is True
        assert sample_knowledge.business_rules[0].sql_condition.startswith("status")

    def test_empty_payload_is_valid(self) -> None:
        knowledge = ParsedKnowledge.model_validate({})

        assert knowledge.table_specifications == []
        assert knowledge.test_scenarios == []

    def test_dumps_with_aliases(self, sample_knowledge: ParsedKnowledge) -> None:
        dumped = sample_knowledge.model_dump(by_alias=True)

        assert set(dumped) == {
            "tableSpecifications",
            "functionalRequirements",
            "businessRules",
            "testScenarios",
        }


class TestChatRequest:
    """Tests for ChatRequest."""

    @pytest.mark.parametrize("message", ["", "   "])
    def test_blank_message_is_rejected(self, message: str) -> None:
        with pytest.raises(ValidationError):
            ChatRequest(message=message)
