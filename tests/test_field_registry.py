"""
Unit tests for the standard field registry.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from financial_ingest.errors import UnknownFieldError
from financial_ingest.field_registry import (
    FieldRegistry,
    default_registry,
    list_fields_by_category,
)
from financial_ingest.normalizer import normalize_column_name
from financial_ingest.schema import ColumnType, FieldCategory, FieldDefinition


@pytest.fixture
def registry() -> FieldRegistry:
    return default_registry()


# ======================================================================
# Built-in catalogue
# ======================================================================

class TestBuiltIn:
    def test_field_count(self, registry: FieldRegistry) -> None:
        assert len(registry) == 29

    def test_shared_instance(self) -> None:
        assert default_registry() is default_registry()

    def test_definition_order(self, registry: FieldRegistry) -> None:
        ids = registry.ids()
        assert ids[:3] == ["revenue", "cogs", "gross_profit"]
        assert ids[-1] == "product"

    def test_aliases_are_normalised(self, registry: FieldRegistry) -> None:
        for f in registry:
            for alias in f.aliases:
                assert normalize_column_name(alias) == alias, (f.id, alias)

    def test_value_kinds(self, registry: FieldRegistry) -> None:
        assert registry.require("revenue").value_kind == ColumnType.NUMERIC
        assert registry.require("date").value_kind == ColumnType.DATE
        assert registry.require("region").value_kind == ColumnType.TEXT


# ======================================================================
# Lookup
# ======================================================================

class TestLookup:
    def test_label_for(self, registry: FieldRegistry) -> None:
        assert registry.label_for("revenue") == "Revenue / Sales"
        assert registry.label_for("net_income") == "Net Income / Net Profit"

    def test_label_for_unknown_falls_back(self, registry: FieldRegistry) -> None:
        assert registry.label_for("headcount") == "headcount"

    def test_get_unknown(self, registry: FieldRegistry) -> None:
        assert registry.get("headcount") is None

    def test_require_unknown(self, registry: FieldRegistry) -> None:
        with pytest.raises(UnknownFieldError) as info:
            registry.require("headcount")
        assert isinstance(info.value, ValueError)
        assert info.value.field_id == "headcount"

    def test_contains(self, registry: FieldRegistry) -> None:
        assert "cogs" in registry
        assert "headcount" not in registry


# ======================================================================
# Picker views
# ======================================================================

class TestPickerViews:
    def test_grouped_by_category(self) -> None:
        grouped = list_fields_by_category()

        assert list(grouped) == [
            "Income Statement", "Balance Sheet", "Cash Flow", "Dimensions & Filters",
        ]
        assert [len(v) for v in grouped.values()] == [8, 11, 3, 7]
        assert grouped["Income Statement"][0] == {
            "id": "revenue",
            "label": "Revenue / Sales",
            "category": "Income Statement",
        }

    def test_fields_array(self, registry: FieldRegistry) -> None:
        entries = registry.fields_array()
        assert len(entries) == 29
        assert all(e["value"] == e["id"] for e in entries)
        assert entries[0]["dataType"] == "numeric"
        assert "sales_usd" in entries[0]["aliases"]


# ======================================================================
# Extension
# ======================================================================

class TestExtension:
    def test_with_aliases_returns_new_registry(self, registry: FieldRegistry) -> None:
        extended = registry.with_aliases({"revenue": ["Umsatz", "sales"]})

        assert extended is not registry
        assert "umsatz" in extended.require("revenue").aliases
        assert "umsatz" not in registry.require("revenue").aliases
        # already-known alias not duplicated
        assert extended.require("revenue").aliases.count("sales") == 1
        assert extended.alias_count == registry.alias_count + 1

    def test_with_aliases_unknown_field(self, registry: FieldRegistry) -> None:
        with pytest.raises(UnknownFieldError):
            registry.with_aliases({"headcount": ["fte"]})

    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.json"
        path.write_text(json.dumps({"cogs": ["Wareneinsatz"]}), encoding="utf-8")

        loaded = FieldRegistry.from_json(path)
        assert "wareneinsatz" in loaded.require("cogs").aliases

    def test_from_json_requires_object(self, tmp_path: Path) -> None:
        path = tmp_path / "aliases.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            FieldRegistry.from_json(path)

    def test_duplicate_ids_rejected(self) -> None:
        f = FieldDefinition(
            id="x", label="X", category=FieldCategory.DIMENSIONS,
            value_kind=ColumnType.TEXT, aliases=("x",),
        )
        with pytest.raises(ValueError, match="Duplicate"):
            FieldRegistry([f, f])
