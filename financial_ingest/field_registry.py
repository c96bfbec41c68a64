"""
Standard Field Registry (alias catalogue).

The fixed vocabulary of standard financial fields that downstream KPI
templates refer to, each with the raw column names commonly seen for it.

Design decisions
----------------
* Aliases are stored **normalised** (lowercase, ``_``-separated) so that a
  single ``normalize_column_name`` pass on the input is enough for lookup.
* Definition order matters: the auto-mapper resolves substring ties by the
  order fields (and their aliases) appear here.
* A registry is immutable.  ``with_aliases`` and ``from_json`` build a *new*
  registry instead of editing one in place; the built-in catalogue is
  created once per process by ``default_registry``.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from financial_ingest.errors import UnknownFieldError
from financial_ingest.logging_setup import get_logger
from financial_ingest.normalizer import normalize_column_name
from financial_ingest.schema import ColumnType, FieldCategory, FieldDefinition

logger = get_logger("field_registry")

_IS = FieldCategory.INCOME_STATEMENT
_BS = FieldCategory.BALANCE_SHEET
_CF = FieldCategory.CASH_FLOW
_DIM = FieldCategory.DIMENSIONS

_NUM = ColumnType.NUMERIC
_TXT = ColumnType.TEXT
_DATE = ColumnType.DATE


# ---------------------------------------------------------------------------
# Built-in catalogue
# ---------------------------------------------------------------------------
# Convention: aliases are already normalised; ids are the keys used in
# persisted mappings and KPI templates.

_BUILTIN_FIELDS: tuple[FieldDefinition, ...] = (
    # --- Income statement ---
    FieldDefinition(
        "revenue", "Revenue / Sales", _IS, _NUM,
        ("revenue", "sales", "total_revenue", "total_sales", "net_sales",
         "gross_revenue", "income", "turnover", "sales_revenue",
         "revenue_usd", "sales_usd", "sales_amount", "revenue_amount"),
        "Total revenue or sales income",
    ),
    FieldDefinition(
        "cogs", "Cost of Goods Sold (COGS)", _IS, _NUM,
        ("cogs", "cost_of_goods_sold", "cost_of_sales", "cos",
         "direct_costs", "cost_of_revenue", "production_cost",
         "cost_of_goods", "materials_cost"),
        "Direct costs of producing goods/services sold",
    ),
    FieldDefinition(
        "gross_profit", "Gross Profit", _IS, _NUM,
        ("gross_profit", "gross_income", "gross_margin_amount",
         "gross_earnings", "trading_profit"),
        "Revenue minus cost of goods sold",
    ),
    FieldDefinition(
        "operating_expenses", "Operating Expenses", _IS, _NUM,
        ("operating_expenses", "opex", "operating_costs", "overhead",
         "sga", "sg_and_a", "admin_expenses", "selling_expenses",
         "general_administrative", "operating_expense"),
        "Expenses from normal business operations (SG&A, R&D, etc.)",
    ),
    FieldDefinition(
        "operating_income", "Operating Income / EBIT", _IS, _NUM,
        ("operating_income", "operating_profit", "ebit",
         "earnings_before_interest_tax", "operating_earnings",
         "income_from_operations", "ebitda"),
        "Earnings before interest and taxes",
    ),
    FieldDefinition(
        "interest_expense", "Interest Expense", _IS, _NUM,
        ("interest_expense", "interest_cost", "finance_cost",
         "interest_paid", "borrowing_cost", "debt_interest"),
        "Cost of borrowed funds",
    ),
    FieldDefinition(
        "tax_expense", "Tax Expense", _IS, _NUM,
        ("tax_expense", "income_tax", "taxes", "tax_provision",
         "tax_paid", "corporate_tax", "tax_amount"),
        "Income tax expense",
    ),
    FieldDefinition(
        "net_income", "Net Income / Net Profit", _IS, _NUM,
        ("net_income", "net_profit", "net_earnings", "profit",
         "bottom_line", "earnings", "profit_after_tax", "pat",
         "net_profit_loss", "income_net", "total_profit"),
        "Bottom line profit after all expenses",
    ),

    # --- Balance sheet: assets ---
    FieldDefinition(
        "total_assets", "Total Assets", _BS, _NUM,
        ("total_assets", "assets", "total_asset", "asset_total",
         "assets_total", "sum_assets"),
        "Sum of all assets owned",
    ),
    FieldDefinition(
        "current_assets", "Current Assets", _BS, _NUM,
        ("current_assets", "short_term_assets", "liquid_assets",
         "working_capital_assets", "ca"),
        "Assets expected to be converted to cash within a year",
    ),
    FieldDefinition(
        "cash", "Cash & Cash Equivalents", _BS, _NUM,
        ("cash", "cash_equivalents", "cash_and_equivalents",
         "cash_balance", "liquid_cash", "bank_balance", "cce"),
        "Cash and short-term liquid investments",
    ),
    FieldDefinition(
        "accounts_receivable", "Accounts Receivable", _BS, _NUM,
        ("accounts_receivable", "receivables", "ar", "trade_receivables",
         "debtors", "customer_receivables", "receivable"),
        "Money owed by customers",
    ),
    FieldDefinition(
        "inventory", "Inventory", _BS, _NUM,
        ("inventory", "inventories", "stock", "goods_inventory",
         "merchandise", "finished_goods", "raw_materials"),
        "Value of goods held for sale",
    ),
    FieldDefinition(
        "fixed_assets", "Fixed Assets / PPE", _BS, _NUM,
        ("fixed_assets", "ppe", "property_plant_equipment",
         "tangible_assets", "non_current_assets", "long_term_assets",
         "capital_assets", "plant_equipment"),
        "Property, plant, and equipment",
    ),

    # --- Balance sheet: liabilities & equity ---
    FieldDefinition(
        "total_liabilities", "Total Liabilities", _BS, _NUM,
        ("total_liabilities", "liabilities", "total_liability",
         "liabilities_total", "sum_liabilities", "total_debt_liabilities"),
        "Sum of all amounts owed",
    ),
    FieldDefinition(
        "current_liabilities", "Current Liabilities", _BS, _NUM,
        ("current_liabilities", "short_term_liabilities", "cl",
         "current_debts", "short_term_debt"),
        "Obligations due within a year",
    ),
    FieldDefinition(
        "accounts_payable", "Accounts Payable", _BS, _NUM,
        ("accounts_payable", "payables", "ap", "trade_payables",
         "creditors", "supplier_payables", "payable"),
        "Money owed to suppliers",
    ),
    FieldDefinition(
        "total_debt", "Total Debt", _BS, _NUM,
        ("total_debt", "debt", "borrowings", "loans",
         "debt_total", "total_borrowings", "bank_debt",
         "long_term_debt", "short_term_debt"),
        "All interest-bearing debt (short + long term)",
    ),
    FieldDefinition(
        "equity", "Shareholders Equity", _BS, _NUM,
        ("equity", "shareholders_equity", "stockholders_equity",
         "total_equity", "net_worth", "book_value", "owners_equity",
         "share_capital", "net_assets"),
        "Total equity owned by shareholders",
    ),

    # --- Cash flow ---
    FieldDefinition(
        "operating_cash_flow", "Operating Cash Flow", _CF, _NUM,
        ("operating_cash_flow", "ocf", "cash_from_operations",
         "cfo", "operating_cf", "cash_flow_operations"),
        "Cash generated from core business operations",
    ),
    FieldDefinition(
        "capital_expenditure", "Capital Expenditure (CapEx)", _CF, _NUM,
        ("capex", "capital_expenditure", "capital_spending",
         "fixed_asset_purchases", "ppe_purchases", "investments_ppe"),
        "Spending on fixed assets",
    ),
    FieldDefinition(
        "free_cash_flow", "Free Cash Flow", _CF, _NUM,
        ("free_cash_flow", "fcf", "cash_flow_free",
         "available_cash_flow", "discretionary_cash_flow"),
        "Operating cash flow minus capital expenditures",
    ),

    # --- Dimensions (filters / grouping) ---
    FieldDefinition(
        "date", "Date", _DIM, _DATE,
        ("date", "transaction_date", "period_date", "report_date",
         "posting_date", "accounting_date", "entry_date", "created_at",
         "period", "as_of_date"),
        "Transaction or period date",
    ),
    FieldDefinition(
        "quarter", "Quarter", _DIM, _TXT,
        ("quarter", "fiscal_quarter", "qtr", "q", "period_quarter"),
        "Fiscal quarter (Q1, Q2, Q3, Q4)",
    ),
    FieldDefinition(
        "year", "Year", _DIM, _TXT,
        ("year", "fiscal_year", "fy", "calendar_year", "period_year", "yr"),
        "Fiscal or calendar year",
    ),
    FieldDefinition(
        "month", "Month", _DIM, _TXT,
        ("month", "period_month", "mo", "month_name", "month_num"),
        "Month of the period",
    ),
    FieldDefinition(
        "department", "Department", _DIM, _TXT,
        ("department", "dept", "division", "business_unit", "bu",
         "cost_center", "segment", "unit"),
        "Business unit or department",
    ),
    FieldDefinition(
        "region", "Region / Geography", _DIM, _TXT,
        ("region", "geography", "country", "location", "territory",
         "market", "area", "geo", "zone"),
        "Geographic region or location",
    ),
    FieldDefinition(
        "product", "Product / Category", _DIM, _TXT,
        ("product", "product_name", "category", "product_category",
         "sku", "item", "product_line", "brand"),
        "Product name or category",
    ),
)


class FieldRegistry:
    """Read-only catalogue of standard field definitions.

    Parameters
    ----------
    fields:
        Field definitions in matching-precedence order.  Ids must be unique.
    """

    def __init__(self, fields: Iterable[FieldDefinition]) -> None:
        by_id: Dict[str, FieldDefinition] = {}
        for f in fields:
            if f.id in by_id:
                raise ValueError(f"Duplicate standard field id {f.id!r}")
            by_id[f.id] = f
        self._fields: Mapping[str, FieldDefinition] = MappingProxyType(by_id)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get(self, field_id: str) -> Optional[FieldDefinition]:
        return self._fields.get(field_id)

    def require(self, field_id: str) -> FieldDefinition:
        """Like ``get`` but raises ``UnknownFieldError`` for unknown ids."""
        definition = self._fields.get(field_id)
        if definition is None:
            raise UnknownFieldError(field_id)
        return definition

    def label_for(self, field_id: str) -> str:
        """Display label, falling back to the id for unknown fields."""
        definition = self._fields.get(field_id)
        return definition.label if definition else field_id

    def ids(self) -> List[str]:
        return list(self._fields)

    def fields(self) -> List[FieldDefinition]:
        return list(self._fields.values())

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    # ------------------------------------------------------------------ #
    # Picker views
    # ------------------------------------------------------------------ #

    def list_fields_by_category(self) -> Dict[str, List[Dict[str, str]]]:
        """``{category_label: [{id, label, category}, ...]}`` in definition order."""
        grouped: Dict[str, List[Dict[str, str]]] = {}
        for f in self._fields.values():
            grouped.setdefault(f.category.value, []).append(f.summary())
        return grouped

    def fields_array(self) -> List[Dict[str, Any]]:
        """Flat list for dropdowns; each entry also carries ``value``."""
        return [{**f.to_dict(), "value": f.id} for f in self._fields.values()]

    # ------------------------------------------------------------------ #
    # Extension (copy-on-write)
    # ------------------------------------------------------------------ #

    def with_aliases(self, extra: Mapping[str, Iterable[str]]) -> "FieldRegistry":
        """Return a new registry with ``extra`` aliases appended per field.

        Aliases are normalised; ones already present are skipped.

        Raises
        ------
        UnknownFieldError
            If a key of ``extra`` is not a known field id.
        """
        for field_id in extra:
            self.require(field_id)

        merged: List[FieldDefinition] = []
        for f in self._fields.values():
            aliases = list(f.aliases)
            for raw in extra.get(f.id, ()):
                alias = normalize_column_name(raw)
                if alias and alias not in aliases:
                    aliases.append(alias)
                    logger.debug("Added alias: %r → %r", alias, f.id)
            merged.append(
                FieldDefinition(
                    id=f.id,
                    label=f.label,
                    category=f.category,
                    value_kind=f.value_kind,
                    aliases=tuple(aliases),
                    description=f.description,
                )
            )
        return FieldRegistry(merged)

    @classmethod
    def from_json(
        cls,
        path: Union[str, Path],
        base: Optional["FieldRegistry"] = None,
    ) -> "FieldRegistry":
        """Load ``{field_id: [alias, ...]}`` from JSON on top of ``base``.

        ``base`` defaults to the built-in registry.
        """
        with open(path, encoding="utf-8") as fh:
            data: Dict[str, List[str]] = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(
                f"Alias file {path} must hold a JSON object, "
                f"got {type(data).__name__}"
            )
        registry = (base or default_registry()).with_aliases(data)
        logger.info(
            "Loaded custom aliases for %d field(s) from %s", len(data), path
        )
        return registry

    @property
    def alias_count(self) -> int:
        return sum(len(f.aliases) for f in self._fields.values())


@lru_cache(maxsize=1)
def default_registry() -> FieldRegistry:
    """The built-in registry, created on first use and shared thereafter."""
    registry = FieldRegistry(_BUILTIN_FIELDS)
    logger.debug(
        "Built-in registry ready — fields=%d, aliases=%d",
        len(registry),
        registry.alias_count,
    )
    return registry


def list_fields_by_category() -> Dict[str, List[Dict[str, str]]]:
    """Fields of the built-in registry grouped by category."""
    return default_registry().list_fields_by_category()
