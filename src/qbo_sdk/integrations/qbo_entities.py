"""Entity and report tables for the QBO client.

Per-entity methods (`create_invoice`, `find_invoices`, `report_balance_sheet`,
...) are generated from these tables by `install_entity_methods` instead of
being written out by hand. Each generated method is a thin call into the
generic `create`/`read`/`update`/`delete`/`query`/`report` primitives.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True, slots=True)
class EntitySpec:
    name: str
    # c=create r=read u=update d=delete q=query
    ops: str
    plural: str | None = None


ENTITIES: tuple[EntitySpec, ...] = (
    EntitySpec("Account", "cruq"),
    EntitySpec("Attachable", "crudq"),
    EntitySpec("Bill", "crudq"),
    EntitySpec("BillPayment", "crudq"),
    EntitySpec("Budget", "q"),
    EntitySpec("Class", "cruq"),
    EntitySpec("CompanyInfo", "ruq"),
    EntitySpec("CreditMemo", "crudq"),
    EntitySpec("Customer", "cruq"),
    EntitySpec("Department", "cruq"),
    EntitySpec("Employee", "cruq"),
    EntitySpec("Estimate", "crudq"),
    EntitySpec("Invoice", "crudq"),
    EntitySpec("Item", "cruq"),
    EntitySpec("JournalEntry", "crudq"),
    EntitySpec("Payment", "crudq"),
    EntitySpec("PaymentMethod", "cruq"),
    EntitySpec("Preferences", "ruq", plural="preferences"),
    EntitySpec("Purchase", "crudq"),
    EntitySpec("PurchaseOrder", "crudq"),
    EntitySpec("RefundReceipt", "crudq"),
    EntitySpec("SalesReceipt", "crudq"),
    EntitySpec("TaxAgency", "cruq"),
    EntitySpec("TaxCode", "ruq"),
    EntitySpec("TaxRate", "ruq"),
    EntitySpec("TaxService", "cu"),
    EntitySpec("Term", "cruq"),
    EntitySpec("TimeActivity", "crudq"),
    EntitySpec("Vendor", "cruq"),
    EntitySpec("VendorCredit", "crudq"),
)

REPORTS: tuple[str, ...] = (
    "BalanceSheet",
    "ProfitAndLoss",
    "ProfitAndLossDetail",
    "TrialBalance",
    "CashFlow",
    "InventoryValuationSummary",
    "CustomerSales",
    "ItemSales",
    "CustomerIncome",
    "CustomerBalance",
    "CustomerBalanceDetail",
    "AgedReceivables",
    "AgedReceivableDetail",
    "VendorBalance",
    "VendorBalanceDetail",
    "AgedPayables",
    "AgedPayableDetail",
    "VendorExpenses",
    "GeneralLedgerDetail",
    "DepartmentSales",
    "ClassSales",
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def pluralize(word: str) -> str:
    if word.endswith("s"):
        return word + "es"
    if word.endswith("y"):
        return word[:-1] + "ies"
    return word + "s"


def _entity_methods(spec: EntitySpec) -> dict[str, Callable[..., Any]]:
    entity = spec.name
    snake = snake_case(entity)
    plural = spec.plural or pluralize(snake)
    methods: dict[str, Callable[..., Any]] = {}

    if "c" in spec.ops:
        def create(self, body: dict[str, Any]) -> dict[str, Any]:
            return self.create(entity, body)

        create.__doc__ = f"Create a {entity} in QBO and return the persisted record."
        methods[f"create_{snake}"] = create

    if "r" in spec.ops:
        def get(self, entity_id: str) -> dict[str, Any]:
            return self.read(entity, entity_id)

        get.__doc__ = f"Retrieve a {entity} by Id."
        methods[f"get_{snake}"] = get

    if "u" in spec.ops:
        def update(self, body: dict[str, Any]) -> dict[str, Any]:
            return self.update(entity, body)

        update.__doc__ = f"Update a {entity}; `body` must carry Id and SyncToken."
        methods[f"update_{snake}"] = update

    if "d" in spec.ops:
        def delete(self, id_or_body: str | dict[str, Any]) -> dict[str, Any]:
            return self.delete(entity, id_or_body)

        delete.__doc__ = f"Delete a {entity} given its Id or the full record."
        methods[f"delete_{snake}"] = delete

    if "q" in spec.ops:
        def find(self, criteria: Any = None):
            return self.query(entity, criteria)

        find.__doc__ = f"Find {entity} records matching `criteria` (see `QBOClient.query`)."
        methods[f"find_{plural}"] = find

    return methods


def _report_method(report_type: str) -> Callable[..., Any]:
    def report(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.report(report_type, params)

    report.__doc__ = f"Fetch the {report_type} report."
    return report


def install_entity_methods(cls: type) -> type:
    """Attach generated per-entity and per-report methods to `cls`.

    Methods already defined on `cls` are left alone.
    """

    generated: dict[str, Callable[..., Any]] = {}
    for spec in ENTITIES:
        generated.update(_entity_methods(spec))
    for report_type in REPORTS:
        generated[f"report_{snake_case(report_type)}"] = _report_method(report_type)

    for name, fn in generated.items():
        if hasattr(cls, name):
            continue
        fn.__name__ = name
        fn.__qualname__ = f"{cls.__name__}.{name}"
        setattr(cls, name, fn)
    return cls
