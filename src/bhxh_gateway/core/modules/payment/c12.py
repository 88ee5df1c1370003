"""Parsing of the C12 contribution statement (portal code 137).

The portal returns the statement as a flat list of line items keyed by ``stt``
("A", "A.1", "B.2.1", "Đ.2.3" ...) with amounts as comma-grouped strings.
"""

import re
from typing import Any

from bhxh_gateway.core.modules.payment.models import (
    C12Allocation,
    C12CarriedOver,
    C12CurrentPeriod,
    C12Payment,
    C12Payments,
    C12Report,
)

# "+ UNC số 01043, Ngày 29/01/2026"
PAYMENT_LINE_RE = re.compile(r"UNC\s*số\s*(\d+),\s*Ngày\s*([\d/]+)", re.IGNORECASE)


def to_number(value: Any) -> float:
    """Read a portal amount; blanks and garbage count as zero."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return 0
    return 0


def _text(value: Any) -> str | None:
    return None if value is None else str(value)


class _Lines:
    def __init__(self, items: list[dict[str, Any]]) -> None:
        self.items = items
        self._by_stt: dict[str, dict[str, Any]] = {}
        for item in items:
            self._by_stt.setdefault(str(item.get("stt", "")), item)

    def get(self, stt: str) -> dict[str, Any] | None:
        return self._by_stt.get(stt)

    def amount(self, stt: str, column: str = "cong") -> float:
        item = self._by_stt.get(stt)
        return to_number(item.get(column)) if item else 0

    def heading(self, stt: str) -> dict[str, str]:
        item = self._by_stt.get(stt)
        return {"stt": stt, "content": str(item.get("noiDung") or "")} if item else {}


def _carried(lines: _Lines, letter: str) -> C12CarriedOver:
    if lines.get(letter) is None:
        return C12CarriedOver()
    # Interest sits on x.3 in section A and on x.2.3 in section Đ
    interest = lines.amount(f"{letter}.3") if letter == "A" else lines.amount(f"{letter}.2.3")
    return C12CarriedOver(
        **lines.heading(letter),
        total=lines.amount(letter),
        employee_count=lines.amount(f"{letter}.1", "bhxh"),
        amount_due=lines.amount(f"{letter}.2"),
        overpayment=lines.amount(f"{letter}.2.1"),
        underpayment=lines.amount(f"{letter}.2.2"),
        interest=interest,
    )


def _current_period(lines: _Lines) -> C12CurrentPeriod:
    if lines.get("B") is None:
        return C12CurrentPeriod()
    return C12CurrentPeriod(
        **lines.heading("B"),
        total=lines.amount("B"),
        employees_added=lines.amount("B.1.1", "bhxh"),
        employees_removed=lines.amount("B.1.2", "bhxh"),
        salary_fund_total=lines.amount("B.2"),
        salary_fund_increase=lines.amount("B.2.1"),
        salary_fund_decrease=lines.amount("B.2.2"),
        amount_due=lines.amount("B.3"),
        amount_due_increase=lines.amount("B.3.1"),
        amount_due_decrease=lines.amount("B.3.2"),
        adjustment=lines.amount("B.4.3"),
        prior_year_adjustment=lines.amount("B.4.1.1") + lines.amount("B.4.2.1"),
        interest_principal=lines.amount("B.5.1"),
        interest_rate=lines.amount("B.5.2"),
        interest_total=lines.amount("B.5.3"),
        mandatory_reserve=lines.amount("B.6"),
    )


def _payments(lines: _Lines) -> C12Payments:
    if lines.get("C") is None:
        return C12Payments()
    payments = []
    for item in lines.items:
        if not str(item.get("stt", "")).startswith("C.1"):
            continue
        match = PAYMENT_LINE_RE.search(str(item.get("noiDung") or ""))
        if match:
            payments.append(C12Payment(reference=match.group(1), date=match.group(2), amount=to_number(item.get("cong"))))
    return C12Payments(**lines.heading("C"), total=lines.amount("C"), payments=payments)


def _allocation(lines: _Lines) -> C12Allocation:
    if lines.get("D") is None:
        return C12Allocation()
    return C12Allocation(
        **lines.heading("D"),
        allocated_to_obligations=lines.amount("D.1"),
        allocated_to_interest=lines.amount("D.2"),
    )


def parse_c12_report(raw: Any) -> C12Report:
    """Summarise the statement sections A, B, C, D and Đ; missing sections come back zeroed."""
    data = raw if isinstance(raw, dict) else {}
    items = data.get("c12s")
    lines = _Lines([item for item in items if isinstance(item, dict)] if isinstance(items, list) else [])
    return C12Report(
        agency_code=_text(data.get("maCqBhxh")),
        agency_name=_text(data.get("tenCqBhxh")),
        section_a=_carried(lines, "A"),
        section_b=_current_period(lines),
        section_c=_payments(lines),
        section_d=_allocation(lines),
        section_dd=_carried(lines, "Đ"),
    )
