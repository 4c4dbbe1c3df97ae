"""Shared serialization utilities for sinks."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from emi_engine.models.schedule import ScheduleModel


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if isinstance(obj, ScheduleModel):
        return schedule_to_dict(obj)
    elif is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict with proper serialization."""
    return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Decimals become strings so amounts keep their exact scale.
    """
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def period_rows(model: ScheduleModel, loan_id: str | None = None) -> list[dict[str, Any]]:
    """One flat row per repayment period: stored installment plus derived figures."""
    rows = []
    for number, (period, figures) in enumerate(zip(model.repayment_periods, model.figures()), start=1):
        row = {
            "period_number": number,
            "from_date": period.from_date,
            "due_date": period.due_date,
            "emi": period.emi,
            "original_emi": period.original_emi,
            "due_principal": figures.due_principal,
            "due_interest": figures.due_interest,
            "paid_principal": period.paid_principal,
            "paid_interest": period.paid_interest,
            "outstanding_loan_balance": figures.outstanding_loan_balance,
            "interest_period_count": len(period.interest_periods),
        }
        if loan_id is not None:
            row = {"loan_id": loan_id, **row}
        rows.append({k: serialize_value(v) for k, v in row.items()})
    return rows


def schedule_to_dict(model: ScheduleModel) -> dict[str, Any]:
    """Full snapshot of a schedule: terms, rates, periods and their slices."""
    periods = []
    for period, figures in zip(model.repayment_periods, model.figures()):
        periods.append(
            {
                "from_date": serialize_value(period.from_date),
                "due_date": serialize_value(period.due_date),
                "emi": serialize_value(period.emi),
                "original_emi": serialize_value(period.original_emi),
                "paid_principal": serialize_value(period.paid_principal),
                "paid_interest": serialize_value(period.paid_interest),
                "figures": dataclass_to_dict(figures),
                "interest_periods": [dataclass_to_dict(ip) for ip in period.interest_periods],
            }
        )
    return {
        "terms": dataclass_to_dict(model.terms),
        "interest_rates": [dataclass_to_dict(rate) for rate in model.interest_rates],
        "installment_amount_in_multiples_of": model.installment_amount_in_multiples_of,
        "loan_term_in_days": model.loan_term_in_days,
        "total_due_principal": serialize_value(model.total_due_principal),
        "total_due_interest": serialize_value(model.total_due_interest),
        "repayment_periods": periods,
    }
