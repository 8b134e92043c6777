"""Business rules deciding whether a pricing calculation needs admin approval."""

import hashlib
import json
import re
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field

# Star category caps for the realistic hotel sale price and the voucher value
STAR_CAPS: Dict[int, Dict[str, float]] = {
    3: {"max_sale_price": 50.00, "max_voucher": 30.00},
    4: {"max_sale_price": 60.00, "max_voucher": 35.00},
    5: {"max_sale_price": 75.00, "max_voucher": 45.00},
}

MIN_MARGIN_PERCENT = 27
MAX_FINANCING_AMOUNT = 50000

HASH_KEY_FIELDS = (
    "stars",
    "averagePrice",
    "voucherPrice",
    "profitMargin",
    "operationalCosts",
    "financingVolume",
    "vatRate",
)

PRICING_SNAPSHOT_FIELDS = ("stars", "averagePrice", "voucherPrice", "profitMargin", "projectCosts")


class PricingInput(BaseModel):
    stars: int = 0
    hotel_sale_price: float = 0.0
    voucher_value: float = 0.0
    margin_after_tax_percent: float = 0.0
    financing_project_costs: float = 0.0


class ValidationResult(BaseModel):
    needs_approval: bool = Field(False, serialization_alias="needsApproval")
    reasons: List[str] = Field(default_factory=list)


def format_de(value: float) -> str:
    """Format a number the way ``de-DE`` locale formatting does (up to 3 decimals)."""
    rounded = round(value, 3)
    formatted = f"{rounded:,.3f}".rstrip("0").rstrip(".")
    return formatted.replace(",", "\x00").replace(".", ",").replace("\x00", ".")


def validate_pricing(pricing: PricingInput) -> ValidationResult:
    """Check a calculation against the approval thresholds.

    All comparisons are strict: a value exactly at a cap does not need approval.
    """
    reasons: List[str] = []

    caps = STAR_CAPS.get(pricing.stars)
    if caps is None:
        reasons.append(
            f"Sterne-Kategorie {pricing.stars} ist nicht gültig. "
            f"Nur 3★, 4★ und 5★ Hotels sind ohne Genehmigung erlaubt."
        )
    else:
        if pricing.hotel_sale_price > caps["max_sale_price"]:
            reasons.append(
                f"Realistischer Hotelverkaufspreis {pricing.hotel_sale_price:.2f} € überschreitet "
                f"das {pricing.stars}★ Limit von {caps['max_sale_price']:.2f} €"
            )
        if pricing.voucher_value > caps["max_voucher"]:
            reasons.append(
                f"Gutscheinwert {pricing.voucher_value:.2f} € überschreitet "
                f"das {pricing.stars}★ Limit von {caps['max_voucher']:.2f} €"
            )

    if pricing.margin_after_tax_percent < MIN_MARGIN_PERCENT:
        reasons.append(
            f"Marge nach Steuern {pricing.margin_after_tax_percent:.2f}% "
            f"ist unter dem Mindestlimit von {MIN_MARGIN_PERCENT}%"
        )

    if pricing.financing_project_costs > MAX_FINANCING_AMOUNT:
        reasons.append(
            f"Finanzierung Projektkosten {format_de(pricing.financing_project_costs)} € "
            f"überschreitet das Limit von {format_de(MAX_FINANCING_AMOUNT)} €"
        )

    return ValidationResult(needs_approval=bool(reasons), reasons=reasons)


def parse_euro(value: Any) -> float:
    """Parse euro amounts such as ``60``, ``60.00``, ``60,00 €`` or ``50.001,00 €``.

    Returns:
        The amount rounded to 2 decimals, 0 when unparseable
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return round(float(value), 2)
    if not value or not isinstance(value, str):
        return 0.0

    cleaned = re.sub(r"[€$£¥]", "", value).strip()
    if "." in cleaned and "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    elif "," in cleaned:
        cleaned = cleaned.replace(",", ".", 1)

    match = re.match(r"^[+-]?(\d+(\.\d*)?|\.\d+)", cleaned)
    if not match:
        return 0.0
    return round(float(match.group(0)), 2)


def _as_stars(value: Any) -> int:
    if isinstance(value, bool) or not value:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(float(str(value).strip()))
    except ValueError:
        return 0


def extract_pricing_input(workflow_data: Mapping[str, Any]) -> PricingInput:
    """Map calculation form data onto the validation input.

    The margin is ``profitMargin / totalPrice * 100``; a missing or zero
    total price counts as 1.
    """
    total_price = parse_euro(workflow_data.get("totalPrice") or "1") or 1.0
    return PricingInput(
        stars=_as_stars(workflow_data.get("stars")),
        hotel_sale_price=parse_euro(workflow_data.get("averagePrice") or "0"),
        voucher_value=parse_euro(workflow_data.get("voucherPrice") or "0"),
        margin_after_tax_percent=parse_euro(workflow_data.get("profitMargin") or "0") / total_price * 100,
        financing_project_costs=parse_euro(workflow_data.get("projectCosts") or "0"),
    )


def has_pricing_fields(snapshot: Mapping[str, Any]) -> bool:
    return any(snapshot.get(field) not in (None, "") for field in PRICING_SNAPSHOT_FIELDS)


def _hash_value(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def generate_input_hash(calculation: Mapping[str, Any]) -> str:
    """SHA-256 over the key inputs that decide whether approval is needed."""
    key_fields = {field: _hash_value(calculation.get(field) or 0) for field in HASH_KEY_FIELDS}
    data_string = json.dumps(key_fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data_string.encode("utf-8")).hexdigest()


def has_calculation_inputs_changed(old: Mapping[str, Any], new: Mapping[str, Any]) -> bool:
    return generate_input_hash(old) != generate_input_hash(new)


def snapshot_hash(snapshot: Any) -> str:
    """SHA-256 of the compact JSON form of a calculation snapshot."""
    data_string = json.dumps(snapshot, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(data_string.encode("utf-8")).hexdigest()
