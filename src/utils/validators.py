"""
Field validation for the checkout, service booking and product forms.

Every validator returns an error message, or None when the value passes.
Batch helpers collect all failing fields at once.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Callable, Dict, Mapping, Optional

from utils.constants import CATEGORIES, DELIVERY_FIELDS, PAYMENT_FIELDS, SERVICE_TYPES

_PHONE_RE = re.compile(r"[6-9]\d{9}", re.ASCII)
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PINCODE_RE = re.compile(r"\d{6}", re.ASCII)
_UPI_RE = re.compile(r"[a-zA-Z0-9.\-_]{2,256}@[a-zA-Z]{2,64}")
_CARD_RE = re.compile(r"\d{16}", re.ASCII)
_EXPIRY_RE = re.compile(r"(\d{2})/(\d{2})", re.ASCII)
_CVV_RE = re.compile(r"\d{3,4}", re.ASCII)

PINCODE_MIN = 110000
PINCODE_MAX = 855117


def luhn_valid(number: str) -> bool:
    """Luhn checksum over a string of digits."""
    if not (number.isascii() and number.isdigit()):
        return False
    total = 0
    for i, ch in enumerate(reversed(number)):
        digit = int(ch)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def _length_between(
    value: str, lo: int, hi: int, required: str, short: str, long: str
) -> Optional[str]:
    if not value.strip():
        return required
    if len(value) < lo:
        return short
    if len(value) > hi:
        return long
    return None


def validate_full_name(value: str) -> Optional[str]:
    return _length_between(
        value, 2, 50,
        "Full name is required",
        "Name must be at least 2 characters",
        "Name is too long",
    )


def validate_phone_number(value: str) -> Optional[str]:
    if not value.strip():
        return "Phone number is required"
    if not _PHONE_RE.fullmatch(re.sub(r"\s", "", value)):
        return "Enter a valid 10-digit Indian mobile number"
    return None


def validate_email(value: str) -> Optional[str]:
    if not value.strip():
        return "Email is required"
    if not _EMAIL_RE.fullmatch(value):
        return "Enter a valid email address"
    return None


def validate_address_line(value: str) -> Optional[str]:
    return _length_between(
        value, 5, 100,
        "Address line 1 is required",
        "Address is too short",
        "Address is too long",
    )


def validate_city(value: str) -> Optional[str]:
    return _length_between(
        value, 2, 50,
        "City is required",
        "City name is too short",
        "City name is too long",
    )


def validate_state(value: str) -> Optional[str]:
    return _length_between(
        value, 2, 50,
        "State is required",
        "State name is too short",
        "State name is too long",
    )


def validate_pincode(value: str) -> Optional[str]:
    if not value.strip():
        return "Pincode is required"
    if not _PINCODE_RE.fullmatch(value):
        return "Enter a valid 6-digit pincode"
    if not PINCODE_MIN <= int(value) <= PINCODE_MAX:
        return "Enter a valid Indian pincode"
    return None


def validate_upi_id(value: str) -> Optional[str]:
    if not value.strip():
        return "UPI ID is required"
    if not _UPI_RE.fullmatch(value):
        return "Invalid UPI ID format (e.g., username@upi)"
    return None


def validate_card_number(value: str) -> Optional[str]:
    if not value.strip():
        return "Card number is required"
    digits = re.sub(r"\s", "", value)
    if not _CARD_RE.fullmatch(digits):
        return "Card number must be 16 digits"
    if not luhn_valid(digits):
        return "Invalid card number"
    return None


def validate_card_holder(value: str) -> Optional[str]:
    return _length_between(
        value, 2, 50,
        "Card holder name is required",
        "Name is too short",
        "Name is too long",
    )


def validate_expiry_date(value: str, today: Optional[date] = None) -> Optional[str]:
    if not value.strip():
        return "Expiry date is required"
    match = _EXPIRY_RE.fullmatch(value)
    if not match:
        return "Format: MM/YY"
    month, year = int(match.group(1)), int(match.group(2))
    today = today or date.today()
    current_year = today.year % 100

    if month < 1 or month > 12:
        return "Invalid month"
    if year < current_year or (year == current_year and month < today.month):
        return "Card has expired"
    if year > current_year + 20:
        return "Invalid expiry year"
    return None


def validate_cvv(value: str) -> Optional[str]:
    if not value.strip():
        return "CVV is required"
    if not _CVV_RE.fullmatch(value):
        return "CVV must be 3 or 4 digits"
    return None


FIELD_VALIDATORS: Dict[str, Callable[[str], Optional[str]]] = {
    "fullName": validate_full_name,
    "phoneNumber": validate_phone_number,
    "email": validate_email,
    "addressLine1": validate_address_line,
    "city": validate_city,
    "state": validate_state,
    "pincode": validate_pincode,
    "upiId": validate_upi_id,
    "cardNumber": validate_card_number,
    "cardHolder": validate_card_holder,
    "expiryDate": validate_expiry_date,
    "cvv": validate_cvv,
}


def validate_field(field: str, value: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Validate one form field by name; unknown fields always pass."""
    validator = FIELD_VALIDATORS.get(field)
    if validator is None:
        return None
    value = value or ""
    if field == "expiryDate":
        return validate_expiry_date(value, today)
    return validator(value)


def validate_delivery(form: Mapping[str, str]) -> Dict[str, str]:
    """Return {field: message} for every failing delivery field."""
    errors = {}
    for field in DELIVERY_FIELDS:
        error = validate_field(field, form.get(field))
        if error:
            errors[field] = error
    return errors


def validate_payment(
    method: str, form: Mapping[str, str], today: Optional[date] = None
) -> Dict[str, str]:
    """Return {field: message} for the fields the payment method requires."""
    if method not in PAYMENT_FIELDS:
        return {"paymentMethod": f"Unsupported payment method: {method}"}
    errors = {}
    for field in PAYMENT_FIELDS[method]:
        error = validate_field(field, form.get(field), today)
        if error:
            errors[field] = error
    return errors


def clean_phone(value: str) -> str:
    """Keep only the ASCII digits of a phone number."""
    return re.sub(r"[^0-9]", "", value or "")


def validate_booking(form: Mapping[str, str]) -> Dict[str, str]:
    """Return {field: message} for a service booking form."""
    errors = {}
    name = (form.get("name") or "").strip()
    if not name:
        errors["name"] = "Name is required"
    elif len(name) < 2:
        errors["name"] = "Name must be at least 2 characters"

    phone = form.get("phone") or ""
    if not phone.strip():
        errors["phone"] = "Phone number is required"
    elif not _PHONE_RE.fullmatch(clean_phone(phone)):
        errors["phone"] = "Please enter a valid 10-digit Indian phone number"

    if form.get("service") not in SERVICE_TYPES:
        errors["service"] = "Please select a service"
    return errors


def parse_number(value, cast):
    """ASCII-only numeric parse; None for blank, malformed or non-finite input."""
    text = "" if value is None else str(value).strip()
    if not text or not text.isascii():
        return None
    try:
        number = cast(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def validate_product_form(form: Mapping[str, object]) -> Dict[str, str]:
    """Return {field: message} for the admin product form; blank rating and discount mean 0."""
    errors = {}
    if not str(form.get("name") or "").strip():
        errors["name"] = "Product name is required"
    if form.get("category") not in CATEGORIES or form.get("category") == "all":
        errors["category"] = "Select a category"

    price = parse_number(form.get("price"), float)
    if price is None or price <= 0:
        errors["price"] = "Valid price is required"
    stock = parse_number(form.get("stock"), int)
    if stock is None or stock < 0:
        errors["stock"] = "Valid stock quantity is required"

    rating = parse_number(form.get("rating") or 0, float)
    if rating is None or not 0 <= rating <= 5:
        errors["rating"] = "Rating must be between 0-5"
    discount = parse_number(form.get("discount") or 0, float)
    if discount is None or not 0 <= discount <= 100:
        errors["discount"] = "Discount must be between 0-100%"

    if not str(form.get("description") or "").strip():
        errors["description"] = "Description is required"
    return errors
