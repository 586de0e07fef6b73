import random
import re
from datetime import datetime
from typing import List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[object]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Render rows as a Markdown table.

    Args:
        headers: column headers, or None to promote the first row.
        rows: table body; cells are stringified.
        aligns: 'l', 'c' or 'r' per column, all left when omitted.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    aligns = aligns or ["l"] * len(headers)
    if len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(str(c) for c in row) + " |" for row in rows]
    return "\n".join(lines)


def format_price(amount: float) -> str:
    """Rupee amount with thousands separators, paise only when non-zero."""
    if float(amount).is_integer():
        return f"₹{int(amount):,}"
    return f"₹{amount:,.2f}"


def generate_order_id(now: Optional[datetime] = None) -> str:
    """ORD + epoch milliseconds + a 0-999 suffix; unique in practice only."""
    now = now or datetime.now()
    return f"ORD{int(now.timestamp() * 1000)}{random.randint(0, 999)}"


def format_phone_number(value: str) -> str:
    return re.sub(r"[^0-9]", "", value)[:10]


def format_pincode(value: str) -> str:
    return re.sub(r"[^0-9]", "", value)[:6]


def format_card_number(value: str) -> str:
    digits = re.sub(r"[^0-9]", "", value)[:16]
    if len(digits) < 4:
        return value
    return " ".join(digits[i : i + 4] for i in range(0, len(digits), 4))


def format_expiry_date(value: str) -> str:
    digits = re.sub(r"[^0-9]", "", value)
    if len(digits) < 2:
        return digits
    return digits[:2] + ("/" + digits[2:4] if len(digits) > 2 else "")
