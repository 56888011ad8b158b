"""Helper functions for the PO intake engine."""
import json
import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Any, Optional
from pathlib import Path

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


class DataManager:
    """Manages data loading and saving operations."""

    @staticmethod
    def load_json_data(file_path: str) -> Dict[str, Any]:
        """Load data from JSON file."""
        try:
            path = Path(file_path)
            if not path.exists():
                logger.warning(f"Data file not found: {file_path}")
                return {}

            with open(path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading data from {file_path}: {e}")
            return {}

    @staticmethod
    def save_json_data(file_path: str, data: Dict[str, Any]) -> bool:
        """Save data to JSON file."""
        try:
            path = Path(file_path)
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, 'w', encoding='utf-8') as file:
                json.dump(data, file, indent=2, default=str)
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Error saving data to {file_path}: {e}")
            return False


def to_decimal(value: Any) -> Decimal:
    """Convert user/reference input to Decimal; None and blanks become zero.

    Raises ValueError for anything that is not a finite number.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a numeric amount: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return result


def money(value: Decimal) -> Decimal:
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value}")


def percent_of(amount: Decimal, total: Decimal) -> Decimal:
    """amount / total * 100 rounded to two places; zero when total is not positive."""
    if total <= 0:
        return ZERO
    return (amount / total * Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_intake_id() -> str:
    """Generate a unique intake session ID."""
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"PO-{timestamp}-{uuid.uuid4().hex[:6].upper()}"


def format_currency(amount: Any, prefix: Optional[str] = "R$") -> str:
    """Format amount as currency."""
    value = to_decimal(amount)
    return f"{prefix} {value:,.2f}" if prefix else f"{value:,.2f}"
