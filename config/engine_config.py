"""Engine configuration loaded from the environment."""
import os
from dataclasses import dataclass, field
from decimal import Decimal

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass
class EngineConfig:
    """Business constants for the PO intake engine.

    Every value defaults from an environment variable so a deployment can tune
    the rules without code changes; tests build their own instance with
    explicit keyword arguments.
    """

    min_days_advance: int = field(
        default_factory=lambda: _env_int("PO_MIN_DAYS_ADVANCE", 10)
    )
    senior_approver_threshold: Decimal = field(
        default_factory=lambda: Decimal(os.getenv("PO_SENIOR_APPROVER_THRESHOLD", "100000"))
    )
    min_description_length: int = field(
        default_factory=lambda: _env_int("PO_MIN_DESCRIPTION_LENGTH", 10)
    )
    recurring_installments: int = field(
        default_factory=lambda: _env_int("PO_RECURRING_INSTALLMENTS", 18)
    )
    default_currency_id: str = field(
        default_factory=lambda: os.getenv("PO_DEFAULT_CURRENCY_ID", "")
    )
    reference_data_path: str = field(
        default_factory=lambda: os.getenv("DATA_PATH", "data/reference_data.json")
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "po_intake.log"))

    @property
    def is_configured(self) -> bool:
        """Check the numeric rules are usable."""
        return all([
            self.min_days_advance >= 0,
            self.senior_approver_threshold >= 0,
            self.min_description_length >= 0,
            self.recurring_installments >= 2,
        ])


# Global engine config instance
engine_config = EngineConfig()
