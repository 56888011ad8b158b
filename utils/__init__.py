"""
Utility helpers that are reused across the code-base.
Importing this module is *not* required, but it makes common helpers
one `import` away:

>>> from utils import DataManager, to_decimal
"""

from .helpers import (                               # noqa: F401
    DataManager,
    ZERO,
    generate_intake_id,
    format_currency,
    to_decimal,
    money,
    percent_of,
)

__all__: list[str] = [
    "DataManager",
    "ZERO",
    "generate_intake_id",
    "format_currency",
    "to_decimal",
    "money",
    "percent_of",
]
