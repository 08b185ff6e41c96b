"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_DEDUCTION_RATE = Decimal("0.10")
OVERTIME_MULTIPLIER = Decimal("1.5")
MONEY_QUANTUM = Decimal("0.01")
HOURS_QUANTUM = Decimal("0.01")

DEFAULT_WIZARD_WINDOW_DAYS = 7
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200
DEFAULT_LIST_LIMIT = 500
