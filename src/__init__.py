"""
Expense Tracker - Source Package

The core of a personal income/expense tracker: per-user transactions,
summaries and category breakdowns, JSON/CSV backup files, and form
validation.

DESIGN PRINCIPLES:
1. Derived figures are recomputed from the full snapshot, never patched
2. Validation reports problems, it never fixes input
3. Imports never silently change what the user exported
4. Every mutation must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
