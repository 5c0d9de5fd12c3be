"""
Capital Ledger - Source Package

Monthly capital ledger engine for a business back-office. Turns dated
transactions into monthly balances and KPIs, and freezes closed months
into summaries that anchor the next month's starting capital.

DESIGN PRINCIPLES:
1. Derived numbers are recomputed, never stored
2. Closing a month happens exactly once
3. Fail early, fail visibly
4. Display filters never change the books
5. Storage layer is swappable
"""

__version__ = "1.0.0"
