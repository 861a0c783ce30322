"""Payroll advances engine.

Employees receive salary advances that are recovered automatically, oldest
first, from the salary records generated for them. Deleting a salary record
restores exactly what it deducted.
"""

__version__ = "0.1.0"
