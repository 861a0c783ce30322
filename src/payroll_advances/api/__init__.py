"""HTTP API for the payroll advances engine."""
