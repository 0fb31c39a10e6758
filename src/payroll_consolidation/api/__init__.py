"""HTTP API for the payroll consolidation engine."""
