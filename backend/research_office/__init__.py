"""Research office compliance API: committee workflows, publications and reference data."""
