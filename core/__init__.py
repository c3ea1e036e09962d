"""Learning progress tracking: catalog, time accrual, aggregation and resume."""
