"""Runtime services: metrics, metrics server, reconciliation loop and sample data."""
