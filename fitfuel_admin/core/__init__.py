"""In-memory aggregation layer shared by the order, product and notification pages."""
