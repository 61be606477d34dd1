"""Reports module — absence reports over a date range."""
