"""Work hours module — daily entries and monthly summaries."""
