"""Dashboard module — per-employee absence summary."""
