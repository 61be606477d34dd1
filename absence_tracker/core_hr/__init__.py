"""Core HR module — companies, departments, work groups, employees."""
