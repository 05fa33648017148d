"""Core types and ports shared by the runner and the presentation endpoint."""
