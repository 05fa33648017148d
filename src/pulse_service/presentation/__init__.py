"""Presentation side: drives the runner over the control channel and polls the error log."""
