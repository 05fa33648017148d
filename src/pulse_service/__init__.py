"""
pulse_service: a periodic background heartbeat with a two-endpoint control channel.

Subpackages:
- core/: models, ports (Protocols) and the exception taxonomy
- channel/: named-topic message bus and per-topic message types
- runner/: the background task runner and its owning service host
- storage/: SQLite key/value store and the error log sink built on it
- presentation/: the endpoint that drives the runner and polls the log
- cli/: console entrypoint
"""

__version__ = "0.1.0"
