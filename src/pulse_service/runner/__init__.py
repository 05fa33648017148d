"""
Runner subsystem.

Components:
- service.py: BackgroundRunner (one run instance: mode state machine + tick loop)
- host.py: ServiceHost (configure/start/stop/is_running, owns run instances)
"""
