# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "PULSE_APP_NAME": "App display name (default: pulse).",
    "PULSE_LOG_LEVEL": "Console logging level (default: INFO). The file log is always DEBUG.",
    "PULSE_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "PULSE_DATA_DIR": "Local data directory (default: .local/pulse).",
    "PULSE_PREFS_DB_PATH": "Key/value store SQLite path (default: <data_dir>/prefs.sqlite3).",
    "PULSE_PREFS_SCOPE": "Key namespace inside the prefs database (default: flutter).",
    # Runner
    "PULSE_AUTO_START": "Start the background service on launch (default: true).",
    "PULSE_INITIAL_MODE": "foreground | background (default: foreground).",
    "PULSE_TICK_INTERVAL_SECONDS": "Heartbeat period (default: 1.0).",
    "PULSE_WARMUP_SECONDS": "Delay between start and the first tick (default: 1.0).",
    # Notification
    "PULSE_NOTIFICATION_TITLE": "Foreground notification title (default: Foreground service).",
    "PULSE_NOTIFICATION_CONTENT": "Content template; {now} is the ISO timestamp (default: Current time {now}).",
    "PULSE_INITIAL_NOTIFICATION_TITLE": "Title shown at service start (default: Pulse service).",
    "PULSE_INITIAL_NOTIFICATION_CONTENT": "Content shown at service start (default: Initializing).",
    "PULSE_NOTIFICATION_PERMISSION": "Whether notification permission is granted (default: true).",
    # Presentation
    "PULSE_LOG_POLL_INTERVAL_SECONDS": "How often the error log is re-read (default: 1.0).",
    "PULSE_DEVICE_ID": "Device identifier override (default: host name).",
}
