# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "DUEWATCH_APP_NAME": "App display name (default: duewatch).",
    "DUEWATCH_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "DUEWATCH_DATA_DIR": "Local data directory, also holds duewatch.log (default: .local/duewatch).",
    "DUEWATCH_TASKS_PATH": "Task JSON file read by the CLI (default: <data_dir>/tasks.json).",
    # Scheduler
    "DUEWATCH_CHECK_INTERVAL_SECONDS": "Seconds between deadline checks (default: 30, minimum 0.5).",
    "DUEWATCH_DEFAULT_TIME_OFFSET_MINUTES": "Auto lead time for tasks with a time of day (default: 30).",
    "DUEWATCH_DEFAULT_DATE_OFFSET_MINUTES": "Auto lead time for date-only tasks (default: 1440).",
    # Alerts
    "DUEWATCH_OS_NOTIFICATIONS": "Use desktop notifications when available (true/false, default: true).",
    "DUEWATCH_BANNER_DISMISS_SECONDS": "In-app banner lifetime (default: 6).",
    "DUEWATCH_NOTIFICATION_TITLE": "Alert title (default: Deadline approaching).",
    "DUEWATCH_NOTIFICATION_BODY": "Alert body template with {name} and {time} (default: {name} is due at {time}).",
    "DUEWATCH_TIME_FORMAT": "strftime format for {time} (default: %H:%M).",
}
