"""
Task subsystem.

Components:
- task_models.py: data structures (Task, RecurrenceRule, NotificationContent)
- task_store.py: in-memory ordered task list with change subscriptions
- deadline.py: alert window evaluation + alert registry
- promotion.py: choose and move the most urgent alerted task
- task_scheduler.py: the polling engine tying it all together
- countdown.py: relative-time labels for display
"""
