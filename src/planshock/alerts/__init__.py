"""
Alert subsystem.

Components:
- durations.py / urgency.py: pure helpers (formatting, tier classification)
- thresholds.py: per-task threshold state machine
- messages.py: template nag lines
- dispatcher.py: turns alert events into notifications and speech
- engine.py: per-task sessions and the polling loop
- runner.py: background thread hosting the engine event loop
"""
