"""
Focus session subsystem.

Components:
- screens.py: ScreenState enumeration and the SessionSummary report
- lock.py: FocusLockGuard (the exit veto)
- timers.py: cancellable one-shot timers on the event loop
- bindings.py: per-screen keyboard shortcut sets
- controller.py: FocusSessionController, the session state machine
"""
