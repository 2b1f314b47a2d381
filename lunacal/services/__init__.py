"""
Client-side services: storage access, shared state, reminders and the
lunisolar data source.
"""
