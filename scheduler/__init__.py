"""
Scheduling core: time conversion, availability resolution, conflict
checking and slot generation. `scheduler.service.SchedulingService` is the
entry point used by the HTTP layer.
"""
