from .scheduler import SchedulerTicker, make_clock

__all__ = [
    "SchedulerTicker",
    "make_clock",
]
