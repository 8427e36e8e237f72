from .salon import Salon
from .professional import Professional
from .timeslot import TimeSlot
from .appointment import Appointment

__all__ = [
    "Salon",
    "Professional",
    "TimeSlot",
    "Appointment",
]
