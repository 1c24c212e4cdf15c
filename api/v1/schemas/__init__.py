"""Re-export individual schema modules for easy imports."""

from .generate import GenerationRequest, UsageOut, WeekGroup
from .meal import MealIn, MealList
from .prefs import UserPrefsIn, UserPrefsOut
from .notify import DeviceTokenIn, NotifyIn, NotifyOut
from .feedback import FeedbackIn, FeedbackOut
from .contact import ContactIn, ContactOut
from .plan import SlotIn, SlotOut

__all__ = [
    "GenerationRequest",
    "UsageOut",
    "WeekGroup",
    "MealIn",
    "MealList",
    "UserPrefsIn",
    "UserPrefsOut",
    "DeviceTokenIn",
    "NotifyIn",
    "NotifyOut",
    "FeedbackIn",
    "FeedbackOut",
    "ContactIn",
    "ContactOut",
    "SlotIn",
    "SlotOut",
]
