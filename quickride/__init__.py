# quickride/__init__.py

from .models import (
    RideRequest,
    DriverInfo,
    ChatMessage,
    EngineEvent,
    RideStatus,
    RideCategory,
    Sender,
    Collection,
    EventKind,
)
from .clock import TaskScheduler, ScheduledTask
from .registry import RideRegistry
from .intake import RequestIntake, RideParameters, InvalidRideParameters
from .lifecycle import LifecycleScheduler, TickReport
from .messaging import MessagingService
from .engine import RideEngine
from .utils import validate_cpf, mask_cpf, mask_hidden_cpf, mask_phone

__version__ = "1.0.0"

__all__ = [
    # Models
    "RideRequest",
    "DriverInfo",
    "ChatMessage",
    "EngineEvent",
    "RideStatus",
    "RideCategory",
    "Sender",
    "Collection",
    "EventKind",
    # Core
    "RideEngine",
    "RideRegistry",
    "TaskScheduler",
    "ScheduledTask",
    "RequestIntake",
    "LifecycleScheduler",
    "TickReport",
    "MessagingService",
    "RideParameters",
    # Errors
    "InvalidRideParameters",
    # Functions
    "validate_cpf",
    "mask_cpf",
    "mask_hidden_cpf",
    "mask_phone",
]
