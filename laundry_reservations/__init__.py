from .booking import (
	AvailabilityResult,
	BookingError,
	DaySchedule,
	NotRecognized,
	OperationalWindow,
	OutOfOperationalHours,
	SlotOccupied,
	TimeInterval,
	check_availability,
	check_operational,
	has_time_overlap,
	schedule_for_day,
)
from .natural_language import ParsedDateTime, SourceFormat, resolve
from .yaml_store import ReservationRecord, ReservationStorageError, ReservationYamlRepository
from .service import BookingConfirmation, ReservationService

__all__ = [
	"AvailabilityResult",
	"BookingError",
	"DaySchedule",
	"NotRecognized",
	"OperationalWindow",
	"OutOfOperationalHours",
	"SlotOccupied",
	"TimeInterval",
	"check_availability",
	"check_operational",
	"has_time_overlap",
	"schedule_for_day",
	"ParsedDateTime",
	"SourceFormat",
	"resolve",
	"ReservationRecord",
	"ReservationStorageError",
	"ReservationYamlRepository",
	"BookingConfirmation",
	"ReservationService",
]
