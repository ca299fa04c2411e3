"""Internal constants shared across the library."""

BASE_URL = "https://api.gps51.com/openapi"
USER_AGENT = "pygps51"

#: Vendor wall-clock format for request parameters and string timestamps.
VENDOR_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
#: GPS51 interprets naive date strings in China Standard Time.
VENDOR_UTC_OFFSET_HOURS = 8

STATUS_OK = 0
#: Vendor status for "too many requests from this IP".
IP_LIMIT_STATUS = 8902
TOKEN_EXPIRED_STATUSES: frozenset[int] = frozenset({9903})

#: ``accstate`` values in ``reportaccsbytime`` records.
ACC_STATE_OFF = 2
ACC_STATE_ON = 3

#: querycommand ``commandstatus`` value for an executed command.
COMMAND_STATUS_EXECUTED = 1

EARTH_RADIUS_KM = 6371.0

#: Vendor command strings keyed by the names accepted by ``send_command``.
VEHICLE_COMMANDS: dict[str, str] = {
    "lock": "LOCKDOOR",
    "unlock": "UNLOCKDOOR",
    "immobilize": "RELAY,1",
    "restore": "RELAY,0",
    "sound_alarm": "FINDCAR",
    "silence_alarm": "FINDCAROFF",
    "reset": "RESET",
}
