import enum


class OrderStatus(str, enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    TEST_DRIVE_SCHEDULED = "TEST_DRIVE_SCHEDULED"
    TEST_DRIVE_DONE = "TEST_DRIVE_DONE"
    NEGOTIATION = "NEGOTIATION"
    BOOKING_DONE = "BOOKING_DONE"
    FINANCING_PENDING = "FINANCING_PENDING"
    FINANCING_APPROVED = "FINANCING_APPROVED"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class FinancingStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CASH = "CASH"


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Channel(str, enum.Enum):
    CALL = "CALL"
    WHATSAPP = "WHATSAPP"
    EMAIL = "EMAIL"
    IN_PERSON = "IN_PERSON"
    SYSTEM = "SYSTEM"


# channels a ready-to-send message makes sense for
MESSAGE_CHANNELS = frozenset({Channel.CALL, Channel.WHATSAPP, Channel.EMAIL})


class Urgency(str, enum.Enum):
    NOW = "NOW"
    TODAY = "TODAY"
    THIS_WEEK = "THIS_WEEK"


class Sentiment(str, enum.Enum):
    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"


class ActivityType(str, enum.Enum):
    CALL_OUTBOUND = "CALL_OUTBOUND"
    CALL_INBOUND = "CALL_INBOUND"
    WHATSAPP_SENT = "WHATSAPP_SENT"
    WHATSAPP_RECEIVED = "WHATSAPP_RECEIVED"
    EMAIL_SENT = "EMAIL_SENT"
    EMAIL_RECEIVED = "EMAIL_RECEIVED"
    VISIT = "VISIT"
    TEST_DRIVE = "TEST_DRIVE"
    STATUS_CHANGE = "STATUS_CHANGE"
    NOTE = "NOTE"
