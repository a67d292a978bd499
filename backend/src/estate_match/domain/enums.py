"""Domain enumerations for requirement/inventory matching and deals.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class RequirementStatus(str, Enum):
    """Lifecycle of the demand record. Opening a deal moves it to ``open``."""

    ACTIVE = "active"
    OPEN = "open"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class MatchingStatus(str, Enum):
    """Requirement-side view of its deal, tracked once a deal exists."""

    OPEN = "open"
    ASSIGNED = "assigned"
    NEGOTIATION = "negotiation"
    CLOSED = "closed"
    REJECTED = "rejected"


class DealStatus(str, Enum):
    """Status of a deal through its lifecycle."""

    RECEIVED = "received"
    OPEN = "open"
    ASSIGNED = "assigned"
    NEGOTIATION = "negotiation"
    CLOSED = "closed"
    REJECTED = "rejected"


class InventoryStatus(str, Enum):
    """Availability of an inventory unit."""

    AVAILABLE = "available"
    SOLD = "sold"
    RESERVED = "reserved"
    RENTED = "rented"


class RtmOffplan(str, Enum):
    """Ready-to-move vs under-construction preference on a requirement."""

    RTM = "RTM"
    OFFPLAN = "OFFPLAN"
    RTM_OFFPLAN = "RTM/OFFPLAN"
    NONE = "NONE"


class UserRole(str, Enum):
    """Role of a platform user."""

    BROKER = "broker"
    CUSTOMER = "customer"
    ADMIN = "admin"
    STAFF = "staff"
    GUEST = "guest"


class RecordTable(str, Enum):
    """Tables whose inserts trigger a subscriber notice."""

    REQUIREMENTS = "requirements"
    INVENTORIES = "inventories"
