"""Domain enums for type safety and consistency.

Every value that crosses the remote-store boundary as a string discriminator
is declared here, so stored documents and in-memory models agree on spelling.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error identifiers.

    The prefix selects the failure domain: ``VAL`` validation, ``DB`` remote
    store, ``AUTH`` authentication, ``NET`` network, ``LIST`` list operations.
    """

    VALIDATION_FAILED = "VAL_001"

    DB_NOT_FOUND = "DB_001"
    DB_PERMISSION_DENIED = "DB_002"
    DB_NETWORK_ERROR = "DB_003"
    DB_WRITE_ERROR = "DB_004"
    DB_READ_ERROR = "DB_005"
    DB_VALIDATION_ERROR = "DB_006"  # Stored payload failed defensive parsing

    AUTH_INVALID_CREDENTIALS = "AUTH_001"
    AUTH_USER_NOT_FOUND = "AUTH_002"
    AUTH_EMAIL_IN_USE = "AUTH_003"
    AUTH_WEAK_PASSWORD = "AUTH_004"
    AUTH_NETWORK_ERROR = "AUTH_005"
    AUTH_SESSION_EXPIRED = "AUTH_006"
    AUTH_TOO_MANY_REQUESTS = "AUTH_007"

    NETWORK_TIMEOUT = "NET_001"
    NETWORK_CONNECTION_ERROR = "NET_002"
    NETWORK_SERVER_ERROR = "NET_003"
    CIRCUIT_BREAKER_OPEN = "NET_004"

    LIST_NOT_FOUND = "LIST_001"
    LIST_NOT_FOUND_USER = "LIST_002"
    LIST_NOT_FOUND_PROJECT = "LIST_003"
    LIST_ITEM_ADD_FAILED = "LIST_004"

    UNKNOWN_ERROR = "UNK_001"

    @property
    def domain(self) -> str:
        """Prefix of the code, e.g. ``DB`` for ``DB_001``."""
        return self.value.split("_", 1)[0]


class ListSource(str, Enum):
    """Ownership origin recorded in a list's config."""

    MASTER_LIST = "masterList"  # Shared template
    USER_LIST = "userList"
    PROJECT_LIST = "projectList"
    CUSTOM = "custom"


class ListType(str, Enum):
    """Discriminator for the domain collection a list holds."""

    TASKS = "tasks"
    KIT = "kit"
    GROUP_SHOTS = "groupShots"
    COUPLE_SHOTS = "coupleShots"
    KEY_PEOPLE = "keyPeople"
    LOCATION = "location"
    PHOTO_REQUEST = "photoRequest"
    TIMELINE = "timeline"
    VENDORS = "vendors"
    NOTES = "notes"
    TAGS = "tags"


class ListScope(str, Enum):
    """Ownership context a list lives in."""

    MASTER = "master"
    USER = "user"
    PROJECT = "project"

    @property
    def source(self) -> ListSource:
        return {
            ListScope.MASTER: ListSource.MASTER_LIST,
            ListScope.USER: ListSource.USER_LIST,
            ListScope.PROJECT: ListSource.PROJECT_LIST,
        }[self]


class OperationKind(str, Enum):
    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class OptimisticStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class LoadingStatus(str, Enum):
    """Tag of a loading-state variant."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class CircuitState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "CLOSED"  # Calls flow normally
    OPEN = "OPEN"  # Calls rejected until the reset timeout elapses
    HALF_OPEN = "HALF_OPEN"  # One trial call allowed
