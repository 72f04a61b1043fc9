from enum import StrEnum


class Role(StrEnum):
    ADMIN = "admin"
    STUDENT = "student"


class EntityType(StrEnum):
    USER = "user"
    GROUP = "group"


class SolutionType(StrEnum):
    FLAG = "flag"
    PROCEDURE = "procedure"
    FLAG_AND_PROCEDURE = "flag and procedure"


class AttemptType(StrEnum):
    FLAG = "flag"
    PROCEDURE = "procedure"


class SubmissionKind(StrEnum):
    FLAG = "flag"
    TEXT = "text"


class ReportState(StrEnum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"


class MutationOutcome(StrEnum):
    COMMITTED = "committed"
    FAILED = "failed"
    DROPPED = "dropped"
    DECLINED = "declined"
    UNAUTHORIZED = "unauthorized"


class UserRoleFilter(StrEnum):
    ALL = "ALL"
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"
    UNKNOWN = "UNKNOWN"


class UserStatusFilter(StrEnum):
    ALL = "ALL"
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"


NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
TIMEOUT_ERROR_MESSAGE = "Request timed out. Please try again."
UNAUTHORIZED_MESSAGE = "Unauthorized – admin only."
FORBIDDEN_REDIRECT = "/dashboard"

STATUS_FALLBACK_MESSAGES = {
    401: "Session expired. Please log in again.",
    403: "Access denied.",
    404: "Not found.",
    409: "Conflict. Please refresh and try again.",
    429: "Too many requests. Try again shortly.",
}
SERVER_ERROR_MESSAGE = "Server error. Please try again."

ERROR_MESSAGE_SEPARATOR = " • "
MAX_ERROR_MESSAGE_LENGTH = 300
