# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    INVALID_API_KEY = ErrorInfo("Invalid API Key", status.HTTP_401_UNAUTHORIZED)
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_502_BAD_GATEWAY)
    REFERENCE_NOT_FOUND = ErrorInfo("Reference not found", status.HTTP_404_NOT_FOUND)
    JOB_NOT_FOUND = ErrorInfo("Unknown or expired jobId", status.HTTP_404_NOT_FOUND)
    EMPTY_DOCUMENT = ErrorInfo(
        "Document has no extractable text", status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    API_KEY_REQUIRED = ErrorInfo(
        "apiKey is required for fact extraction", status.HTTP_400_BAD_REQUEST
    )


class FeedbackDecision(str, Enum):
    confirmed = "confirmed"
    rejected = "rejected"


class ExtractionStatus(str, Enum):
    pending = "pending"
    extracting = "extracting"
    indexed = "indexed"
    failed = "failed"
