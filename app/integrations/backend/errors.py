from __future__ import annotations


class BackendError(Exception):
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotAuthenticatedError(BackendError):
    default_message = "Please log in to use AI assistant"


class InvalidRequestError(BackendError):
    default_message = "Couldn't process this message. Try a different one."


class RateLimitExceededError(BackendError):
    default_message = "Too many requests. Please wait 30 seconds."


class ServiceUnavailableError(BackendError):
    default_message = "AI assistant is temporarily unavailable. Try again in a moment."


class NetworkError(BackendError):
    default_message = "No internet connection. Check your network and try again."


class InvalidResponseError(BackendError):
    default_message = "Received invalid response from AI service"


class ServerError(BackendError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(f"AI Error: {message}" if message else None)


class InvalidTimeRangeError(BackendError):
    default_message = "Event start time must be before its end time."


class InvalidNameError(BackendError):
    default_message = "Name cannot be empty."


class RequestTimeoutError(BackendError):
    default_message = "Request took too long. Try asking in a different way."


class UnknownError(BackendError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(f"AI error: {message}" if message else None)
