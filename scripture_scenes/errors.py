"""Error taxonomy shared by the service adapter and the orchestrator."""

from enum import Enum


class ErrorKind(str, Enum):
    VERSE_NOT_FOUND = "verse_not_found"
    TRANSIENT = "transient"
    SERVICE = "service"
    MALFORMED = "malformed"
    EMPTY_RESULT = "empty_result"
    NO_IMAGE = "no_image"
    NO_AUDIO = "no_audio"
    PRECONDITION = "precondition"


class GenerationError(Exception):
    """Base class for every classified generation failure."""

    kind: ErrorKind = ErrorKind.SERVICE


class VerseNotFound(GenerationError):
    """The requested verse does not exist (usually the end of a chapter)."""

    kind = ErrorKind.VERSE_NOT_FOUND


class TransientServiceError(GenerationError):
    """5xx-like or transport failure; the caller may retry."""

    kind = ErrorKind.TRANSIENT


class ServiceError(GenerationError):
    kind = ErrorKind.SERVICE


class MalformedResponse(GenerationError):
    """The structured payload could not be extracted or lacked fields."""

    kind = ErrorKind.MALFORMED


class EmptyResult(GenerationError):
    kind = ErrorKind.EMPTY_RESULT


class NoImageProduced(GenerationError):
    kind = ErrorKind.NO_IMAGE


class NoAudioProduced(GenerationError):
    kind = ErrorKind.NO_AUDIO


class PreconditionViolation(GenerationError):
    """Blank input or an operation already in flight."""

    kind = ErrorKind.PRECONDITION


def classify(exc: BaseException) -> ErrorKind:
    """Return the error kind for any exception raised by a service call."""
    if isinstance(exc, GenerationError):
        return exc.kind
    return ErrorKind.SERVICE
