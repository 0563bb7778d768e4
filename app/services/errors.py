from app.schemas.envelopes import ERROR_INVALID_JSON, ERROR_JOIN_FIELDS, ERROR_NOT_JOINED

class ProtocolError(Exception):
    """A client sent something the relay refuses; reported to that client only."""

    message = "Protocol error"
    closes_connection = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

class MalformedPayload(ProtocolError):
    message = ERROR_INVALID_JSON

class MissingIdentityFields(ProtocolError):
    message = ERROR_JOIN_FIELDS
    closes_connection = True

class UnauthenticatedAction(ProtocolError):
    message = ERROR_NOT_JOINED

class IncompleteChange(ProtocolError):
    message = "Change message requires username and color"
