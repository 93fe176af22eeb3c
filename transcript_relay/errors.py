class RelayError(Exception):
    """Base exception for transcript relay errors."""
    pass

class SessionStateError(RelayError):
    """Raised when a lifecycle command conflicts with the session state."""
    pass

class AlreadyRecordingError(SessionStateError):
    """Raised when start is requested while a session is active."""
    def __init__(self, message: str = "Already recording"):
        super().__init__(message)

class NotRecordingError(SessionStateError):
    """Raised when stop is requested while no session is recording."""
    def __init__(self, message: str = "Not recording"):
        super().__init__(message)

class CaptureError(RelayError):
    """Raised when the audio source cannot be acquired or started."""
    pass

class TranscriptionError(RelayError):
    """Raised when the transcription backend fails."""
    pass

class TranslationError(RelayError):
    """Raised when the translation backend fails."""
    pass

class NotificationError(RelayError):
    """Raised when a notification cannot be delivered."""
    pass
