# Save this file as: s2s_client/exceptions.py
"""
Client Exceptions

Error taxonomy for the streaming translation client. Configuration and
transport errors are fatal for the process; audio and session errors only
fail the run they happened in.
"""


class S2SClientError(Exception):
    """Base exception for streaming client errors"""
    pass


class ConfigurationError(S2SClientError):
    """Raised when flags are invalid or contradict each other"""
    pass


class NoInputError(ConfigurationError):
    """Raised when neither an audio file nor an audio device was given"""
    pass


class UnsupportedEncodingError(ConfigurationError):
    """Raised when tts_encoding is not empty, pcm or opus"""
    pass


class TransportSetupError(S2SClientError):
    """Raised when the channel or its credentials cannot be built"""
    pass


class AudioSourceError(S2SClientError):
    """Base for errors reading an input unit's audio"""
    pass


class AudioFormatError(AudioSourceError):
    """Raised when an audio file cannot be decoded or has an unsupported layout"""
    pass


class DeviceError(AudioSourceError):
    """Raised when a capture device cannot be opened or read"""
    pass


class SessionError(S2SClientError):
    """Raised for any failure while a streaming session is open"""
    pass
