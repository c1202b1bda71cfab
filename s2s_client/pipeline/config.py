# Save this file as: s2s_client/pipeline/config.py

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple

from config.config import client_config
from s2s_client.exceptions import ConfigurationError, NoInputError, UnsupportedEncodingError
from s2s_client.utils.logger import logger

TTS_ENCODINGS = ('pcm', 'opus')


class DispatchMode(str, Enum):
    FILE = 'file'
    MICROPHONE = 'microphone'


@dataclass(frozen=True)
class SessionConfig:
    """Session-scoped parameters shared read-only by every session"""
    source_language_code: str = 'en-US'
    target_language_code: str = 'en-US'
    profanity_filter: bool = False
    automatic_punctuation: bool = True
    verbatim_transcripts: bool = True
    boosted_words: Tuple[str, ...] = ()
    boosted_words_score: float = 10.0
    tts_voice_name: str = 'English-US.Female-1'
    tts_encoding: str = ''                 # '', 'pcm' or 'opus'
    tts_sample_rate: int = 44100
    chunk_duration_ms: int = 100

    @property
    def tts_enabled(self) -> bool:
        return bool(self.tts_encoding)


@dataclass(frozen=True)
class ResolvedConfig:
    """Everything the entry point needs after validation"""
    session: SessionConfig
    mode: DispatchMode
    uri: str
    audio_file: str = ''
    audio_device: str = ''
    num_iterations: int = 1
    num_parallel_requests: int = 1
    simulate_realtime: bool = False
    tts_audio_file: str = 's2s_output.wav'
    use_ssl: bool = False
    ssl_cert: str = ''
    metadata: str = ''
    connect_timeout: float = client_config.connect_timeout_s


def resolve_uri(flag_value: Optional[str], environ: Mapping[str, str]) -> str:
    """
    An explicit flag wins; a flag left at its default (None) falls back to
    the environment, then to the built-in default.
    """
    if flag_value is not None:
        return flag_value

    env_uri = environ.get(client_config.uri_env_var)
    if env_uri:
        logger.info(f"Using environment for {env_uri}")
        return env_uri
    return client_config.default_uri


def load_boosted_words(path: str) -> Tuple[str, ...]:
    """One word per line; blank lines are ignored"""
    if not path:
        return ()
    try:
        text = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(f"Cannot read boosted words file {path}: {e}") from e
    return tuple(line.strip() for line in text.splitlines() if line.strip())


def _require_positive(name: str, value):
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")


def resolve_config(args, environ: Optional[Mapping[str, str]] = None) -> ResolvedConfig:
    """
    Validate raw flag values and build the session configuration.
    Raises ConfigurationError (or a subclass) before anything is started.
    """
    environ = os.environ if environ is None else environ

    # 1. Numeric ranges
    _require_positive("num_iterations", args.num_iterations)
    _require_positive("num_parallel_requests", args.num_parallel_requests)
    _require_positive("chunk_duration_ms", args.chunk_duration_ms)
    _require_positive("tts_sample_rate", args.tts_sample_rate)

    # 2. TTS encoding
    tts_encoding = (args.tts_encoding or '').strip().lower()
    if tts_encoding and tts_encoding not in TTS_ENCODINGS:
        raise UnsupportedEncodingError(f"Unsupported encoding: '{args.tts_encoding}'")

    # 3. Input selection
    if args.audio_file and args.audio_device:
        raise ConfigurationError("Specify either audio_file or audio_device, not both")

    if args.audio_file:
        mode = DispatchMode.FILE
    elif args.audio_device:
        mode = DispatchMode.MICROPHONE
        if args.num_parallel_requests != 1:
            raise ConfigurationError("num_parallel_requests must be set to 1 with microphone input")
        if args.simulate_realtime:
            raise ConfigurationError("simulate_realtime must be set to false with microphone input")
        if args.num_iterations != 1:
            raise ConfigurationError("num_iterations must be set to 1 with microphone input")
    else:
        raise NoInputError("No audio files or audio device specified, exiting")

    session = SessionConfig(
        source_language_code=args.source_language_code,
        target_language_code=args.target_language_code,
        profanity_filter=args.profanity_filter,
        automatic_punctuation=args.automatic_punctuation,
        verbatim_transcripts=args.verbatim_transcripts,
        boosted_words=load_boosted_words(args.boosted_words_file),
        boosted_words_score=float(args.boosted_words_score),
        tts_voice_name=args.tts_voice_name,
        tts_encoding=tts_encoding,
        tts_sample_rate=args.tts_sample_rate,
        chunk_duration_ms=args.chunk_duration_ms,
    )

    return ResolvedConfig(
        session=session,
        mode=mode,
        uri=resolve_uri(args.riva_uri, environ),
        audio_file=args.audio_file,
        audio_device=args.audio_device,
        num_iterations=args.num_iterations,
        num_parallel_requests=args.num_parallel_requests,
        simulate_realtime=args.simulate_realtime,
        tts_audio_file=args.tts_audio_file,
        use_ssl=args.use_ssl,
        ssl_cert=args.ssl_cert,
        metadata=args.metadata,
        connect_timeout=args.connect_timeout,
    )
