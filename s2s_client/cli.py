# Save this file as: s2s_client/cli.py

import argparse
import sys
from typing import Callable, Mapping, Optional, Sequence

from config.config import client_config
from s2s_client.audio.capture import MicrophoneAudioSource
from s2s_client.audio.source import FileAudioSource, list_audio_files
from s2s_client.exceptions import (
    AudioFormatError,
    ConfigurationError,
    NoInputError,
    TransportSetupError,
    UnsupportedEncodingError,
)
from s2s_client.pipeline.config import DispatchMode, ResolvedConfig, resolve_config
from s2s_client.pipeline.coordinator import ConcurrencyCoordinator, build_file_units
from s2s_client.pipeline.driver import SourceFactory
from s2s_client.pipeline.output import ArtifactWriter
from s2s_client.pipeline.outcome import InputUnit, RunReport
from s2s_client.pipeline.shutdown import CancellationToken, ShutdownController
from s2s_client.session.base import StreamingService
from s2s_client.session.riva_session import RivaStreamingService
from s2s_client.session.transport import create_auth
from s2s_client.utils.logger import configure_logging, logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNSUPPORTED_ENCODING = -1

ServiceFactory = Callable[[ResolvedConfig], StreamingService]


def str2bool(value) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ('1', 'true', 'yes', 'y', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'n', 'off'):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s2s-client",
        description="Streaming speech-to-speech translation client"
    )

    def add_bool(name: str, default: bool, help_text: str):
        parser.add_argument(f"--{name}", type=str2bool, nargs='?', const=True, default=default, help=help_text)

    # Input
    parser.add_argument("--audio_file", type=str, default="",
                        help="Folder that contains audio files to translate or individual audio file name")
    parser.add_argument("--audio_device", type=str, default="",
                        help="Name or index of audio device to use (such as hw:5,0)")

    # Endpoint and transport (None means 'not set by the user')
    parser.add_argument("--riva_uri", type=str, default=None,
                        help=f"URI to access the server (default: ${client_config.uri_env_var} "
                             f"or {client_config.default_uri})")
    add_bool("use_ssl", False, "Use SSL credentials. Implied when ssl_cert is given")
    parser.add_argument("--ssl_cert", type=str, default="", help="Path to SSL client certificates file")
    parser.add_argument("--metadata", type=str, default="",
                        help="Comma separated key-value pair(s) of metadata to be sent to server")
    parser.add_argument("--connect_timeout", type=float, default=client_config.connect_timeout_s,
                        help="Seconds to wait for the channel to become ready")

    # Orchestration
    parser.add_argument("--num_iterations", type=int, default=1, help="Number of times to loop over audio files")
    parser.add_argument("--num_parallel_requests", type=int, default=1,
                        help="Number of parallel requests to keep in flight")
    parser.add_argument("--chunk_duration_ms", type=int, default=client_config.chunk_duration_ms,
                        help="Chunk duration in milliseconds")
    add_bool("simulate_realtime", False, "Send audio files at realtime speed")

    # Session options
    parser.add_argument("--source_language_code", type=str, default="en-US",
                        help="BCP-47 language code of the input speech")
    parser.add_argument("--target_language_code", type=str, default="en-US",
                        help="BCP-47 language code of the output speech")
    add_bool("profanity_filter", False, "Filter profane words out of transcripts")
    add_bool("automatic_punctuation", True, "Punctuate transcripts")
    add_bool("verbatim_transcripts", True,
             "Return text exactly as it was said; false applies inverse text normalization")
    parser.add_argument("--boosted_words_file", type=str, default="",
                        help="File with a list of words to boost. One line per word")
    parser.add_argument("--boosted_words_score", type=float, default=10.0,
                        help="Score by which to boost the boosted words")

    # TTS output
    parser.add_argument("--tts_encoding", type=str, default="",
                        help="TTS output encoding, pcm or opus. Empty returns translated text only")
    parser.add_argument("--tts_audio_file", type=str, default="s2s_output.wav",
                        help="File containing translated audio for input speech")
    parser.add_argument("--tts_sample_rate", type=int, default=44100, help="TTS sample rate hz")
    parser.add_argument("--tts_voice_name", type=str, default="English-US.Female-1", help="Desired TTS voice name")

    parser.add_argument("--log_level", type=str, default="INFO", help="Console log level")
    return parser


def make_source_factory(resolved: ResolvedConfig, token: CancellationToken) -> SourceFactory:
    chunk_ms = resolved.session.chunk_duration_ms

    if resolved.mode == DispatchMode.MICROPHONE:
        def microphone_source(unit: InputUnit):
            return MicrophoneAudioSource(resolved.audio_device, chunk_ms, token)
        return microphone_source

    def file_source(unit: InputUnit):
        return FileAudioSource(
            [unit.path],
            chunk_ms,
            token,
            iterations=1,
            simulate_realtime=resolved.simulate_realtime
        )
    return file_source


def create_riva_service(resolved: ResolvedConfig) -> StreamingService:
    auth = create_auth(
        resolved.uri,
        use_ssl=resolved.use_ssl,
        ssl_cert=resolved.ssl_cert,
        metadata=resolved.metadata,
        timeout=resolved.connect_timeout
    )
    return RivaStreamingService(auth)


def log_report(report: RunReport):
    logger.info(f"Run time: {report.run_time_s:.3f} sec.")
    logger.info(f"Total audio processed: {report.audio_s:.3f} sec.")
    logger.info(f"Throughput: {report.throughput:.3f} RTFX")

    if report.skipped:
        logger.warning(f"{len(report.skipped)} run(s) skipped after shutdown request")
    for outcome in report.failed:
        logger.error(f"[{outcome.unit.name}] FAILED: {outcome.error}")


def run(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    service_factory: ServiceFactory = create_riva_service,
    install_signals: bool = True,
    token: Optional[CancellationToken] = None,
) -> int:
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    if not argv:
        parser.print_help()
        return EXIT_FAILURE

    args = parser.parse_args(argv)
    configure_logging(args.log_level.upper(), client_config.log_dir or None)

    # 1. Validate flags before touching the network
    try:
        resolved = resolve_config(args, environ)
    except NoInputError as e:
        print(str(e))
        return EXIT_OK
    except UnsupportedEncodingError as e:
        logger.error(str(e))
        return EXIT_UNSUPPORTED_ENCODING
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    # 2. Expand inputs
    if resolved.mode == DispatchMode.FILE:
        try:
            units = build_file_units(list_audio_files(resolved.audio_file), resolved.num_iterations)
        except AudioFormatError as e:
            logger.error(str(e))
            return EXIT_FAILURE
    else:
        units = [InputUnit.live_capture()]

    # 3. Transport
    try:
        service = service_factory(resolved)
    except TransportSetupError as e:
        logger.error(str(e))
        logger.error("Exiting.")
        return EXIT_FAILURE

    logger.info("==================================================")
    logger.info("   STREAMING SPEECH TRANSLATION CLIENT")
    logger.info("==================================================")
    logger.info(f"Direction: {resolved.session.source_language_code} -> {resolved.session.target_language_code}"
                f" | endpoint {resolved.uri} | mode {resolved.mode.value}")

    # 4. Orchestrate
    token = token or CancellationToken()
    coordinator = ConcurrencyCoordinator(
        config=resolved.session,
        service=service,
        source_factory=make_source_factory(resolved, token),
        token=token,
        parallelism=resolved.num_parallel_requests,
        writer=ArtifactWriter(resolved.session, resolved.tts_audio_file, total_runs=len(units)),
    )

    controller = ShutdownController(token)
    if install_signals:
        controller.install()
    try:
        report = coordinator.run(units)
    finally:
        controller.uninstall()

    log_report(report)
    return EXIT_OK if report.succeeded else EXIT_FAILURE


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
