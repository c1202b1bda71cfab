# Save this file as: s2s_client/session/riva_session.py

import queue
import threading
from typing import Iterator, List, Optional

import grpc
import riva.client
from riva.client.proto import riva_asr_pb2, riva_nmt_pb2

from s2s_client.audio.chunk import AudioChunk
from s2s_client.exceptions import SessionError
from s2s_client.pipeline.config import SessionConfig
from s2s_client.session.base import SessionResult, StreamInfo, StreamingService, StreamingSession
from s2s_client.utils.logger import logger

_END_OF_STREAM = object()

TTS_AUDIO_ENCODINGS = {
    'pcm': riva.client.AudioEncoding.LINEAR_PCM,
    'opus': riva.client.AudioEncoding.OGGOPUS,
}


def build_asr_config(config: SessionConfig, stream: StreamInfo) -> riva.client.StreamingRecognitionConfig:
    speech_contexts = []
    if config.boosted_words:
        speech_contexts.append(
            riva_asr_pb2.SpeechContext(phrases=list(config.boosted_words), boost=config.boosted_words_score)
        )

    return riva.client.StreamingRecognitionConfig(
        config=riva.client.RecognitionConfig(
            encoding=riva.client.AudioEncoding.LINEAR_PCM,
            sample_rate_hertz=stream.sample_rate,
            audio_channel_count=stream.channels,
            language_code=config.source_language_code,
            max_alternatives=1,
            profanity_filter=config.profanity_filter,
            enable_automatic_punctuation=config.automatic_punctuation,
            verbatim_transcripts=config.verbatim_transcripts,
            speech_contexts=speech_contexts,
        ),
        interim_results=True,
    )


def build_streaming_config(config: SessionConfig, stream: StreamInfo):
    """Speech-to-speech config when TTS output is on, speech-to-text otherwise"""
    translation_config = riva_nmt_pb2.TranslationConfig(
        source_language_code=config.source_language_code,
        target_language_code=config.target_language_code,
    )
    asr_config = build_asr_config(config, stream)

    if not config.tts_enabled:
        return riva_nmt_pb2.StreamingTranslateSpeechToTextConfig(
            asr_config=asr_config,
            translation_config=translation_config,
        )

    return riva_nmt_pb2.StreamingTranslateSpeechToSpeechConfig(
        asr_config=asr_config,
        translation_config=translation_config,
        tts_config=riva_nmt_pb2.SynthesizeSpeechConfig(
            encoding=TTS_AUDIO_ENCODINGS[config.tts_encoding],
            sample_rate_hz=config.tts_sample_rate,
            voice_name=config.tts_voice_name,
            language_code=config.target_language_code,
        ),
    )


def describe_rpc_error(e: grpc.RpcError) -> str:
    if isinstance(e, grpc.Call):
        return f"{e.code().name}: {e.details()}"
    return str(e)


class RivaStreamingService(StreamingService):
    """
    Opens translation streams on a shared channel.
    gRPC channels and stubs are thread-safe, so one client serves all slots.
    """

    def __init__(self, auth: riva.client.Auth):
        self.auth = auth
        self.client = riva.client.NeuralMachineTranslationClient(auth)

    def open(self, config: SessionConfig, stream: StreamInfo) -> 'RivaStreamingSession':
        return RivaStreamingSession(self.client, config, stream)


class RivaStreamingSession(StreamingSession):
    """
    One bidirectional translation RPC.

    Audio is fed to the client's response generator from a queue; responses
    are drained on a background thread into a second queue so the server is
    never blocked on an unread response while audio is still being sent.
    """

    def __init__(self, client, config: SessionConfig, stream: StreamInfo):
        self.name = stream.name
        self.tts_enabled = config.tts_enabled

        self._audio: queue.Queue = queue.Queue()
        self._results: queue.Queue = queue.Queue()
        self._finished = False
        self._error: Optional[SessionError] = None

        streaming_config = build_streaming_config(config, stream)
        if self.tts_enabled:
            generate = client.streaming_s2s_response_generator
        else:
            generate = client.streaming_s2t_response_generator

        # The client sends the config message ahead of the audio
        self._responses = generate(self._audio_iterator(), streaming_config)

        self._reader = threading.Thread(
            target=self._read_responses,
            name=f"Responses_{self.name}",
            daemon=True
        )
        self._reader.start()
        logger.debug(f"[{self.name}] Stream opened")

    def _audio_iterator(self):
        while True:
            audio = self._audio.get()
            if audio is _END_OF_STREAM:
                return
            yield audio

    def _convert(self, response) -> List[SessionResult]:
        if self.tts_enabled:
            return [SessionResult(audio=response.speech.audio, is_final=True)]

        results = []
        for result in response.results:
            if not result.alternatives:
                continue
            results.append(SessionResult(text=result.alternatives[0].transcript, is_final=result.is_final))
        return results

    def _read_responses(self):
        try:
            for response in self._responses:
                for result in self._convert(response):
                    self._results.put(result)
        except grpc.RpcError as e:
            self._error = SessionError(describe_rpc_error(e))
        except Exception as e:
            logger.exception(f"[{self.name}] Response reader crashed")
            self._error = SessionError(f"Response stream for {self.name} broke: {e!r}")
        finally:
            self._results.put(_END_OF_STREAM)

    def send(self, chunk: AudioChunk):
        if self._error is not None:
            raise self._error
        if self._finished:
            raise SessionError(f"[{self.name}] send() after finish()")
        self._audio.put(chunk.pcm_bytes)

    def finish(self):
        if not self._finished:
            self._finished = True
            self._audio.put(_END_OF_STREAM)

    def results(self) -> Iterator[SessionResult]:
        while True:
            item = self._results.get()
            if item is _END_OF_STREAM:
                break
            yield item

        if self._error is not None:
            raise self._error

    def close(self, timeout: float = 5.0):
        self.finish()
        self._reader.join(timeout=timeout)
        if self._reader.is_alive():
            logger.warning(f"[{self.name}] Response stream still open after {timeout}s")
