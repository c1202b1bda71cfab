# Save this file as: s2s_client/audio/capture.py

from typing import Iterator, Optional, Union

import librosa

from config.config import client_config
from s2s_client.audio.base import AudioSource
from s2s_client.audio.chunk import AudioChunk, float_to_int16, frames_per_chunk
from s2s_client.exceptions import DeviceError
from s2s_client.pipeline.shutdown import CancellationToken
from s2s_client.utils.logger import logger


def load_sounddevice():
    # PortAudio is only needed for live capture, so import lazily
    try:
        import sounddevice
    except OSError as e:
        raise DeviceError(f"PortAudio is not available: {e}") from e
    return sounddevice


def parse_device(device: str) -> Union[int, str]:
    """Device index ("4") or a substring of the device name ("hw:5,0")"""
    device = device.strip()
    return int(device) if device.isdigit() else device


class MicrophoneAudioSource(AudioSource):
    """
    Live capture from an input device.
    Produces chunks until shutdown is requested; the flag is checked
    before each new chunk is captured.
    """

    def __init__(
        self,
        device: str,
        chunk_duration_ms: int,
        token: CancellationToken,
        sample_rate: int = client_config.sample_rate,
        sd_module=None
    ):
        self.device = parse_device(device)
        self.chunk_duration_ms = chunk_duration_ms
        self.token = token
        self.target_rate = sample_rate
        self.sample_rate = sample_rate
        self.channels = 1
        self.mic_rate: Optional[int] = None

        self._sd = sd_module
        self.stream = None

    def open(self):
        sd = self._sd or load_sounddevice()
        self._sd = sd
        try:
            info = sd.query_devices(self.device, 'input')
            self.mic_rate = int(info['default_samplerate'])
            self.stream = sd.InputStream(
                device=self.device,
                samplerate=self.mic_rate,
                channels=1,
                dtype='float32'
            )
            self.stream.start()
        except (ValueError, sd.PortAudioError) as e:
            self.stream = None
            raise DeviceError(f"Cannot open audio device '{self.device}': {e}") from e

        logger.info(f"Capture started. Mic: {self.mic_rate}Hz -> Stream: {self.target_rate}Hz")

    def chunks(self) -> Iterator[AudioChunk]:
        if self.stream is None:
            raise DeviceError("Audio device was not opened")

        frames = frames_per_chunk(self.mic_rate, self.chunk_duration_ms)
        index = 0
        while not self.token.cancelled:
            try:
                data, overflowed = self.stream.read(frames)
            except self._sd.PortAudioError as e:
                raise DeviceError(f"Error reading from '{self.device}': {e}") from e

            if overflowed:
                logger.warning("Input overflow, some audio was dropped")

            raw_audio = data[:, 0]
            if self.mic_rate != self.target_rate:
                raw_audio = librosa.resample(raw_audio, orig_sr=self.mic_rate, target_sr=self.target_rate)

            yield AudioChunk(index=index, samples=float_to_int16(raw_audio), sample_rate=self.target_rate)
            index += 1

    def close(self):
        if self.stream is not None:
            self.stream.stop()
            self.stream.close()
            self.stream = None
            logger.info("Microphone capture stopped")
