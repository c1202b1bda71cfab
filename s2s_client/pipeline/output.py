# Save this file as: s2s_client/pipeline/output.py

from pathlib import Path
from typing import Optional

import numpy as np
import soundfile as sf

from s2s_client.exceptions import SessionError
from s2s_client.pipeline.config import SessionConfig
from s2s_client.pipeline.outcome import InputUnit, SessionOutcome
from s2s_client.utils.logger import logger


class ArtifactWriter:
    """
    Writes the synthesized audio of each run.
    With several runs every run gets its own file next to tts_audio_file.
    """

    def __init__(self, config: SessionConfig, tts_audio_file: str, total_runs: int = 1):
        self.config = config
        self.base_path = Path(tts_audio_file)
        self.total_runs = total_runs

    def path_for(self, unit: InputUnit) -> Path:
        if self.total_runs <= 1:
            return self.base_path
        return self.base_path.with_name(
            f"{self.base_path.stem}_{unit.run_index:03d}{self.base_path.suffix}"
        )

    def write(self, outcome: SessionOutcome) -> Optional[Path]:
        if not self.config.tts_enabled:
            return None

        audio = outcome.audio
        if not audio:
            logger.warning(f"[{outcome.unit.name}] No synthesized audio received")
            return None

        path = self.path_for(outcome.unit)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if self.config.tts_encoding == 'pcm':
                # Drop a dangling odd byte rather than fail the whole file
                usable = len(audio) - len(audio) % 2
                samples = np.frombuffer(audio[:usable], dtype='<i2')
                sf.write(str(path), samples, self.config.tts_sample_rate, format='WAV', subtype='PCM_16')
            else:
                # Opus arrives already wrapped in an Ogg container
                path.write_bytes(audio)
        except (OSError, RuntimeError) as e:
            raise SessionError(f"Cannot write synthesized audio to {path}: {e}") from e

        logger.info(f"[{outcome.unit.name}] Wrote {len(audio)} bytes of audio to {path}")
        return path
