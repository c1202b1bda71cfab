import pytest

from s2s_client import cli
from s2s_client.exceptions import TransportSetupError
from tests.helpers import FakeStreamingService, write_garbage, write_tone


class ServiceFactory:
    def __init__(self, service=None, error=None):
        self.service = service or FakeStreamingService()
        self.error = error
        self.calls = []

    def __call__(self, resolved):
        self.calls.append(resolved)
        if self.error:
            raise self.error
        return self.service


def _run(argv, factory, environ=None):
    return cli.run(argv, environ=environ or {}, service_factory=factory, install_signals=False)


def test_no_arguments_prints_usage(capsys):
    assert cli.run([], environ={}) == cli.EXIT_FAILURE
    assert "usage" in capsys.readouterr().out.lower()


def test_nothing_to_do_exits_cleanly(capsys):
    factory = ServiceFactory()
    assert _run(["--num_iterations=1"], factory) == cli.EXIT_OK
    assert "No audio files or audio device specified" in capsys.readouterr().out
    assert factory.calls == []


def test_unsupported_encoding_starts_nothing(tmp_path):
    factory = ServiceFactory()
    audio = write_tone(tmp_path / "a.wav")
    assert _run([f"--audio_file={audio}", "--tts_encoding=wav"], factory) == -1
    assert factory.calls == []


@pytest.mark.parametrize("flag", [
    "--num_parallel_requests=2",
    "--simulate_realtime=true",
    "--num_iterations=2",
])
def test_invalid_microphone_combination(flag):
    factory = ServiceFactory()
    assert _run(["--audio_device=hw:5,0", flag], factory) == cli.EXIT_FAILURE
    assert factory.calls == []


def test_transport_failure(tmp_path):
    audio = write_tone(tmp_path / "a.wav")
    factory = ServiceFactory(error=TransportSetupError("connection refused"))
    assert _run([f"--audio_file={audio}"], factory) == cli.EXIT_FAILURE


def test_missing_audio_path(tmp_path):
    factory = ServiceFactory()
    assert _run([f"--audio_file={tmp_path / 'missing.wav'}"], factory) == cli.EXIT_FAILURE
    assert factory.calls == []


def test_uri_resolved_from_environment(tmp_path):
    audio = write_tone(tmp_path / "a.wav")
    factory = ServiceFactory()
    _run([f"--audio_file={audio}"], factory, environ={"RIVA_URI": "translate.example:443"})
    assert factory.calls[0].uri == "translate.example:443"


def test_directory_run_writes_one_file_per_run(tmp_path, capsys):
    inputs = tmp_path / "inputs"
    inputs.mkdir()
    write_tone(inputs / "a.wav", seconds=0.3)
    write_tone(inputs / "b.wav", seconds=0.2)
    output = tmp_path / "s2s_output.wav"
    factory = ServiceFactory()

    code = _run(
        [
            f"--audio_file={inputs}",
            "--num_iterations=2",
            "--num_parallel_requests=2",
            "--tts_encoding=pcm",
            f"--tts_audio_file={output}",
        ],
        factory,
    )

    assert code == cli.EXIT_OK
    assert len(factory.service.sessions) == 4
    for run_index in range(4):
        assert (tmp_path / f"s2s_output_{run_index:03d}.wav").exists()
    assert "a.wav#1 translated" in capsys.readouterr().out


def test_failed_run_sets_exit_code(tmp_path):
    inputs = tmp_path / "inputs"
    inputs.mkdir()
    write_tone(inputs / "a.wav", seconds=0.2)
    write_garbage(inputs / "b.wav")

    assert _run([f"--audio_file={inputs}"], ServiceFactory()) == cli.EXIT_FAILURE
