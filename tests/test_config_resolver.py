import pytest

from s2s_client.cli import build_parser
from s2s_client.exceptions import ConfigurationError, NoInputError, UnsupportedEncodingError
from s2s_client.pipeline.config import DispatchMode, load_boosted_words, resolve_config


def _args(*argv):
    return build_parser().parse_args(list(argv))


def test_file_mode_defaults():
    resolved = resolve_config(_args("--audio_file=speech.wav"), environ={})
    assert resolved.mode == DispatchMode.FILE
    assert resolved.uri == "localhost:50051"
    assert resolved.num_parallel_requests == 1
    assert resolved.session.automatic_punctuation is True
    assert resolved.session.verbatim_transcripts is True
    assert resolved.session.profanity_filter is False
    assert resolved.session.tts_enabled is False


def test_session_options_are_forwarded():
    resolved = resolve_config(
        _args(
            "--audio_file=speech.wav",
            "--source_language_code=es-US",
            "--target_language_code=en-US",
            "--profanity_filter=true",
            "--automatic_punctuation=false",
            "--tts_encoding=OPUS",
            "--tts_voice_name=English-US.Male-1",
            "--chunk_duration_ms=160",
        ),
        environ={},
    )
    session = resolved.session
    assert session.source_language_code == "es-US"
    assert session.profanity_filter is True
    assert session.automatic_punctuation is False
    assert session.tts_encoding == "opus"
    assert session.tts_voice_name == "English-US.Male-1"
    assert session.chunk_duration_ms == 160


def test_bare_boolean_flag_means_true():
    resolved = resolve_config(_args("--audio_file=a.wav", "--simulate_realtime"), environ={})
    assert resolved.simulate_realtime is True


def test_microphone_mode():
    resolved = resolve_config(_args("--audio_device=hw:5,0"), environ={})
    assert resolved.mode == DispatchMode.MICROPHONE
    assert resolved.audio_device == "hw:5,0"


@pytest.mark.parametrize("flag", [
    "--num_parallel_requests=2",
    "--simulate_realtime=true",
    "--num_iterations=3",
])
def test_microphone_rejects_file_only_options(flag):
    with pytest.raises(ConfigurationError):
        resolve_config(_args("--audio_device=hw:5,0", flag), environ={})


def test_no_input_is_reported_separately():
    with pytest.raises(NoInputError):
        resolve_config(_args("--num_iterations=1"), environ={})


def test_both_inputs_rejected():
    with pytest.raises(ConfigurationError):
        resolve_config(_args("--audio_file=a.wav", "--audio_device=hw:1,0"), environ={})


def test_unknown_tts_encoding():
    with pytest.raises(UnsupportedEncodingError):
        resolve_config(_args("--audio_file=a.wav", "--tts_encoding=wav"), environ={})


@pytest.mark.parametrize("flag", [
    "--num_parallel_requests=0",
    "--num_iterations=0",
    "--chunk_duration_ms=0",
])
def test_non_positive_values_rejected(flag):
    with pytest.raises(ConfigurationError):
        resolve_config(_args("--audio_file=a.wav", flag), environ={})


def test_uri_flag_wins_over_environment():
    resolved = resolve_config(
        _args("--audio_file=a.wav", "--riva_uri=server:1234"),
        environ={"RIVA_URI": "env-host:50051"},
    )
    assert resolved.uri == "server:1234"


def test_uri_from_environment_when_flag_not_set():
    resolved = resolve_config(_args("--audio_file=a.wav"), environ={"RIVA_URI": "env-host:50051"})
    assert resolved.uri == "env-host:50051"


def test_explicit_empty_uri_flag_is_kept():
    resolved = resolve_config(
        _args("--audio_file=a.wav", "--riva_uri="),
        environ={"RIVA_URI": "env-host:50051"},
    )
    assert resolved.uri == ""


def test_boosted_words_file(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("riva\n\n  nvidia  \ntranslate\n", encoding="utf-8")
    resolved = resolve_config(
        _args("--audio_file=a.wav", f"--boosted_words_file={words}", "--boosted_words_score=20"),
        environ={},
    )
    assert resolved.session.boosted_words == ("riva", "nvidia", "translate")
    assert resolved.session.boosted_words_score == 20.0


def test_missing_boosted_words_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_boosted_words(str(tmp_path / "missing.txt"))


def test_session_config_is_immutable():
    resolved = resolve_config(_args("--audio_file=a.wav"), environ={})
    with pytest.raises(AttributeError):
        resolved.session.source_language_code = "fr-FR"
