from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ad_creator.dependencies import build_factories
from ad_creator.exceptions import ProviderError, ValidationError
from ad_creator.models.media import SpeechRequest, TranscriptionRequest
from ad_creator.providers.speech.elevenlabs_tts import DEFAULT_VOICE_ID, ElevenLabsTTSProvider
from ad_creator.providers.speech.whisper_stt import WhisperSTTProvider

from tests.fakes import GENERIC_KEY, OPENAI_KEY


@pytest.fixture
def factories(store):
    return build_factories(store)


def fake_elevenlabs(*chunks):
    client = MagicMock()

    async def convert(**kwargs):
        for chunk in chunks:
            yield chunk

    client.text_to_speech.convert = MagicMock(side_effect=convert)
    return client


# ---------------------------------------------------------------------------
# ElevenLabs
# ---------------------------------------------------------------------------


async def test_elevenlabs_writes_mp3(store, factories, tmp_path):
    store.update_credential("elevenlabs", GENERIC_KEY)
    client = fake_elevenlabs(b"ID3", b"\x00\x01", b"\x02")
    output = tmp_path / "narration" / "ad.mp3"

    with patch("ad_creator.providers.speech.elevenlabs_tts.AsyncElevenLabs", return_value=client) as sdk:
        result = await factories.text_to_speech.synthesize(
            SpeechRequest(text="Pão sem glúten, todo dia.", stability=0.3, output_path=output)
        )

    assert result.provider == "elevenlabs"
    assert result.url == str(output)
    assert output.read_bytes() == b"ID3\x00\x01\x02"
    sdk.assert_called_once_with(api_key=GENERIC_KEY)

    kwargs = client.text_to_speech.convert.call_args.kwargs
    assert kwargs["voice_id"] == DEFAULT_VOICE_ID
    assert kwargs["text"] == "Pão sem glúten, todo dia."
    assert kwargs["voice_settings"].stability == 0.3


async def test_elevenlabs_uses_requested_voice(store, factories, tmp_path):
    store.update_credential("elevenlabs", GENERIC_KEY)
    client = fake_elevenlabs(b"audio")

    with patch("ad_creator.providers.speech.elevenlabs_tts.AsyncElevenLabs", return_value=client):
        await factories.text_to_speech.synthesize(
            SpeechRequest(text="Hi", voice_id="voice-7", model_id="eleven_turbo_v2", output_path=tmp_path / "a.mp3")
        )

    kwargs = client.text_to_speech.convert.call_args.kwargs
    assert kwargs["voice_id"] == "voice-7"
    assert kwargs["model_id"] == "eleven_turbo_v2"


async def test_elevenlabs_empty_audio_is_an_error(store, factories, tmp_path):
    store.update_credential("elevenlabs", GENERIC_KEY)
    output = tmp_path / "empty.mp3"

    with patch("ad_creator.providers.speech.elevenlabs_tts.AsyncElevenLabs", return_value=fake_elevenlabs()):
        with pytest.raises(ProviderError, match="empty audio"):
            await factories.text_to_speech.synthesize(SpeechRequest(text="Hi", output_path=output))

    assert not output.exists()


async def test_elevenlabs_voice_listing(store):
    store.update_credential("elevenlabs", GENERIC_KEY)
    client = MagicMock()
    client.voices.get_all = AsyncMock(
        return_value=SimpleNamespace(
            voices=[SimpleNamespace(voice_id="v-1", name="Sarah", category="premade", preview_url="https://p/v-1.mp3")]
        )
    )
    provider = ElevenLabsTTSProvider(store)

    with patch("ad_creator.providers.speech.elevenlabs_tts.AsyncElevenLabs", return_value=client):
        voices = await provider.list_voices()

    assert [(v.voice_id, v.name, v.category) for v in voices] == [("v-1", "Sarah", "premade")]
    assert DEFAULT_VOICE_ID in {v.voice_id for v in provider.recommended_voices()}


# ---------------------------------------------------------------------------
# Whisper
# ---------------------------------------------------------------------------


def fake_openai_transcriber(text="  Somos uma padaria online.  ", language="portuguese", duration=4.2):
    client = MagicMock()
    client.audio.transcriptions.create = AsyncMock(
        return_value=SimpleNamespace(text=text, language=language, duration=duration)
    )
    return client


async def test_whisper_transcribes_with_openai_credential(store, factories):
    store.update_credential("openai", OPENAI_KEY)
    client = fake_openai_transcriber()

    with patch("ad_creator.providers.speech.whisper_stt.AsyncOpenAI", return_value=client) as sdk:
        result = await factories.speech_to_text.transcribe(
            TranscriptionRequest(audio=b"webm-bytes", filename="take1.webm", language="pt")
        )

    assert result.text == "Somos uma padaria online."
    assert result.language == "portuguese"
    assert result.duration == 4.2
    assert result.provider == "openai-whisper"
    sdk.assert_called_once_with(api_key=OPENAI_KEY)

    kwargs = client.audio.transcriptions.create.call_args.kwargs
    assert kwargs["file"] == ("take1.webm", b"webm-bytes")
    assert kwargs["language"] == "pt"
    assert kwargs["response_format"] == "verbose_json"
    assert "temperature" not in kwargs


async def test_whisper_rejects_oversized_audio(store, factories):
    store.update_credential("openai", OPENAI_KEY)
    client = fake_openai_transcriber()
    too_big = b"\x00" * (WhisperSTTProvider.max_audio_bytes + 1)

    with patch("ad_creator.providers.speech.whisper_stt.AsyncOpenAI", return_value=client):
        with pytest.raises(ValidationError, match="25MB") as exc_info:
            await factories.speech_to_text.transcribe(TranscriptionRequest(audio=too_big))

    assert exc_info.value.field == "audio"
    client.audio.transcriptions.create.assert_not_called()


async def test_whisper_rejects_empty_audio(store, factories):
    store.update_credential("openai", OPENAI_KEY)

    with pytest.raises(ValidationError):
        await factories.speech_to_text.transcribe(TranscriptionRequest(audio=b""))


def test_whisper_supported_languages(store):
    languages = WhisperSTTProvider(store).supported_languages()

    codes = [lang["code"] for lang in languages]
    assert codes[:2] == ["pt", "en"]
    assert len(codes) == len(set(codes))

    # callers get copies
    languages[0]["code"] = "xx"
    assert WhisperSTTProvider(store).supported_languages()[0]["code"] == "pt"
