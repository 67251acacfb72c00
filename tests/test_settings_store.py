import json

import pytest

from ad_creator.exceptions import PersistenceError, UnknownProviderError, ValidationError
from ad_creator.models.settings import Capability
from ad_creator.settings_store import STORAGE_KEY, ApiSettingsStore
from ad_creator.storage import JsonFileStorage, MemoryStorage

from tests.fakes import CLAUDE_KEY, GENERIC_KEY, OPENAI_KEY


class FailingStorage(MemoryStorage):
    def set(self, key, value):
        raise OSError("disk full")


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "provider, key",
    [("openai", OPENAI_KEY), ("claude", CLAUDE_KEY), ("heygen", GENERIC_KEY), ("runware", GENERIC_KEY)],
)
def test_credential_round_trip(store, provider, key):
    store.update_credential(provider, key)
    assert store.get_snapshot().credentials[provider] == key

    store.remove_credential(provider)
    assert provider not in store.get_snapshot().credentials


def test_update_credential_trims_value(store):
    store.update_credential("openai", f"  {OPENAI_KEY}  ")
    assert store.get_credential("openai") == OPENAI_KEY


def test_invalid_credential_is_rejected_without_mutation(store, storage):
    events = []
    store.subscribe(events.append)

    with pytest.raises(ValidationError) as exc_info:
        store.update_credential("openai", "not-a-key")

    assert exc_info.value.field == "openai"
    assert "openai" not in store.get_snapshot().credentials
    assert storage.get(STORAGE_KEY) is None
    assert events == []


def test_mutations_persist_and_reload(storage):
    store = ApiSettingsStore(storage)
    store.update_credential("heygen", GENERIC_KEY)
    store.select_provider(Capability.VIDEO, "luma")

    reloaded = ApiSettingsStore(storage)
    assert reloaded.get_credential("heygen") == GENERIC_KEY
    assert reloaded.selected_provider(Capability.VIDEO) == "luma"


def test_persisted_record_uses_camel_case(store, storage):
    store.update_credential("openai", OPENAI_KEY)
    record = json.loads(storage.get(STORAGE_KEY))
    assert record == {
        "credentials": {"openai": OPENAI_KEY},
        "selectedTextProvider": "openai",
        "selectedImageProvider": "openai",
        "selectedVideoProvider": "heygen",
    }


def test_snapshot_is_a_copy(store):
    store.update_credential("openai", OPENAI_KEY)
    snapshot = store.get_snapshot()
    snapshot.credentials["openai"] = "tampered"
    assert store.get_credential("openai") == OPENAI_KEY


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_defaults(store):
    assert store.selected_provider(Capability.TEXT) == "openai"
    assert store.selected_provider(Capability.IMAGE) == "openai"
    assert store.selected_provider(Capability.VIDEO) == "heygen"


def test_select_unconfigured_provider_is_allowed(store):
    store.select_provider(Capability.IMAGE, "runware")
    assert store.selected_provider(Capability.IMAGE) == "runware"
    assert not store.has_credential("runware")


def test_select_unknown_provider_is_a_programming_error(store):
    with pytest.raises(UnknownProviderError):
        store.select_provider(Capability.IMAGE, "dall-e-9000")
    with pytest.raises(ValueError):
        store.select_provider(Capability.TEXT_TO_SPEECH, "elevenlabs")


# ---------------------------------------------------------------------------
# Subscribers
# ---------------------------------------------------------------------------


def test_subscribers_are_notified_in_order(store):
    calls = []
    store.subscribe(lambda s: calls.append(("first", s.selected_text_provider)))
    store.subscribe(lambda s: calls.append(("second", s.selected_text_provider)))

    store.select_provider(Capability.TEXT, "claude")

    assert calls == [("first", "claude"), ("second", "claude")]


def test_unsubscribe_is_idempotent(store):
    calls = []
    listener = calls.append
    store.subscribe(listener)
    unsubscribe = store.subscribe(listener)

    unsubscribe()
    unsubscribe()
    store.clear_all()

    # one registration remains
    assert len(calls) == 1


def test_no_deduplication_of_identical_mutations(store):
    calls = []
    store.subscribe(calls.append)
    store.select_provider(Capability.TEXT, "openai")
    store.select_provider(Capability.TEXT, "openai")
    assert len(calls) == 2


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


def test_export_import_round_trip(store, storage):
    store.update_credential("openai", OPENAI_KEY)
    store.update_credential("heygen", GENERIC_KEY)
    store.select_provider(Capability.IMAGE, "replicate")
    exported = store.export_blob()

    other = ApiSettingsStore(MemoryStorage())
    other.import_blob(exported)

    assert other.get_snapshot() == store.get_snapshot()


def test_export_is_pretty_printed(store):
    assert store.export_blob().startswith("{\n  ")


def test_import_missing_video_selection_gets_default(store):
    store.import_blob(json.dumps({"credentials": {}, "selectedTextProvider": "claude"}))
    snapshot = store.get_snapshot()
    assert snapshot.selected_video_provider == "heygen"
    assert snapshot.selected_text_provider == "claude"


def test_import_accepts_legacy_config_key(store):
    store.import_blob(json.dumps({"config": {"openai": OPENAI_KEY}}))
    assert store.get_credential("openai") == OPENAI_KEY


def test_unknown_fields_survive_export_import(store):
    blob = json.dumps({"credentials": {}, "themeColor": "purple"})
    store.import_blob(blob)

    exported = json.loads(store.export_blob())
    assert exported["themeColor"] == "purple"


@pytest.mark.parametrize(
    "blob",
    [
        "not json",
        "[1, 2, 3]",
        json.dumps({"selectedTextProvider": "openai"}),
        json.dumps({"credentials": ["openai"]}),
        json.dumps({"credentials": {"openai": 42}}),
        json.dumps({"credentials": {}, "selectedTextProvider": "skynet"}),
    ],
)
def test_invalid_import_leaves_state_untouched(store, blob):
    store.update_credential("openai", OPENAI_KEY)
    before = store.get_snapshot()

    with pytest.raises(ValidationError):
        store.import_blob(blob)

    assert store.get_snapshot() == before


def test_import_drops_invalid_credentials(store):
    store.import_blob(json.dumps({"credentials": {"openai": "bad", "heygen": GENERIC_KEY, "luma": ""}}))
    assert store.get_snapshot().credentials == {"heygen": GENERIC_KEY}


def test_clear_all_resets_to_defaults(store):
    store.update_credential("openai", OPENAI_KEY)
    store.select_provider(Capability.VIDEO, "runway")
    store.clear_all()

    snapshot = store.get_snapshot()
    assert snapshot.credentials == {}
    assert snapshot.selected_video_provider == "heygen"


# ---------------------------------------------------------------------------
# Loading and persistence failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", ["{broken", json.dumps({"credentials": "nope"}), json.dumps([])])
def test_load_falls_back_to_defaults(raw):
    store = ApiSettingsStore(MemoryStorage({STORAGE_KEY: raw}))
    snapshot = store.get_snapshot()
    assert snapshot.credentials == {}
    assert snapshot.selected_text_provider == "openai"


def test_load_fills_fields_missing_from_older_records():
    raw = json.dumps({"credentials": {"openai": OPENAI_KEY}})
    store = ApiSettingsStore(MemoryStorage({STORAGE_KEY: raw}))
    assert store.selected_provider(Capability.VIDEO) == "heygen"
    assert store.get_credential("openai") == OPENAI_KEY


def test_load_drops_stored_credentials_that_no_longer_validate():
    raw = json.dumps(
        {
            "credentials": {
                "openai": "sk-short",
                "claude": "sk-0123456789abcdefghijkl",
                "heygen": f"  {GENERIC_KEY}  ",
            }
        }
    )

    store = ApiSettingsStore(MemoryStorage({STORAGE_KEY: raw}))

    assert store.get_snapshot().credentials == {"heygen": GENERIC_KEY}
    assert not store.has_credential("openai")
    assert not store.has_credential("claude")


def test_persistence_failure_raises_after_mutation_and_notify():
    store = ApiSettingsStore(FailingStorage())
    calls = []
    store.subscribe(calls.append)

    with pytest.raises(PersistenceError):
        store.update_credential("openai", OPENAI_KEY)

    assert store.get_credential("openai") == OPENAI_KEY
    assert len(calls) == 1


def test_json_file_storage(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    store = ApiSettingsStore(JsonFileStorage(path))
    store.update_credential("elevenlabs", GENERIC_KEY)

    assert json.loads(path.read_text())[STORAGE_KEY]
    assert ApiSettingsStore(JsonFileStorage(path)).get_credential("elevenlabs") == GENERIC_KEY


def test_json_file_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json")
    storage = JsonFileStorage(path)
    assert storage.get(STORAGE_KEY) is None

    storage.set("k", "v")
    assert storage.get("k") == "v"
