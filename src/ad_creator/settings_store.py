"""API settings store: provider selection and credentials.

One instance per running application, created by ``dependencies.py`` and
passed to the provider factories. Every mutation rewrites the whole snapshot
to storage under a single key and then notifies subscribers synchronously.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import structlog
from pydantic import ValidationError as PydanticValidationError

from ad_creator.exceptions import PersistenceError, UnknownProviderError, ValidationError
from ad_creator.logging_setup import mask_secret
from ad_creator.models.settings import PROVIDER_IDS, SELECTION_FIELDS, ApiSettings, Capability
from ad_creator.storage import KeyValueStorage
from ad_creator.validation import validate_credential

logger = structlog.get_logger()

STORAGE_KEY = "ad_creator_api_settings"

SettingsListener = Callable[[ApiSettings], None]


def _valid_credentials(credentials: dict[str, str], *, event: str) -> dict[str, str]:
    """Keep only credentials that pass ``validate_credential``, trimmed."""
    kept: dict[str, str] = {}
    for provider, value in credentials.items():
        if validate_credential(provider, value):
            kept[provider] = value.strip()
        else:
            logger.warning(event, provider=provider)
    return kept


class ApiSettingsStore:
    """Observable, persisted holder of the ``ApiSettings`` snapshot."""

    def __init__(self, storage: KeyValueStorage, storage_key: str = STORAGE_KEY):
        self._storage = storage
        self._storage_key = storage_key
        self._listeners: list[SettingsListener] = []
        self._settings = self.load()

    # ------------------------------------------------------------------
    # Loading / reading
    # ------------------------------------------------------------------

    def load(self) -> ApiSettings:
        """Read the persisted snapshot, falling back to defaults. Never raises."""
        try:
            raw = self._storage.get(self._storage_key)
        except Exception:
            logger.exception("settings_store.load_failed", key=self._storage_key)
            return ApiSettings()

        if not raw:
            return ApiSettings()

        try:
            loaded = ApiSettings.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("settings_store.load_invalid", error_count=exc.error_count())
            return ApiSettings()

        # Hand-edited or older records may hold keys that no longer validate
        loaded.credentials = _valid_credentials(loaded.credentials, event="settings_store.load_dropped_credential")
        return loaded

    def get_snapshot(self) -> ApiSettings:
        return self._settings.model_copy(deep=True)

    def get_credential(self, provider: str) -> str | None:
        value = self._settings.credentials.get(provider)
        return value.strip() if value and value.strip() else None

    def has_credential(self, provider: str) -> bool:
        return self.get_credential(provider) is not None

    def selected_provider(self, capability: Capability) -> str:
        return getattr(self._settings, SELECTION_FIELDS[capability])

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_credential(self, provider: str, value: str) -> None:
        if not validate_credential(provider, value):
            logger.info("settings_store.credential_rejected", provider=provider)
            raise ValidationError(
                f"Invalid API key format for {provider}.", field=provider
            )
        key = value.strip()
        self._settings.credentials[provider] = key
        logger.info(
            "settings_store.credential_updated",
            provider=provider,
            api_key=mask_secret(key),
        )
        self._commit()

    def remove_credential(self, provider: str) -> None:
        self._settings.credentials.pop(provider, None)
        logger.info("settings_store.credential_removed", provider=provider)
        self._commit()

    def select_provider(self, capability: Capability, provider: str) -> None:
        """Select the default provider for *capability*.

        Selection is independent from configuration: an unconfigured provider
        can be selected and will fail at generation time.
        """
        if capability not in SELECTION_FIELDS:
            raise UnknownProviderError(f"Capability {capability.value} has no selectable provider")
        if provider not in PROVIDER_IDS[capability]:
            raise UnknownProviderError(
                f"Unknown {capability.value} provider: {provider}. "
                f"Available: {list(PROVIDER_IDS[capability])}"
            )
        setattr(self._settings, SELECTION_FIELDS[capability], provider)
        logger.info("settings_store.provider_selected", capability=capability.value, provider=provider)
        self._commit()

    def clear_all(self) -> None:
        self._settings = ApiSettings()
        logger.info("settings_store.cleared")
        self._commit()

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_blob(self) -> str:
        return self._settings.to_json()

    def import_blob(self, text: str) -> None:
        """Replace the snapshot with an exported blob.

        Raises ``ValidationError`` (leaving the current state untouched) when
        the blob is not JSON or has no credential mapping. Fields missing
        from older blobs take their defaults.
        """
        imported = self._parse_import(text)
        self._settings = imported
        logger.info(
            "settings_store.imported",
            providers=sorted(imported.credentials),
        )
        self._commit()

    def _parse_import(self, text: str) -> ApiSettings:
        try:
            data: Any = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValidationError("Settings blob is not valid JSON.") from exc

        if not isinstance(data, dict):
            raise ValidationError("Settings blob must be a JSON object.")

        credentials_key = "credentials" if "credentials" in data else "config"
        credentials = data.get(credentials_key)
        if not isinstance(credentials, dict):
            raise ValidationError(
                "Settings blob has no credential mapping.", field="credentials"
            )
        if not all(isinstance(v, str) for v in credentials.values()):
            raise ValidationError(
                "Credential values must be strings.", field="credentials"
            )

        kept = _valid_credentials(credentials, event="settings_store.import_dropped_credential")

        try:
            return ApiSettings.model_validate({**data, credentials_key: kept})
        except PydanticValidationError as exc:
            raise ValidationError(f"Settings blob has invalid fields: {exc.error_count()} error(s).") from exc

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if subscribed:
                subscribed = False
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.get_snapshot())

    def _commit(self) -> None:
        """Persist the snapshot, then notify. In-memory state wins if the write fails."""
        try:
            self._storage.set(self._storage_key, self._settings.to_json())
        except OSError as exc:
            logger.error("settings_store.persist_failed", error=str(exc))
            raise PersistenceError(f"Could not save settings: {exc}") from exc
        finally:
            self._notify()
