try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import InMemoryCredentialStore, RecordingMessenger, menu_option_values, sample_properties
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import InMemoryCredentialStore, RecordingMessenger, menu_option_values, sample_properties  # type: ignore

from datetime import datetime, timezone

import pytest

from arnold.services.property_selection import (
    InvalidPropertyIdError,
    PropertySelectionService,
    normalize_property_id,
)


async def _linked_store(*identities: str) -> InMemoryCredentialStore:
    store = InMemoryCredentialStore()
    for identity in identities:
        await store.save_tokens(
            identity=identity,
            access_token="at",
            refresh_token="rt",
            expires_in=3600,
            expires_at=datetime(2099, 1, 1, tzinfo=timezone.utc),
        )
    return store


def _service(store: InMemoryCredentialStore, messenger: RecordingMessenger | None = None):
    return PropertySelectionService(
        credential_store=store,
        messenger=messenger or RecordingMessenger(),
        bot_name="Arnold",
        command_prefix="/arnold",
    )


@pytest.mark.parametrize(
    "value", ["123", "properties/123", "  123  ", " properties/123\n"]
)
def test_normalize_accepts_bare_and_prefixed_ids(value: str) -> None:
    assert normalize_property_id(value) == "properties/123"


@pytest.mark.parametrize("value", ["", "abc", "properties/", "accounts/123", "12 34"])
def test_normalize_rejects_other_values(value: str) -> None:
    with pytest.raises(InvalidPropertyIdError):
        normalize_property_id(value)


@pytest.mark.anyio
async def test_bare_and_prefixed_ids_store_identical_values() -> None:
    store = await _linked_store("U1", "U2")
    service = _service(store)

    await service.set_property("U1", "123")
    await service.set_property("U2", "properties/123")

    first = await store.get_credential("U1")
    second = await store.get_credential("U2")
    assert first.property_id == second.property_id == "properties/123"


@pytest.mark.anyio
async def test_command_confirms_synchronously() -> None:
    store = await _linked_store("U1")
    messenger = RecordingMessenger()

    reply = await _service(store, messenger).handle_command("U1", "509119162")

    assert reply["response_type"] == "ephemeral"
    assert "properties/509119162" in reply["text"]
    assert messenger.messages == []


@pytest.mark.anyio
async def test_command_for_unlinked_user_reports_not_connected() -> None:
    reply = await _service(InMemoryCredentialStore()).handle_command("U404", "123")
    assert "not connected" in reply["text"]
    assert "/arnold-connect" in reply["text"]


@pytest.mark.anyio
async def test_command_with_invalid_id_shows_usage() -> None:
    store = await _linked_store("U1")
    reply = await _service(store).handle_command("U1", "my-site")
    assert reply["text"].startswith("Usage:")
    assert store.writes == [("save_tokens", "U1")]


@pytest.mark.anyio
async def test_command_store_failure_is_generic_error() -> None:
    store = await _linked_store("U1")
    store.unavailable = True
    reply = await _service(store).handle_command("U1", "123")
    assert reply["text"].startswith("❌ Error setting property")


@pytest.mark.anyio
async def test_empty_command_offers_stored_properties() -> None:
    store = await _linked_store("U1")
    store.discovered["U1"] = sample_properties()

    reply = await _service(store).handle_command("U1", "  ")

    assert menu_option_values(reply["blocks"]) == ["properties/111", "properties/222"]


@pytest.mark.anyio
async def test_empty_command_without_properties_shows_usage() -> None:
    reply = await _service(InMemoryCredentialStore()).handle_command("U1", "")
    assert reply["text"].startswith("Usage:")
    assert "blocks" not in reply


@pytest.mark.anyio
async def test_menu_selection_confirms_in_dm() -> None:
    store = await _linked_store("U1")
    messenger = RecordingMessenger()

    await _service(store, messenger).handle_menu_selection(
        "U1", "properties/222", "Docs (Acme)"
    )

    assert (await store.get_credential("U1")).property_id == "properties/222"
    assert messenger.messages[0]["channel"] == "U1"
    assert "Docs (Acme)" in messenger.messages[0]["text"]


@pytest.mark.anyio
async def test_menu_selection_for_unlinked_user_reports_in_dm() -> None:
    messenger = RecordingMessenger()

    await _service(InMemoryCredentialStore(), messenger).handle_menu_selection(
        "U1", "properties/222"
    )

    assert "not connected" in messenger.messages[0]["text"]
