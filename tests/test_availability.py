"""Tests for provider schedules, the directory and schedule replacement."""

import pytest

from pawcare.errors import Conflict, NotFound, ValidationFailed
from pawcare.services.document_store import USERS


@pytest.mark.asyncio
async def test_list_days_in_published_order(availability):
    assert await availability.list_days("A", "Dental") == ["Monday", "Wednesday"]


@pytest.mark.asyncio
async def test_list_days_matches_specialization_case_insensitively(availability):
    assert await availability.list_days("A", "dental") == ["Monday", "Wednesday"]


@pytest.mark.asyncio
async def test_list_slots_for_day(availability):
    assert await availability.list_slots("A", "Dental", "Monday") == ["9:00 AM", "10:00 AM"]
    assert await availability.list_slots("A", "Dental", "monday") == ["9:00 AM", "10:00 AM"]


@pytest.mark.parametrize("provider_id, specialization, day", [
    ("nobody", "Dental", "Monday"),
    ("A", "Cardiology", "Monday"),
    ("A", "Dental", "Sunday"),
    ("A", "Dental", "someday"),
    ("owner-1", "Dental", "Monday"),
])
@pytest.mark.asyncio
async def test_unknown_lookups_return_empty(availability, provider_id, specialization, day):
    assert await availability.list_slots(provider_id, specialization, day) == []


@pytest.mark.asyncio
async def test_list_days_unknown_provider_is_empty(availability):
    assert await availability.list_days("nobody", "Dental") == []


@pytest.mark.asyncio
async def test_get_provider_rejects_clients(availability):
    with pytest.raises(NotFound):
        await availability.get_provider("owner-1")


@pytest.mark.asyncio
async def test_directory_lists_every_specialization(availability):
    entries = await availability.search_directory()

    assert [(e.provider_id, e.specialization) for e in entries] == [
        ("A", "Dental"), ("A", "Skin"), ("B", "skin"), ("C", "SKIN"), ("D", "Dental"),
    ]


@pytest.mark.asyncio
async def test_directory_search_is_case_insensitive_substring(availability):
    entries = await availability.search_directory("KI")

    assert [e.provider_id for e in entries] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_directory_skips_malformed_providers(store, availability):
    store.seed(USERS, "E", {"role": "provider", "name": "Dr. E", "specializations": [{"schedule": {}}]})

    entries = await availability.search_directory()

    assert "E" not in {e.provider_id for e in entries}


@pytest.mark.asyncio
async def test_replace_schedule_overwrites_whole_schedule(store, availability):
    await availability.replace_schedule("A", "dental", {"tuesday": ["8:00 AM"]})

    assert await availability.list_days("A", "Dental") == ["Tuesday"]
    assert await availability.list_slots("A", "Dental", "Monday") == []
    stored = await store.get(USERS, "A")
    assert stored["specializations"][0] == {"name": "Dental", "schedule": {"Tuesday": ["8:00 AM"]}}
    assert stored["specializations"][1]["name"] == "Skin"


@pytest.mark.asyncio
async def test_replace_schedule_adds_new_specialization(availability):
    provider = await availability.replace_schedule("D", "Surgery", {"2025-03-10": ["14:30"]})

    assert [s.name for s in provider.specializations] == ["Dental", "Surgery"]
    assert await availability.list_days("D", "surgery") == ["2025-03-10"]


@pytest.mark.asyncio
async def test_replace_schedule_for_provider_without_specializations(store, availability):
    store.seed(USERS, "F", {"role": "provider", "name": "Dr. F"})

    await availability.replace_schedule("F", "Dental", {"Monday": ["9:00 AM"]})

    assert await availability.list_slots("F", "Dental", "Monday") == ["9:00 AM"]


@pytest.mark.asyncio
async def test_replace_schedule_rejects_mixed_day_keys(availability):
    with pytest.raises(ValidationFailed):
        await availability.replace_schedule("A", "Dental", {"Monday": ["9:00 AM"], "2025-03-10": ["9:00 AM"]})

    assert await availability.list_days("A", "Dental") == ["Monday", "Wednesday"]


@pytest.mark.asyncio
async def test_replace_schedule_conflicts_with_concurrent_edit(store, availability, monkeypatch):
    original_load = availability._load_provider

    async def load_then_race(provider_id):
        loaded = await original_load(provider_id)
        store.seed(USERS, "A", {**loaded[0], "specializations": []})
        return loaded

    monkeypatch.setattr(availability, "_load_provider", load_then_race)

    with pytest.raises(Conflict):
        await availability.replace_schedule("A", "Dental", {"Monday": ["9:00 AM"]})


@pytest.mark.asyncio
async def test_replace_specializations_requires_unique_names(availability):
    with pytest.raises(ValidationFailed):
        await availability.replace_specializations("A", [{"name": "Dental"}, {"name": "DENTAL"}])
