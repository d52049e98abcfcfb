import logging
from typing import Dict, List, Optional

from ..errors import MalformedDocument, NotFound, ValidationFailed
from ..models import (
    Provider,
    ProviderPublic,
    Specialization,
    UserRole,
    parse_document,
    parse_day_key,
    format_day_key,
)
from .document_store import USERS, DocumentStore

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Provider directory and per-specialization schedules

    Unknown providers, specializations or days are not errors here: they
    simply have no availability.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_provider(self, provider_id: str) -> Provider:
        """
        Load a provider from the users collection

        Raises:
            NotFound: if there is no such user or the user is not a provider
        """
        _, provider = await self._load_provider(provider_id)
        return provider

    async def _load_provider(self, provider_id: str):
        document = await self.store.get(USERS, provider_id)
        if document.get("role") != UserRole.PROVIDER.value:
            raise NotFound(USERS, provider_id)
        return document, parse_document(Provider, USERS, document)

    async def _find_specialization(self, provider_id: str, specialization: str) -> Optional[Specialization]:
        try:
            provider = await self.get_provider(provider_id)
        except NotFound:
            return None
        return provider.find_specialization(specialization)

    async def list_days(self, provider_id: str, specialization: str) -> List[str]:
        """Published day keys, in the order the provider published them"""
        spec = await self._find_specialization(provider_id, specialization)
        if spec is None:
            return []
        return list(spec.schedule)

    async def list_slots(self, provider_id: str, specialization: str, day: str) -> List[str]:
        """Published time slots for one day"""
        spec = await self._find_specialization(provider_id, specialization)
        if spec is None:
            return []
        try:
            key = format_day_key(parse_day_key(day))
        except ValueError:
            return []
        return list(spec.schedule.get(key, []))

    async def list_providers(self) -> List[Provider]:
        """All providers in directory (store) order; malformed entries are skipped"""
        documents = await self.store.query(USERS, role=UserRole.PROVIDER.value)
        providers = []
        for document in documents:
            try:
                providers.append(parse_document(Provider, USERS, document))
            except MalformedDocument as e:
                logger.warning("Skipping provider: %s", e.message)
        return providers

    async def search_directory(self, search: Optional[str] = None) -> List[ProviderPublic]:
        """
        One entry per (provider, specialization)

        Args:
            search: optional case-insensitive substring of the specialization name
        """
        needle = (search or "").strip().casefold()
        entries = []
        for provider in await self.list_providers():
            for spec in provider.specializations:
                if needle and needle not in spec.key:
                    continue
                entries.append(ProviderPublic(
                    provider_id=provider.id,
                    name=provider.name,
                    specialization=spec.name,
                    schedule=spec.schedule,
                ))
        return entries

    async def replace_schedule(
        self,
        provider_id: str,
        specialization: str,
        schedule: Dict[str, List[str]],
    ) -> Provider:
        """
        Overwrite one specialization's whole schedule

        Adds the specialization if the provider does not offer it yet. The
        write is conditional on the specializations array being unchanged
        since it was read.

        Raises:
            NotFound: unknown provider
            ValidationFailed: bad specialization name or schedule
            Conflict: the provider's specializations changed concurrently
        """
        document, provider = await self._load_provider(provider_id)
        new_spec = self._build_specialization(specialization, schedule)

        updated = []
        replaced = False
        for spec in provider.specializations:
            if spec.key == new_spec.key:
                updated.append(Specialization(name=spec.name, schedule=new_spec.schedule))
                replaced = True
            else:
                updated.append(spec)
        if not replaced:
            updated.append(new_spec)

        return await self._write_specializations(document, provider, updated)

    async def replace_specializations(
        self,
        provider_id: str,
        specializations: List[Dict],
    ) -> Provider:
        """Overwrite the provider's whole specializations array"""
        document, provider = await self._load_provider(provider_id)
        built = [
            self._build_specialization(item.get("name", ""), item.get("schedule") or {})
            for item in specializations
        ]
        keys = [spec.key for spec in built]
        if len(keys) != len(set(keys)):
            raise ValidationFailed("Specialization names must be unique", fields=["specializations"])
        return await self._write_specializations(document, provider, built)

    @staticmethod
    def _build_specialization(name: str, schedule: Dict[str, List[str]]) -> Specialization:
        try:
            return Specialization(name=name, schedule=schedule)
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise ValidationFailed(f"Invalid schedule for '{name}': {e}", fields=["schedule"]) from e

    async def _write_specializations(
        self,
        document: Dict,
        provider: Provider,
        specializations: List[Specialization],
    ) -> Provider:
        payload = [spec.model_dump() for spec in specializations]
        await self.store.update(
            USERS,
            provider.id,
            {"specializations": payload},
            expected={"specializations": document.get("specializations")},
        )
        logger.info(
            "Provider %s published %d specialization(s)",
            provider.id, len(specializations),
        )
        return provider.model_copy(update={"specializations": specializations})
