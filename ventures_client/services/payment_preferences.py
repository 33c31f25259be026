"""Payment Preferences: the funding rail remembered per draft or per investment."""

from ventures_client.core.domain_types import PaymentMethodChoice
from ventures_client.core.investment_access import (
    DRAFT_PAYMENT_METHOD_KEY, investment_payment_method_key,
)
from ventures_client.core.storage_protocols import KeyValueStore


class PaymentPreferences:
    def __init__(self, store: KeyValueStore):
        self._store = store

    async def persist(self, key: str, method: PaymentMethodChoice | str | None) -> None:
        if not method:
            return
        value = method.value if isinstance(method, PaymentMethodChoice) else method
        await self._store.set(key, value)

    async def read(self, key: str) -> str | None:
        return await self._store.get(key)

    async def clear(self, key: str) -> None:
        await self._store.remove(key)

    async def persist_draft(self, method: PaymentMethodChoice | str | None) -> None:
        await self.persist(DRAFT_PAYMENT_METHOD_KEY, method)

    async def read_draft(self) -> str | None:
        return await self.read(DRAFT_PAYMENT_METHOD_KEY)

    async def for_investment(self, investment_id: object) -> str | None:
        return await self.read(investment_payment_method_key(investment_id))

    async def persist_for_investment(
        self, investment_id: object, method: PaymentMethodChoice | str | None,
    ) -> None:
        await self.persist(investment_payment_method_key(investment_id), method)
