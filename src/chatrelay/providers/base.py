from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from chatrelay.domain.chat import ProviderMessage
from chatrelay.domain.events import ProviderEvent
from chatrelay.domain.models import CatalogEntry


class GatewayAdapter(ABC):
    name: str

    @abstractmethod
    async def list_models(self) -> list[CatalogEntry]:
        raise NotImplementedError

    @abstractmethod
    def stream_completion(
        self, model_id: str, messages: list[ProviderMessage]
    ) -> AsyncIterator[ProviderEvent]:
        """Stream a completion as provider events.

        Implementations yield at most one terminal event (Done or ProviderFailure)
        and nothing after it. Transport failures may be raised as ProviderError.
        """
        raise NotImplementedError
