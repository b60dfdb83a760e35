from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter

from chatrelay.core.errors import NotFound, ProviderError
from chatrelay.domain.models import ModelDescriptor

log = logging.getLogger(__name__)

_models_adapter = TypeAdapter(list[ModelDescriptor])


class ModelCatalog:
    """Model selector backed by the relay's model catalog endpoint."""

    def __init__(self, client: httpx.AsyncClient, *, models_path: str = "/api/chat/models"):
        self._client = client
        self._models_path = models_path
        self.models: list[ModelDescriptor] = []
        self.selected: str = ""
        self.loading = False
        self.error: str | None = None

    @property
    def label(self) -> str:
        for model in self.models:
            if model.id == self.selected:
                return model.name or model.id
        return self.selected

    async def load(self) -> list[ModelDescriptor]:
        self.loading = True
        self.error = None
        try:
            models = await self._fetch()
        except ProviderError as e:
            self.error = e.detail
            log.warning("client.models.failed", extra={"detail": e.detail})
            raise
        finally:
            self.loading = False

        self.models = models
        if not self.selected and models:
            self.selected = models[0].id
        return models

    def select(self, model_id: str) -> None:
        if not any(m.id == model_id for m in self.models):
            raise NotFound(f"Unknown model: {model_id}")
        self.selected = model_id

    async def _fetch(self) -> list[ModelDescriptor]:
        try:
            resp = await self._client.get(self._models_path)
        except httpx.HTTPError as e:
            raise ProviderError(f"Failed to load models: {e}") from e
        if resp.status_code >= 400:
            raise ProviderError(f"Failed to load models ({resp.status_code})")
        try:
            return _models_adapter.validate_python(resp.json())
        except ValueError as e:
            raise ProviderError("Failed to load models: malformed response") from e
