from __future__ import annotations

from collections.abc import Iterable

from chatrelay.domain.models import CatalogEntry, ModelDescriptor

TEXT_GENERATION_CATEGORY = "language"


def is_text_generation(entry: CatalogEntry) -> bool:
    # Entries without a category are kept.
    return entry.category is None or entry.category == TEXT_GENERATION_CATEGORY


def to_descriptors(entries: Iterable[CatalogEntry]) -> list[ModelDescriptor]:
    """Filter to text models, dedupe by id (first wins) and sort ascending by id."""
    seen: dict[str, ModelDescriptor] = {}
    for entry in entries:
        if not is_text_generation(entry) or entry.id in seen:
            continue
        seen[entry.id] = ModelDescriptor(id=entry.id, name=entry.name or entry.id)
    return [seen[model_id] for model_id in sorted(seen)]
