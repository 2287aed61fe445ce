from __future__ import annotations

import logging

from private_reader.schemas import EnrichedModule, LearningIndex, LearningModule
from private_reader.search import SearchProvider, truncate_query

logger = logging.getLogger(__name__)


def enrich_modules(
    index: LearningIndex,
    search: SearchProvider,
    *,
    max_results: int = 2,
    only_order: int | None = None,
) -> list[EnrichedModule]:
    """
    Search once per module, strictly one after another.

    A failure for one module is logged and leaves that module with no
    resources; the remaining modules are still searched.
    """
    modules = index.learning_modules
    if only_order is not None:
        modules = [m for m in modules if m.order == only_order]

    logger.info("Processing enrichment request, modules count: %d", len(modules))
    enriched: list[EnrichedModule] = []
    for module in modules:
        query = truncate_query(module.title)
        logger.info('Searching %s for module "%s" (query: "%s")', search.name, module.title, query)
        try:
            resources = search.search(query, max_results)
        except Exception as e:
            logger.exception('Search failed for module "%s"', module.title)
            enriched.append(EnrichedModule(module_order=module.order, module_title=module.title, error=str(e)))
            continue

        logger.info('Found %d results for module "%s"', len(resources), module.title)
        enriched.append(
            EnrichedModule(module_order=module.order, module_title=module.title, resources=resources[:max_results])
        )

    logger.info("Enrichment completed, total modules: %d", len(enriched))
    return enriched


def merge_enrichment(index: LearningIndex, enriched: list[EnrichedModule]) -> LearningIndex:
    """
    Return a copy of `index` with each enriched module's resources attached.

    Matching is by module order; title is only used for entries that carry no
    order. Modules with no matching entry keep whatever resources they had.
    """
    by_order = {e.module_order: e for e in enriched if e.module_order is not None}
    by_title = {e.module_title: e for e in enriched if e.module_order is None}

    merged: list[LearningModule] = []
    for module in index.learning_modules:
        entry = by_order.get(module.order) or by_title.get(module.title)
        if entry is None:
            merged.append(module.model_copy())
        else:
            merged.append(module.model_copy(update={"resources": list(entry.resources)}))
    return LearningIndex(
        main_topic=index.main_topic,
        topic_summary=index.topic_summary,
        learning_modules=merged,
    )
