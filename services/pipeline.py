from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from domain.dtos import AnalysisResult, Page, Product, SkinTonePalette
from domain.palettes import DEFAULT_CLASS_ID, palette_for
from services.classifier import ModelProvider, SkinToneClassifier
from services.paginator import PAGE_SIZE, PageCursor, paginate, total_pages
from services.preprocessor import preprocess
from services.recommender import ProductRecommender

log = logging.getLogger(__name__)


@dataclass
class AnalysisSession:
    """Per-user state: the active result, the page cursor and the submission counter."""

    page_size: int = PAGE_SIZE
    result: Optional[AnalysisResult] = None
    cursor: PageCursor = field(default_factory=PageCursor)
    generation: int = 0
    result_ticket: int = 0

    def begin(self) -> int:
        self.generation += 1
        return self.generation

    def commit(self, ticket: int, result: AnalysisResult) -> bool:
        """Publish `result` unless a newer submission has started since `ticket`."""
        if ticket != self.generation:
            return False
        self.result = result
        self.result_ticket = ticket
        self.cursor = PageCursor(total_pages=total_pages(len(result.products), self.page_size))
        return True

    @property
    def palette(self) -> SkinTonePalette:
        if self.result is None:
            return palette_for(DEFAULT_CLASS_ID)
        return self.result.palette

    def current_page(self) -> Page:
        ranked = self.result.products if self.result is not None else ()
        return paginate(ranked, self.cursor.current, self.page_size)

    def next_page(self) -> bool:
        return self.cursor.next_page()

    def prev_page(self) -> bool:
        return self.cursor.prev_page()

    def go_to(self, page_number: int) -> bool:
        return self.cursor.go_to(page_number)


class AnalysisPipeline:
    """Preprocess -> classify -> recommend, committed into a session.

    The caller awaits the whole round trip. Errors propagate and leave the
    session as it was; a result overtaken by a newer submission is dropped.
    """

    def __init__(
        self,
        model: ModelProvider,
        catalog: Sequence[Product],
        recommender: Optional[ProductRecommender] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.model = model
        self.catalog = catalog
        self.recommender = recommender or ProductRecommender()
        self.executor = executor

    async def analyze(self, session: AnalysisSession, image: np.ndarray) -> Optional[AnalysisResult]:
        ticket = session.begin()
        classifier = await self.model.get()
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(self.executor, self.run, classifier, image)
        if not session.commit(ticket, result):
            log.info("Discarding superseded analysis #%d (latest is #%d)", ticket, session.generation)
            return None
        return result

    def run(self, classifier: SkinToneClassifier, image: np.ndarray) -> AnalysisResult:
        tensor = preprocess(image)
        class_id, probs = classifier.predict(tensor)
        palette = palette_for(class_id)
        products = self.recommender.recommend(class_id, self.catalog)
        log.info("Predicted class %d (%s, p=%.3f), %d matching products",
                 class_id, palette.title, float(probs[class_id]), len(products))
        return AnalysisResult(
            class_id=class_id,
            palette=palette,
            products=tuple(products),
            probabilities=tuple(float(p) for p in probs),
        )
