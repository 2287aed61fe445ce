from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class Difficulty(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"

    @classmethod
    def _missing_(cls, value: object) -> Difficulty | None:
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return None


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    content: str = ""
    score: float = 0.0
    raw_content: str | None = None


class LearningModule(BaseModel):
    order: int
    title: str = Field(..., min_length=1)
    description: str = ""
    difficulty: Difficulty
    source_type: str | None = None
    resources: list[Resource] | None = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, v: object) -> object:
        if isinstance(v, str):
            return Difficulty(v.strip())
        return v


class LearningIndex(BaseModel):
    main_topic: str = Field(..., min_length=1)
    topic_summary: str = Field(..., min_length=1)
    learning_modules: list[LearningModule] = Field(..., min_length=1)

    @field_validator("main_topic", "topic_summary")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def _unique_sorted_orders(self) -> LearningIndex:
        orders = [m.order for m in self.learning_modules]
        if len(set(orders)) != len(orders):
            logger.warning("Duplicate module order values %s; renumbering in received order", orders)
            for position, module in enumerate(self.learning_modules, start=1):
                module.order = position
        self.learning_modules.sort(key=lambda m: m.order)
        return self

    def module_by_order(self, order: int) -> LearningModule | None:
        for module in self.learning_modules:
            if module.order == order:
                return module
        return None


class ProcessTextRequest(BaseModel):
    text: str = ""
    model: str | None = None


class EnrichModulesRequest(LearningIndex):
    # When set, only this module is searched ("Ground" on a single module).
    module_order: int | None = None


class EnrichedModule(BaseModel):
    module_order: int | None = None
    module_title: str
    resources: list[Resource] = Field(default_factory=list)
    error: str | None = None


class EnrichModulesResponse(BaseModel):
    enriched_modules: list[EnrichedModule]
    learning_index: LearningIndex


class TechnicalAnalysisRequest(BaseModel):
    raw_content: str = ""
    model: str | None = None


class TextSection(BaseModel):
    content: str


class ImplementationStep(BaseModel):
    step_number: int
    action_title: str
    why: str
    how: str


class ImplementationGuide(BaseModel):
    steps: list[ImplementationStep]


class Quote(BaseModel):
    quote_text: str
    editors_note: str


class QuoteMining(BaseModel):
    quotes: list[Quote]


class AnalysisSections(BaseModel):
    section_A_technical_explanation: TextSection
    section_B_narrative_explanation: TextSection
    section_C_implementation_guide: ImplementationGuide
    section_D_quote_mining: QuoteMining
    section_E_blind_spots: TextSection


class TechnicalAnalysis(BaseModel):
    response_structure: AnalysisSections


class AuthRequest(BaseModel):
    password: str


class ExtractRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Public URL to fetch and extract server-side")


class ExtractResponse(BaseModel):
    url: str
    raw_content: str


class ModelOptionResponse(BaseModel):
    value: str
    label: str
    cost: float
