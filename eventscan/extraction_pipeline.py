"""
Extraction pipeline: tries the LLM first, falls back to the heuristic extractor.
Exactly one stage's candidate is returned; results are never merged.
"""

from typing import List, Optional

from eventscan.datetime_detector import DateTimeDetector
from eventscan.event_models import EventCandidate
from eventscan.heuristic_extractor import HeuristicExtractionStage
from eventscan.logging_helper import Log
from eventscan.model_extractor import ModelExtractionStage
from eventscan.settings_manager import ExtractionConfig
from eventscan.text_llm_client import TextLLMClient, get_llm_client


class ExtractionPipeline:
    """
    Ordered fallback chain of extraction stages.

    Each stage has `async extract(text) -> Optional[EventCandidate]`; None means
    the stage is unavailable and the next one is tried.
    """

    def __init__(self, stages: List):
        self.stages = list(stages)

    @classmethod
    def default(cls, client: Optional[TextLLMClient],
                detector: Optional[DateTimeDetector] = None) -> "ExtractionPipeline":
        return cls([
            ModelExtractionStage(client),
            HeuristicExtractionStage(detector),
        ])

    async def run(self, text: str) -> EventCandidate:
        Log.section("Extraction Pipeline")
        Log.info(f"Extracting event from {len(text)} chars of text")

        for stage in self.stages:
            stage_name = getattr(stage, "name", type(stage).__name__)
            try:
                candidate = await stage.extract(text)
            except Exception as e:
                Log.error(f"Stage {stage_name} failed: {e}")
                Log.kv({"stage": "pipeline", "step": stage_name, "result": "failed", "error": str(e)})
                continue

            if candidate is not None:
                Log.kv({"stage": "pipeline", "result": "success", "source": stage_name, "title": candidate.title})
                return candidate
            Log.info(f"Stage {stage_name} unavailable - falling back")

        Log.warn("No stage produced a candidate - using defaults")
        Log.kv({"stage": "pipeline", "result": "default"})
        return EventCandidate(notes=text, source="default")


class PipelineContext:
    """
    Owns one configuration, its LLM client and the pipeline built on it.

    The client is created on first use and released by close(); the context can
    also be used as a context manager.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 detector: Optional[DateTimeDetector] = None):
        self.config = config if config is not None else ExtractionConfig.from_env()
        self.detector = detector
        self._client: Optional[TextLLMClient] = None
        self._client_loaded = False
        self._pipeline: Optional[ExtractionPipeline] = None

    @property
    def client(self) -> Optional[TextLLMClient]:
        if not self._client_loaded:
            self._client = get_llm_client(self.config)
            self._client_loaded = True
        return self._client

    @property
    def pipeline(self) -> ExtractionPipeline:
        if self._pipeline is None:
            self._pipeline = ExtractionPipeline.default(self.client, self.detector)
        return self._pipeline

    async def run(self, text: str) -> EventCandidate:
        return await self.pipeline.run(text)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._client_loaded = False
        self._pipeline = None

    def __enter__(self) -> "PipelineContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
