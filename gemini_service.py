# gemini_service.py
"""
Remote analysis service.

AnalysisService is the single seam between the workflow and the hosted
model: one call, request in, raw JSON text out. GeminiAnalysisService is the
production implementation on top of LangChain's Google GenAI chat model;
tests swap in a fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.messages import HumanMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_google_genai import ChatGoogleGenerativeAI

from app_logger import get_logger, init_logging
from docwise_config import DocWiseConfig, load_config, require_api_key
from docwise_workflow import AnalysisRequest

init_logging()
logger = get_logger(__name__)


class AnalysisService(ABC):
    @abstractmethod
    def generate(self, request: AnalysisRequest) -> Optional[str]:
        """Send the request and return the model's text payload (None if it produced nothing)."""
        ...


def build_messages(request: AnalysisRequest) -> list:
    """Instructions first, then the content parts in input order, all in one user turn."""
    content = [{"type": "text", "text": request.instructions}, *request.parts]
    return [HumanMessage(content=content)]


class GeminiAnalysisService(AnalysisService):
    def __init__(self, config: DocWiseConfig):
        self.config = config
        self.api_key = require_api_key(config)

    def build_llm(self, request: AnalysisRequest):
        model_id = self.config.model_for_tier(request.model_tier)
        llm = ChatGoogleGenerativeAI(
            model=model_id,
            google_api_key=self.api_key,
            temperature=self.config.temperature,
            response_mime_type="application/json",
            response_schema=request.response_schema,
        )
        if request.web_search:
            # Live retrieval for URL inputs
            return llm.bind_tools([{"google_search": {}}])
        return llm

    def generate(self, request: AnalysisRequest) -> Optional[str]:
        model_id = self.config.model_for_tier(request.model_tier)
        logger.info("Gemini: invoking %s (%d parts)", model_id, len(request.parts))
        chain = self.build_llm(request) | StrOutputParser()
        return chain.invoke(build_messages(request))


def build_service(api_key: Optional[str] = None) -> GeminiAnalysisService:
    """Process-start constructor: config from env, optionally with a key typed in the UI."""
    return GeminiAnalysisService(load_config(api_key))
