"""Common plumbing for the advisor agents."""

import logging

from arthastra.services.ai.llm_client import LLMClient
from arthastra.services.ai.output_parser import parse_model_json

logger = logging.getLogger(__name__)


class BaseAgent:
    """An LLM-backed specialist.

    Agents hold no client state of their own; the shared ``LLMClient`` owns
    key rotation and model fallback.
    """

    def __init__(self, name: str, role: str, llm: LLMClient):
        self.name = name
        self.role = role
        self.llm = llm

    async def generate(self, prompt: str, **kwargs) -> str:
        return await self.llm.generate(prompt, caller=self.name, **kwargs)

    def parse_json(self, text: str) -> dict:
        return parse_model_json(text)

    async def generate_json(self, prompt: str, **kwargs) -> dict:
        return self.parse_json(await self.generate(prompt, **kwargs))
