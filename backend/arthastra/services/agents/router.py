"""Route a chat turn to the specialist agent that should answer it.

Keyword heuristics handle the common phrasings without an LLM call; anything
else goes to the orchestrator prompt. Routing never fails: every error
degrades to the GENERAL agent.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Optional

from arthastra.services.agents import prompts
from arthastra.services.agents.base import BaseAgent
from arthastra.services.ai.llm_client import LLMClient

logger = logging.getLogger(__name__)

ONBOARDING = "ONBOARDING"
LOAN_OFFICER = "LOAN_OFFICER"
RECOVERY = "RECOVERY"
GENERAL = "GENERAL"
AGENTS = (ONBOARDING, LOAN_OFFICER, RECOVERY, GENERAL)

# Checked in order; first agent with a matching substring wins
KEYWORD_ROUTES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (RECOVERY, ("reject", "decline", "score", "cibil")),
    (LOAN_OFFICER, ("loan", "emi", "rate", "bank", "eligib", "qualify")),
    (ONBOARDING, ("name", "hello", "hi")),
)

ROUTING_TEMPERATURE = 0.1
HISTORY_TURNS = 2


@dataclass
class RoutingDecision:
    selected_agent: str
    reason: str
    refined_input: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def keyword_route(text: str) -> Optional[str]:
    lowered = text.lower()
    for agent, keywords in KEYWORD_ROUTES:
        if any(k in lowered for k in keywords):
            return agent
    return None


def _history_text(history: list[dict]) -> str:
    recent = history[-HISTORY_TURNS:] if history else []
    lines = [f"{m.get('role', 'user')}: {m.get('content', '')}" for m in recent]
    return "\n".join(lines) or "No history"


class AgentRouter(BaseAgent):
    def __init__(self, llm: LLMClient):
        super().__init__("Orchestrator", "Routing and Intent Classification", llm)

    async def route(self, text: str, history: Optional[list[dict]] = None) -> RoutingDecision:
        agent = keyword_route(text)
        if agent:
            logger.info("Routed to %s (keyword match)", agent)
            return RoutingDecision(selected_agent=agent, reason="Keyword match")

        try:
            prompt = prompts.render(
                prompts.ORCHESTRATOR,
                user_input=text,
                history=_history_text(history or []),
            )
            data = await self.generate_json(prompt, temperature=ROUTING_TEMPERATURE)
        except Exception as exc:
            logger.warning("Routing failed, falling back to %s: %s", GENERAL, exc)
            return RoutingDecision(selected_agent=GENERAL, reason="Routing failed", refined_input=text)

        selected = str(data.get("selectedAgent") or "").upper()
        if selected not in AGENTS:
            selected = GENERAL
        decision = RoutingDecision(
            selected_agent=selected,
            reason=str(data.get("reason") or ""),
            refined_input=data.get("refinedInput") or None,
        )
        logger.info("Routed to %s (%s)", decision.selected_agent, decision.reason)
        return decision
