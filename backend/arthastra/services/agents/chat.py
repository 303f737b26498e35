"""Conversational advisor: route, enrich with a specialist, then answer in persona."""

import json
import logging
from typing import Optional

from arthastra.services.agents import prompts
from arthastra.services.agents.loan_officer import LoanOfficerAgent
from arthastra.services.agents.recovery import RecoveryAgent
from arthastra.services.agents.router import AgentRouter, GENERAL, LOAN_OFFICER, RECOVERY
from arthastra.services.ai.errors import LLMError
from arthastra.services.ai.llm_client import LLMClient
from arthastra.services.applicant_profile import ApplicantProfile

logger = logging.getLogger(__name__)


class ChatResponder:
    def __init__(self, llm: LLMClient):
        self.llm = llm
        self.router = AgentRouter(llm)
        self.loan_officer = LoanOfficerAgent(llm)
        self.recovery = RecoveryAgent(llm)

    async def _specialist_context(self, agent: str, context: Optional[dict]) -> str:
        """Run the specialist for the routed agent.

        A failing specialist only costs the extra context; the chat reply
        still goes out.
        """
        profile = ApplicantProfile.from_mapping(context)
        try:
            if agent == LOAN_OFFICER:
                data = await self.loan_officer.recommend_loans(profile)
                header = "REAL-TIME AGENT ANALYSIS:"
            elif agent == RECOVERY:
                data = await self.recovery.generate_recovery_plan(profile)
                header = "REAL-TIME AGENT ANALYSIS (CIBIL & RECOVERY PLAN):"
            else:
                return ""
        except LLMError as exc:
            logger.warning("[Chat] %s specialist failed, answering without it: %s", agent, exc)
            return ""
        return f"{header}\n{json.dumps(data)}\nUse this data to answer accurately."

    def system_prompt(self, agent: str, language: str, context: Optional[dict], agent_context: str) -> str:
        profile_context = (
            f"User Profile: {json.dumps(context)}" if context else "No user profile available yet."
        )
        return prompts.render(
            prompts.CHAT_SYSTEM,
            persona=prompts.PERSONAS.get(agent, prompts.PERSONAS[GENERAL]),
            language_instruction=prompts.LANGUAGE_INSTRUCTIONS.get(language, prompts.LANGUAGE_INSTRUCTIONS["en"]),
            profile_context=profile_context,
            agent_context=agent_context,
            agent=agent,
        )

    async def reply(self, messages: list[dict], language: str = "en",
                    context: Optional[dict] = None) -> dict:
        """Answer the last message of ``messages``.

        Returns ``{"response": str, "agent": str}``. Errors from the final
        completion propagate to the caller.
        """
        if not messages:
            raise ValueError("messages must not be empty")
        last = messages[-1]
        history = messages[:-1]
        context = context if context is not None else last.get("context")

        decision = await self.router.route(last.get("content", ""), history)
        agent = decision.selected_agent
        logger.info("[Chat] Routed to: %s", agent)

        agent_context = await self._specialist_context(agent, context)
        conversation = [{"role": "system", "content": self.system_prompt(agent, language, context, agent_context)}]
        for msg in history:
            role = "user" if msg.get("role") == "user" else "assistant"
            conversation.append({"role": role, "content": msg.get("content", "")})
        conversation.append({"role": "user", "content": last.get("content", "")})

        text = await self.llm.complete(conversation, caller="Chat")
        logger.info("[Chat] Response received (%d chars)", len(text))
        return {"response": text, "agent": agent}
