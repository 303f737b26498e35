"""Tests for chat routing: keyword fast path and orchestrator fallback."""

from unittest.mock import AsyncMock

import pytest

from arthastra.services.agents.router import (
    GENERAL,
    LOAN_OFFICER,
    ONBOARDING,
    RECOVERY,
    AgentRouter,
    keyword_route,
)
from arthastra.services.ai.errors import QuotaExceededError


class TestKeywordRoute:

    @pytest.mark.parametrize("text,agent", [
        ("My application was rejected", RECOVERY),
        ("REJECTED again", RECOVERY),
        ("how do I fix my CIBIL", RECOVERY),
        ("What will my EMI be?", LOAN_OFFICER),
        ("Best bank for me", LOAN_OFFICER),
        ("Hello there", ONBOARDING),
        ("My name is Asha", ONBOARDING),
    ])
    def test_matches(self, text, agent):
        assert keyword_route(text) == agent

    def test_recovery_checked_before_loans(self):
        assert keyword_route("my loan got declined") == RECOVERY

    def test_no_match(self):
        assert keyword_route("What does APR stand for") is None


class TestAgentRouter:

    @pytest.mark.asyncio
    async def test_keyword_match_skips_llm(self):
        llm = AsyncMock()
        decision = await AgentRouter(llm).route("Loan got rejected")
        assert decision.selected_agent == RECOVERY
        assert decision.reason == "Keyword match"
        llm.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_orchestrator_decides(self):
        llm = AsyncMock()
        llm.generate.return_value = '{"selectedAgent": "loan_officer", "reason": "asks about cost", "refinedInput": "cost"}'
        decision = await AgentRouter(llm).route("What does APR stand for", [{"role": "user", "content": "earlier"}])

        assert decision.selected_agent == LOAN_OFFICER
        assert decision.reason == "asks about cost"
        assert decision.refined_input == "cost"
        prompt = llm.generate.await_args.args[0]
        assert "What does APR stand for" in prompt
        assert "user: earlier" in prompt
        assert llm.generate.await_args.kwargs["temperature"] == 0.1
        assert llm.generate.await_args.kwargs["caller"] == "Orchestrator"

    @pytest.mark.asyncio
    async def test_unknown_agent_becomes_general(self):
        llm = AsyncMock()
        llm.generate.return_value = '{"selectedAgent": "ASTROLOGER", "reason": "?"}'
        decision = await AgentRouter(llm).route("What does APR stand for")
        assert decision.selected_agent == GENERAL

    @pytest.mark.asyncio
    async def test_llm_failure_degrades_to_general(self):
        llm = AsyncMock()
        llm.generate.side_effect = QuotaExceededError("429")
        decision = await AgentRouter(llm).route("What does APR stand for")
        assert decision.selected_agent == GENERAL
        assert decision.reason == "Routing failed"
        assert decision.refined_input == "What does APR stand for"

    @pytest.mark.asyncio
    async def test_unparseable_output_degrades_to_general(self):
        llm = AsyncMock()
        llm.generate.return_value = "I think the loan officer"
        decision = await AgentRouter(llm).route("What does APR stand for")
        assert decision.selected_agent == GENERAL
