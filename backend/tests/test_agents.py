"""Tests for the loan officer, recovery agent and chat responder with a mocked LLM."""

import json
from unittest.mock import AsyncMock

import pytest

from arthastra.services.agents.chat import ChatResponder
from arthastra.services.agents.council import CouncilAgent, read_judgment
from arthastra.services.agents.loan_officer import LoanOfficerAgent
from arthastra.services.agents.recovery import RecoveryAgent, recovery_scenario
from arthastra.services.agents.router import LOAN_OFFICER, RECOVERY
from arthastra.services.ai.errors import MalformedModelOutput, QuotaExceededError
from arthastra.services.applicant_profile import ApplicantProfile

RECOVERY_JSON = json.dumps({
    "analysis": [{
        "id": "dti",
        "reason": "High existing debt",
        "severity": "high",
        "improvementTime": "3-6 months",
        "actions": [{"action": "Close one loan", "impact": 25}],
    }],
    "roadmap": "Pay down the personal loan first.",
})


@pytest.fixture
def llm():
    return AsyncMock()


class TestLoanOfficerAgent:

    @pytest.mark.asyncio
    async def test_recommend_loans_keeps_computed_offers(self, llm):
        llm.generate.return_value = '```json\n{"recommendations": [], "overallAdvice": "Apply now"}\n```'
        result = await LoanOfficerAgent(llm).recommend_loans(ApplicantProfile(monthly_income=60000))

        assert len(result["offers"]) == 6
        assert result["analysis"]["overallAdvice"] == "Apply now"
        prompt = llm.generate.await_args.args[0]
        assert "₹60000" in prompt
        assert "Not available" in prompt
        assert result["offers"][0]["bank_name"] in prompt

    @pytest.mark.asyncio
    async def test_analyze_eligibility(self, llm):
        llm.generate.return_value = '{"overallAssessment": "Good", "approvalOdds": 70}'
        profile = ApplicantProfile(monthly_income=50000, existing_emi=10000, credit_score=720)
        result = await LoanOfficerAgent(llm).analyze_eligibility(profile)

        assert result["report"]["financials"]["dti"] == 20.0
        assert result["insights"]["approvalOdds"] == 70
        assert "20.00%" in llm.generate.await_args.args[0]

    @pytest.mark.asyncio
    async def test_malformed_output_raises(self, llm):
        llm.generate.return_value = "Sorry, I can't help with that."
        with pytest.raises(MalformedModelOutput):
            await LoanOfficerAgent(llm).analyze_eligibility(ApplicantProfile())


class TestRecoveryAgent:

    def test_recovery_scenario(self):
        scenario = recovery_scenario(ApplicantProfile(existing_emi=12000))
        assert scenario.pay_off_debt == 36000
        assert scenario.improve_score == 30
        assert scenario.wait_months == 3

    @pytest.mark.asyncio
    async def test_plan_includes_report_and_upside(self, llm):
        llm.generate.return_value = RECOVERY_JSON
        profile = ApplicantProfile(monthly_income=40000, existing_emi=22000, credit_score=610)
        plan = await RecoveryAgent(llm).generate_recovery_plan(profile)

        assert plan["roadmap"] == "Pay down the personal loan first."
        assert plan["analysis"][0]["severity"] == "high"
        assert plan["credit_report"]["score"] == 610
        assert plan["simulation"]["potential_max_loan"] >= 50000
        prompt = llm.generate.await_args.args[0]
        assert "DTI Ratio: 55%" in prompt
        assert "potential_approval_odds" in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize("analysis", [42, "High DTI", {"id": "dti"}, None])
    async def test_analysis_not_a_list(self, llm, analysis):
        llm.generate.return_value = json.dumps({"analysis": analysis, "roadmap": "Wait."})
        plan = await RecoveryAgent(llm).generate_recovery_plan(ApplicantProfile())
        assert plan["analysis"] == analysis
        assert plan["roadmap"] == "Wait."

    @pytest.mark.asyncio
    async def test_no_history_profile(self, llm):
        llm.generate.return_value = RECOVERY_JSON
        plan = await RecoveryAgent(llm).generate_recovery_plan(ApplicantProfile(has_credit_history=False))
        assert plan["credit_report"]["score"] == -1
        assert "No History" in llm.generate.await_args.args[0]


class TestChatResponder:

    @pytest.mark.asyncio
    async def test_recovery_turn_includes_specialist_analysis(self, llm):
        llm.generate.return_value = RECOVERY_JSON
        llm.complete.return_value = "Focus on **one loan** first."
        messages = [
            {"role": "user", "content": "hi"},
            {"role": "model", "content": "Hello!"},
            {"role": "user", "content": "My loan was rejected", "context": {"monthlyIncome": 30000}},
        ]
        result = await ChatResponder(llm).reply(messages)

        assert result == {"response": "Focus on **one loan** first.", "agent": RECOVERY}
        conversation = llm.complete.await_args.args[0]
        assert [m["role"] for m in conversation] == ["system", "user", "assistant", "user"]
        assert "CIBIL & RECOVERY PLAN" in conversation[0]["content"]
        assert '"monthlyIncome": 30000' in conversation[0]["content"]
        assert conversation[-1]["content"] == "My loan was rejected"
        assert llm.complete.await_args.kwargs["caller"] == "Chat"

    @pytest.mark.asyncio
    async def test_specialist_failure_still_answers(self, llm):
        llm.generate.return_value = "not json"
        llm.complete.return_value = "Rates start near 10.25%."
        result = await ChatResponder(llm).reply([{"role": "user", "content": "Which bank has the best rate?"}])

        assert result["agent"] == LOAN_OFFICER
        system = llm.complete.await_args.args[0][0]["content"]
        assert "REAL-TIME AGENT ANALYSIS" not in system
        assert "No user profile available yet." in system

    @pytest.mark.asyncio
    async def test_hindi_instruction(self, llm):
        llm.complete.return_value = "नमस्ते"
        result = await ChatResponder(llm).reply([{"role": "user", "content": "hello"}], language="hi")
        assert result["response"] == "नमस्ते"
        assert "Devanagari" in llm.complete.await_args.args[0][0]["content"]

    @pytest.mark.asyncio
    async def test_empty_messages(self, llm):
        with pytest.raises(ValueError):
            await ChatResponder(llm).reply([])


def _council_llm(llm, judge_reply: str):
    """Answer each council member by the persona named in its prompt."""
    async def _generate(prompt, **kwargs):
        if '"The Optimist"' in prompt and "Applicant:" in prompt:
            return "  Stable salary and low debt. Approve.  "
        if '"The Pessimist"' in prompt and "Applicant:" in prompt:
            return "Thin margin for a ₹9 lakh loan. Reject."
        return judge_reply
    llm.generate.side_effect = _generate
    return llm


class TestCouncilAgent:

    @pytest.mark.asyncio
    async def test_debate_then_verdict(self, llm):
        _council_llm(llm, '```json\n{"verdict": "The Optimist is right.", "approved": true, "confidence": 82}\n```')
        profile = ApplicantProfile(monthly_income=80000, existing_emi=8000, credit_score=760, loan_amount=900000)
        result = await CouncilAgent(llm).convene(profile)

        assert result == {
            "optimist_argument": "Stable salary and low debt. Approve.",
            "pessimist_argument": "Thin margin for a ₹9 lakh loan. Reject.",
            "judge_verdict": "The Optimist is right.",
            "approved": True,
            "confidence": 82,
            "agents": ["optimist", "pessimist", "judge"],
        }
        assert llm.generate.await_count == 3
        judge_call = llm.generate.await_args_list[-1]
        assert judge_call.kwargs["temperature"] == 0.3
        assert judge_call.kwargs["caller"] == "Council"
        judge_prompt = judge_call.args[0]
        assert 'The Optimist said: "Stable salary and low debt. Approve."' in judge_prompt
        assert "DTI Ratio: 10%" in judge_prompt
        assert "Credit Score: 760" in judge_prompt

    @pytest.mark.asyncio
    async def test_advocates_see_normalized_profile(self, llm):
        _council_llm(llm, '{"verdict": "ok", "approved": false, "confidence": 40}')
        await CouncilAgent(llm).convene(ApplicantProfile())

        optimist_prompt = llm.generate.await_args_list[0].args[0]
        assert '"monthly_income": 30000' in optimist_prompt
        assert '"loan_amount": 500000' in optimist_prompt
        assert '"tenure_years": 3' in optimist_prompt

    @pytest.mark.asyncio
    async def test_unreadable_verdict_defaults_to_rejection(self, llm):
        _council_llm(llm, "After much thought I lean towards approval.")
        result = await CouncilAgent(llm).convene(ApplicantProfile(has_credit_history=False))

        assert result["approved"] is False
        assert result["confidence"] == 50
        assert result["judge_verdict"] == "After much thought I lean towards approval."
        assert "Credit Score: N/A" in llm.generate.await_args_list[-1].args[0]

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, llm):
        llm.generate.side_effect = QuotaExceededError("429")
        with pytest.raises(QuotaExceededError):
            await CouncilAgent(llm).convene(ApplicantProfile())


class TestReadJudgment:

    def test_string_booleans_and_clamped_confidence(self):
        assert read_judgment('{"verdict": "Yes", "approved": "true", "confidence": 140}') == ("Yes", True, 100)

    def test_missing_fields(self):
        assert read_judgment('{"approved": 1}') == ("Decision pending", False, 50)

    def test_non_numeric_confidence(self):
        assert read_judgment('{"verdict": "No", "approved": false, "confidence": "high"}') == ("No", False, 50)

    def test_empty_reply(self):
        assert read_judgment("") == ("Decision pending", False, 50)

    def test_long_prose_is_truncated(self):
        verdict, approved, _ = read_judgment("x" * 500)
        assert verdict == "x" * 200
        assert approved is False
