"""Tests for the what-if credit simulator."""

import pytest

from arthastra.services.applicant_profile import ApplicantProfile
from arthastra.services.credit_simulator import (
    DEFAULT_RECOMMENDATION,
    RECOMMENDATIONS,
    SimulationScenario,
    project_profile,
    simulate_optimization,
    timeline_bucket,
)

BORROWER = ApplicantProfile(monthly_income=50000, existing_emi=15000, credit_score=680)


class TestProjection:

    def test_payoff_capped_at_a_year_of_emi(self):
        profile = BORROWER.normalize()
        projected = project_profile(profile, SimulationScenario(pay_off_debt=10_000_000))
        assert projected.existing_emi == 0

    def test_score_capped_and_history_assumed(self):
        profile = ApplicantProfile(credit_score=880, has_credit_history=False).normalize()
        projected = project_profile(profile, SimulationScenario(improve_score=50))
        assert projected.credit_score == 900
        assert projected.has_credit_history is True

    def test_joint_adds_coapplicant_income(self):
        profile = BORROWER.normalize()
        projected = project_profile(profile, SimulationScenario(joint_application=True))
        assert projected.total_income == 90000


class TestSimulate:

    def test_no_change_scenario(self):
        result = simulate_optimization(BORROWER, SimulationScenario())
        assert result.improvement_amount == 0
        assert result.impacts == []
        assert result.recommendation == DEFAULT_RECOMMENDATION
        assert result.timeline == "Immediate"

    def test_monotone_in_payoff(self):
        amounts = [
            simulate_optimization(BORROWER, SimulationScenario(pay_off_debt=p)).projected.max_amount
            for p in (0, 10000, 50000, 100000, 180000, 500000)
        ]
        assert amounts == sorted(amounts)
        assert amounts[-1] > amounts[0]

    def test_joint_application_recommended_first(self):
        result = simulate_optimization(
            BORROWER, SimulationScenario(joint_application=True, increase_income=50000),
        )
        assert result.projected.max_amount > result.current.max_amount
        assert result.recommendation == RECOMMENDATIONS["Joint Application"]
        assert {i.factor for i in result.impacts} == {"Income Growth", "Joint Application"}

    def test_largest_impact_wins(self):
        result = simulate_optimization(BORROWER, SimulationScenario(increase_income=40000, improve_score=10))
        assert result.recommendation == RECOMMENDATIONS["Income Growth"]

    def test_impact_caps(self):
        result = simulate_optimization(
            BORROWER, SimulationScenario(pay_off_debt=900000, increase_income=900000, improve_score=200),
        )
        changes = {i.factor: i.change for i in result.impacts}
        assert changes == {"Debt Reduction": 20, "Income Growth": 25, "Credit Score": 15}

    def test_seasoning_bonus(self):
        plain = simulate_optimization(BORROWER, SimulationScenario(wait_months=5))
        seasoned = simulate_optimization(BORROWER, SimulationScenario(wait_months=6))
        assert plain.projected.max_amount == plain.current.max_amount
        assert seasoned.projected.max_amount == int(seasoned.current.max_amount * 1.05)

    def test_improvement_percentage(self):
        result = simulate_optimization(BORROWER, SimulationScenario(increase_income=20000))
        expected = result.improvement_amount / result.current.max_amount * 100
        assert result.improvement_percentage == pytest.approx(expected, abs=0.05)


class TestTimeline:

    @pytest.mark.parametrize("scenario,bucket", [
        (SimulationScenario(), "Immediate"),
        (SimulationScenario(joint_application=True), "1-3 months"),
        (SimulationScenario(improve_score=30), "1-3 months"),
        (SimulationScenario(pay_off_debt=60000), "3-6 months"),
        (SimulationScenario(wait_months=9), "6-12 months"),
    ])
    def test_buckets(self, scenario, bucket):
        assert timeline_bucket(scenario) == bucket
