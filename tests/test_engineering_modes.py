"""Tests for the engineering, computability, cryptanalytic and algorithmic modes."""

from __future__ import annotations

import pytest

from deepthinking.modes.handlers.engineering import (
    MasterTheorem,
    closest_language,
    evidence_weight,
    index_of_coincidence,
    machine_defects,
    master_theorem,
    polynomial_exponent,
    rating,
)
from deepthinking.modes.scoring import EvidenceConclusion


def _trade_study() -> dict:
    return {
        "title": "Storage backend",
        "alternatives": [{"id": "a1", "name": "Postgres"}, {"id": "a2", "name": "SQLite"}],
        "criteria": [{"id": "c1", "name": "Cost", "weight": 0.6}, {"id": "c2", "name": "Scale", "weight": 0.4}],
        "scores": [
            {"alternativeId": "a1", "criteriaId": "c1", "score": 8},
            {"alternativeId": "a1", "criteriaId": "c2", "score": 5},
            {"alternativeId": "a2", "criteriaId": "c1", "score": 6},
            {"alternativeId": "a2", "criteriaId": "c2", "score": 9},
        ],
    }


class TestEngineering:
    """Tests for requirements, trade studies, FMEA and design decisions."""

    def test_requirement_warnings(self, factory, make_input) -> None:
        raw = make_input(
            "engineering",
            requirements=[
                {"id": "R1", "title": "Latency", "priority": "urgent"},
                {"id": "R1", "verificationMethod": "vibes"},
            ],
        )
        messages = factory.validate(raw).warning_messages
        assert "No design challenge specified" in messages
        assert "Duplicate requirement id: R1" in messages
        assert "Requirement has no title" in messages
        assert "Unknown priority: urgent" in messages
        assert "Unknown verification method: vibes" in messages

    def test_trade_study_weights_and_missing_scores(self, factory, make_input) -> None:
        study = _trade_study()
        study["criteria"][1]["weight"] = 0.2
        study["scores"] = study["scores"][:3]
        messages = factory.validate(make_input("engineering", designChallenge="Pick", tradeStudy=study)).warning_messages
        assert "Criteria weights sum to 0.80, should be 1.0" in messages
        assert "1 score(s) missing" in messages

    def test_trade_study_recommends_highest_total(self, factory, make_input) -> None:
        raw = make_input("engineering", analysisType="trade-study", designChallenge="Pick", tradeStudy=_trade_study())
        thought = factory.create_thought(raw, "s")
        assert thought.thought_type == "trade_study"
        assert thought.trade_study.totals["a1"] == pytest.approx(6.8)
        assert thought.trade_study.totals["a2"] == pytest.approx(7.2)
        assert thought.trade_study.recommendation == "a2"
        assert "Recommended alternative: a2" in factory.get_enhancements(thought).suggestions

    def test_tied_alternatives(self, factory, make_input) -> None:
        study = _trade_study()
        study["scores"][3]["score"] = 8
        thought = factory.create_thought(make_input("engineering", tradeStudy=study), "s")
        warnings = factory.get_enhancements(thought).warnings
        assert "Top alternatives are tied - run a sensitivity analysis" in warnings

    def test_fmea_rpn(self, factory, make_input) -> None:
        fmea = {
            "failureModes": [
                {"id": "fm1", "component": "Pump", "severity": 9, "occurrence": 5, "detection": 4},
                {"id": "fm2", "component": "Seal", "severity": 12, "occurrence": 1, "detection": 1, "mitigation": "x"},
            ]
        }
        raw = make_input("engineering", analysisType="fmea", designChallenge="Cooling", fmea=fmea)
        messages = factory.validate(raw).warning_messages
        assert "High-RPN failure mode (180) has no mitigation" in messages
        assert "Severity rating (12) should be between 1 and 10" in messages

        thought = factory.create_thought(raw, "s")
        assert thought.thought_type == "fmea_analysis"
        assert [m.rpn for m in thought.fmea.failure_modes] == [180, 10]
        enhancements = factory.get_enhancements(thought)
        assert enhancements.metrics["max_rpn"] == 180
        assert enhancements.metrics["average_rpn"] == 95.0
        assert "1 failure mode(s) exceed RPN threshold 100" in enhancements.warnings

    def test_rating_clamps(self) -> None:
        assert rating(0) == 1
        assert rating(11) == 10
        assert rating("bogus") == 1
        assert rating(7) == 7

    def test_decisions_and_traceability(self, factory, make_input) -> None:
        raw = make_input(
            "engineering",
            designChallenge="API gateway",
            requirements=[
                {"id": "R1", "title": "Auth", "priority": "must", "tracesTo": ["N1"]},
                {"id": "R2", "title": "Logs"},
            ],
            designDecisions=[{"id": "D1", "title": "Use JWT", "decision": "JWT tokens"}],
            assessmentConfidence=0.4,
            keyRisks=["Token leakage"],
        )
        enhancements = factory.get_enhancements(factory.create_thought(raw, "s"))
        assert "1 requirement(s) not traced to a source" in enhancements.warnings
        assert "Assign verification methods to must-have requirements: R1" in enhancements.suggestions
        assert "Decisions awaiting acceptance: D1" in enhancements.suggestions
        assert "Low assessment confidence - gather more data before committing" in enhancements.warnings
        assert "Key risk: Token leakage" in enhancements.warnings

    def test_decision_warnings(self, factory, make_input) -> None:
        raw = make_input("engineering", designChallenge="x", designDecisions=[{"status": "pondering"}])
        messages = factory.validate(raw).warning_messages
        assert "Unknown decision status: pondering" in messages
        assert "Design decision does not state what was decided" in messages


class TestComputability:
    """Tests for machine definitions, proofs and reductions."""

    def test_machine_defects(self) -> None:
        machine = {
            "states": ["q0", "q1"],
            "acceptStates": ["q1", "q9"],
            "rejectStates": ["q1"],
            "transitions": [
                {"fromState": "q0", "readSymbol": "0", "toState": "q1"},
                {"fromState": "q0", "readSymbol": "0", "toState": "q5"},
            ],
        }
        defects = machine_defects(machine)
        assert "Halting state q9 is not a declared state" in defects
        assert "Transition references undeclared state: q5" in defects
        assert "State q1 is both accepting and rejecting" in defects
        assert "Deterministic machine has 2 transitions from (q0, 0)" in defects

    def test_nondeterministic_machine_allows_branching(self) -> None:
        machine = {
            "type": "nondeterministic",
            "states": ["q0", "q1"],
            "transitions": [
                {"fromState": "q0", "readSymbol": "0", "toState": "q0"},
                {"fromState": "q0", "readSymbol": "0", "toState": "q1"},
            ],
        }
        assert machine_defects(machine) == []

    def test_empty_machine_warnings(self, factory, make_input) -> None:
        messages = factory.validate(make_input("computability", machines=[{"name": "M"}])).warning_messages
        assert "No states defined" in messages
        assert "No transitions defined" in messages
        assert "No accept states defined" in messages

    def test_machine_definition_without_machines(self, factory, make_input) -> None:
        raw = make_input("computability", thoughtType="machine_definition")
        assert "Machine definition thought without machines specified" in factory.validate(raw).warning_messages

    def test_reduction_chain_and_enhancements(self, factory, make_input) -> None:
        raw = make_input(
            "computability",
            thoughtType="reduction_construction",
            machines=[{"states": ["q0"], "transitions": [], "acceptStates": ["q0"]}],
            reductions=[
                {"fromProblem": "HALT", "toProblem": "A_TM", "type": "many_one", "forwardDirection": "x"},
                {"fromProblem": "A_TM", "toProblem": "E_TM", "type": "many_one", "forwardDirection": "y"},
            ],
            uncertainty=0.9,
        )
        thought = factory.create_thought(raw, "s")
        assert thought.reduction_chain == ["HALT", "A_TM", "E_TM"]
        enhancements = factory.get_enhancements(thought)
        assert "Machine type: deterministic" in enhancements.suggestions
        assert "HALT ≤ A_TM" in enhancements.suggestions
        assert "Reduction chain: HALT ≤ A_TM ≤ E_TM" in enhancements.suggestions
        assert "High uncertainty - verify proof steps carefully" in enhancements.warnings

    def test_reduction_warnings(self, factory, make_input) -> None:
        raw = make_input("computability", reductions=[{"fromProblem": "HALT"}])
        messages = factory.validate(raw).warning_messages
        assert "Reduction missing source or target problem" in messages
        assert "No correctness proof provided" in messages

    def test_decidability_proof_warnings(self, factory, make_input) -> None:
        raw = make_input("computability", decidabilityProof={"method": "reduction"})
        messages = factory.validate(raw).warning_messages
        assert "No problem specified" in messages
        assert "No proof steps provided" in messages
        assert "Reduction proof without reduction details" in messages


class TestCryptanalytic:
    """Tests for deciban evidence and frequency analysis."""

    def test_evidence_weight(self) -> None:
        assert evidence_weight({"decibans": 10})[0] == 10
        decibans, ratio = evidence_weight({"likelihoodRatio": 100})
        assert decibans == pytest.approx(20.0)
        assert ratio == 100
        assert evidence_weight({"likelihoodRatio": 0}) == (0.0, 1.0)
        assert evidence_weight({}) == (0.0, 1.0)

    def test_non_positive_ratio_warns(self, factory, make_input) -> None:
        raw = make_input(
            "cryptanalytic",
            hypotheses=[{"description": "Caesar", "evidence": [{"observation": "E is rare", "likelihoodRatio": 0}]}],
        )
        result = factory.validate(raw)
        assert result.valid
        assert "Likelihood ratio (0) must be positive" in result.warning_messages

    def test_observation_without_weight(self, factory, make_input) -> None:
        raw = make_input("cryptanalytic", evidenceChains=[{"hypothesis": "H", "observations": [{"observation": "x"}]}])
        assert "Observation has neither decibans nor a likelihood ratio" in factory.validate(raw).warning_messages

    def test_empty_chain(self, factory, make_input) -> None:
        raw = make_input("cryptanalytic", evidenceChains=[{"hypothesis": "H"}])
        assert "Evidence chain has no observations" in factory.validate(raw).warning_messages

    def test_ciphertext_required_after_formation(self, factory, make_input) -> None:
        assert "No ciphertext provided" in factory.validate(
            make_input("cryptanalytic", thoughtType="frequency_analysis")
        ).warning_messages
        assert "No ciphertext provided" not in factory.validate(
            make_input("cryptanalytic", thoughtType="hypothesis_formation")
        ).warning_messages

    def test_evidence_chains(self, factory, make_input) -> None:
        raw = make_input(
            "cryptanalytic",
            evidenceChains=[
                {"hypothesis": "H1", "observations": [{"decibans": 5}, {"decibans": 8}, {"decibans": 10}]},
                {"hypothesis": "H2", "observations": [{"decibans": -5}, {"decibans": -7}]},
            ],
        )
        thought = factory.create_thought(raw, "s")
        confirmed, open_ = thought.evidence_chains
        assert confirmed.conclusion is EvidenceConclusion.CONFIRMED
        assert open_.conclusion is EvidenceConclusion.INCONCLUSIVE

        enhancements = factory.get_enhancements(thought)
        assert 'Hypothesis "H1": confirmed (23.0 db)' in enhancements.suggestions
        assert not any(s.startswith('Hypothesis "H2"') for s in enhancements.suggestions)
        assert enhancements.metrics["H2_decibans"] == -12

    def test_hypothesis_status_from_score(self, factory, make_input) -> None:
        raw = make_input(
            "cryptanalytic",
            hypotheses=[
                {"description": "Vigenere", "evidence": [{"likelihoodRatio": 10}]},
                {"description": "Enigma", "decibanScore": 25},
                {"description": "Playfair", "decibanScore": -30},
            ],
        )
        thought = factory.create_thought(raw, "s")
        assert [h.status for h in thought.hypotheses] == ["active", "confirmed", "refuted"]
        assert thought.current_hypothesis.deciban_score == pytest.approx(10.0)
        enhancements = factory.get_enhancements(thought)
        assert 'Hypothesis "Vigenere": 10.0 db (inconclusive, need ±20 db)' in enhancements.suggestions

    def test_refuted_current_hypothesis(self, factory, make_input) -> None:
        raw = make_input("cryptanalytic", currentHypothesis={"description": "Rotor", "decibanScore": -25})
        warnings = factory.get_enhancements(factory.create_thought(raw, "s")).warnings
        assert '✗ Hypothesis "Rotor" REFUTED (-25.0 db)' in warnings

    def test_index_of_coincidence(self) -> None:
        assert index_of_coincidence("A") == 0.0
        assert index_of_coincidence("aa bb") == pytest.approx(2 / 6)
        assert closest_language(0.066) == "english"
        assert closest_language(0.039) == "random"

    def test_frequency_and_key_space(self, factory, make_input) -> None:
        raw = make_input(
            "cryptanalytic",
            frequencyAnalysis={"indexOfCoincidence": 0.066},
            keySpaceAnalysis={"totalKeys": 100, "eliminatedKeys": 75},
            banburismusAnalysis=[{"offset": 3, "decibanScore": 4.5}, {"offset": 5, "decibanScore": -1}],
        )
        thought = factory.create_thought(raw, "s")
        assert thought.key_space_analysis.remaining_keys == 25
        enhancements = factory.get_enhancements(thought)
        assert "Index of coincidence closest to english (0.0667)" in enhancements.suggestions
        assert "Key space reduced by factor of 4.00" in enhancements.suggestions
        assert "Significant at offset 3: 4.5 db" in enhancements.suggestions
        assert enhancements.metrics["significant_offsets"] == 1


class TestAlgorithmic:
    """Tests for complexity, recurrences and correctness proofs."""

    @pytest.mark.parametrize(
        ("term", "exponent"),
        [("1", 0.0), ("n", 1.0), ("n^2", 2.0), ("n ^ 1.5", 1.5), (3, 3.0), ("n log n", None)],
    )
    def test_polynomial_exponent(self, term, exponent) -> None:
        assert polynomial_exponent(term) == exponent

    @pytest.mark.parametrize(
        ("a", "b", "f", "case", "solution"),
        [
            (2, 2, "n", 2, "Θ(n log n)"),
            (1, 2, "1", 2, "Θ(log n)"),
            (8, 2, "n^2", 1, "Θ(n^3)"),
            (2, 2, "n^2", 3, "Θ(n^2)"),
        ],
    )
    def test_master_theorem_cases(self, a, b, f, case, solution) -> None:
        theorem = master_theorem({"a": a, "b": b, "f": f})
        assert theorem.case == case
        assert theorem.solution == solution

    def test_master_theorem_rejects_invalid(self) -> None:
        assert master_theorem({"a": 0.5, "b": 2, "f": "n"}) is None
        assert master_theorem({"a": 2, "b": 1, "f": "n"}) is None
        assert master_theorem({"a": 2, "b": 2, "f": "n log n"}) is None
        assert master_theorem("T(n) = 2T(n/2) + n") is None

    def test_critical_exponent(self) -> None:
        assert MasterTheorem(a=4, b=2, k=1).critical_exponent == pytest.approx(2.0)

    def test_claimed_case_mismatch(self, factory, make_input) -> None:
        raw = make_input(
            "algorithmic",
            recurrence={"formula": "T(n) = 2T(n/2) + n", "masterTheorem": {"a": 2, "b": 2, "f": "n", "case": 1}},
        )
        assert "Master theorem case 1 claimed but case 2 applies" in factory.validate(raw).warning_messages

    def test_dp_warnings(self, factory, make_input) -> None:
        messages = factory.validate(make_input("algorithmic", thoughtType="dynamic_programming")).warning_messages
        assert "DP thought without formulation" in messages

        messages = factory.validate(make_input("algorithmic", dpFormulation={"problem": "LCS"})).warning_messages
        assert "DP formulation without recurrence relation" in messages
        assert "No base cases specified" in messages
        assert "Optimal substructure not characterized" in messages

    def test_correctness_proof_warnings(self, factory, make_input) -> None:
        raw = make_input("algorithmic", correctnessProof={"method": "loop_invariant"})
        messages = factory.validate(raw).warning_messages
        assert "No preconditions specified" in messages
        assert "No postconditions specified" in messages
        assert "No termination argument" in messages
        assert "Loop invariant method without invariants" in messages

    def test_definition_without_complexity(self, factory, make_input) -> None:
        raw = make_input("algorithmic", thoughtType="algorithm_definition", designPattern="magic")
        messages = factory.validate(raw).warning_messages
        assert "Algorithm definition without complexity analysis" in messages
        assert "Unknown design pattern: magic" in messages

    def test_recurrence_enhancements(self, factory, make_input) -> None:
        raw = make_input(
            "algorithmic",
            thoughtType="recurrence_solving",
            algorithm="Merge sort",
            timeComplexity={"worstCase": "O(n log n)"},
            recurrence={"formula": "T(n) = 2T(n/2) + n", "masterTheorem": {"a": 2, "b": 2, "f": "n"}},
        )
        thought = factory.create_thought(raw, "s")
        assert thought.recurrence.solution == "Θ(n log n)"
        assert thought.time_complexity.average_case == "O(n log n)"
        enhancements = factory.get_enhancements(thought)
        assert "Time: O(n log n)" in enhancements.suggestions
        assert "Recurrence: T(n) = 2T(n/2) + n" in enhancements.suggestions
        assert "Solution: Θ(n log n)" in enhancements.suggestions
        assert enhancements.metrics["master_theorem_case"] == 2

    def test_nested_dp_formulation(self, factory, make_input) -> None:
        raw = make_input(
            "algorithmic",
            dpFormulation={
                "problem": "Knapsack",
                "recursiveDefinition": {"stateSpace": "dp[i][w]", "recurrence": "max(...)", "baseCases": ["dp[0][w]=0"]},
                "characterization": {"optimalSubstructure": "Prefix optimal"},
            },
        )
        assert factory.validate(raw).warnings == []
        dp = factory.create_thought(raw, "s").dp_formulation
        assert dp.state_space == "dp[i][w]"
        assert dp.base_cases == ["dp[0][w]=0"]
        assert dp.optimal_substructure == "Prefix optimal"
