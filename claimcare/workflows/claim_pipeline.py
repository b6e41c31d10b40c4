# claimcare/workflows/claim_pipeline.py
"""LangGraph-based claim evaluation pipeline."""

from typing import TypedDict, List, Dict, Any, Optional

from langgraph.graph import StateGraph, END

from claimcare.ai.fraud_detection import FraudDetector
from claimcare.ai.risk_scoring import RiskScorer
from claimcare.core.constants import AIRecommendation, ApprovalTier, RuleAction
from claimcare.core.logging import get_logger
from claimcare.models.base import utcnow
from claimcare.models.claim import AIAnalysis, Claim, ClaimUpdate, PolicyTerms
from claimcare.models.decisioning import (
    ClaimEvaluation, CompletenessResult, EvaluationStep, FraudRiskAssessment,
    PolicyCheck, RiskAssessment, RuleRecommendation, RuleResult
)
from claimcare.models.policy import Policy
from claimcare.services.approval import get_required_approvals
from claimcare.services.document_requirements import check_completeness
from claimcare.services.rule_engine import RuleEngine
from claimcare.services.sla_monitor import SLAMonitor
from claimcare.storage.claim_store import ClaimStore
from claimcare.storage.policy_store import PolicyStore

logger = get_logger(__name__)

# Match score assumed when the policy lists the beneficiary without one
DEFAULT_BENEFICIARY_MATCH = 0.95


# ===================
# State Definition
# ===================

class EvaluationState(TypedDict, total=False):
    """State for the evaluation workflow."""
    # Input
    claim: Claim
    policy: Optional[Policy]

    # Results
    policy_check: PolicyCheck
    completeness: CompletenessResult
    rule_results: List[RuleResult]
    rule_recommendation: RuleRecommendation
    fraud: FraudRiskAssessment
    risk: RiskAssessment
    ai_analysis: AIAnalysis
    approval_tier: ApprovalTier
    final_recommendation: AIRecommendation
    red_flags: List[str]

    steps: List[EvaluationStep]


def merge_recommendations(
    rules: RuleRecommendation,
    ai: AIRecommendation,
    policy_passed: bool = True
) -> AIRecommendation:
    """
    Combine the rule outcome with the AI recommendation.

    A rule deny always wins. A rule review (or a failed policy check) stops
    an auto-approval and sends the claim to manual review.
    """
    if rules.action == RuleAction.DENY.value:
        return AIRecommendation.DENY
    if ai == AIRecommendation.AUTO_APPROVE and (
        rules.action == RuleAction.REVIEW.value or not policy_passed
    ):
        return AIRecommendation.MANUAL_REVIEW
    return ai


class ClaimPipeline:
    """
    Evaluates a stored claim end to end.

    Workflow:
    1. Check the policy and beneficiary
    2. Check document completeness
    3. Evaluate coverage and exclusion rules
    4. Assess fraud risk
    5. Score composite risk
    6. Route to an approval tier
    7. Merge recommendations and collect red flags
    """

    def __init__(
        self,
        claim_store: ClaimStore,
        policy_store: PolicyStore,
        rule_engine: Optional[RuleEngine] = None,
        fraud_detector: Optional[FraudDetector] = None,
        risk_scorer: Optional[RiskScorer] = None,
        sla_monitor: Optional[SLAMonitor] = None
    ):
        self.claim_store = claim_store
        self.policy_store = policy_store
        self.rule_engine = rule_engine or RuleEngine()
        self.fraud_detector = fraud_detector or FraudDetector(history=claim_store)
        self.risk_scorer = risk_scorer or RiskScorer(self.fraud_detector)
        self.sla_monitor = sla_monitor or SLAMonitor()
        self.graph = self._build_graph()

    def _build_graph(self):
        """Build the evaluation workflow graph."""
        workflow = StateGraph(EvaluationState)

        workflow.add_node("policy_check", self._policy_check)
        workflow.add_node("check_documents", self._check_documents)
        workflow.add_node("evaluate_rules", self._evaluate_rules)
        workflow.add_node("assess_fraud", self._assess_fraud)
        workflow.add_node("score_risk", self._score_risk)
        workflow.add_node("route_approval", self._route_approval)
        workflow.add_node("finalize", self._finalize)

        workflow.set_entry_point("policy_check")
        workflow.add_edge("policy_check", "check_documents")
        workflow.add_edge("check_documents", "evaluate_rules")
        workflow.add_edge("evaluate_rules", "assess_fraud")
        workflow.add_edge("assess_fraud", "score_risk")
        workflow.add_edge("score_risk", "route_approval")
        workflow.add_edge("route_approval", "finalize")
        workflow.add_edge("finalize", END)

        return workflow.compile()

    @staticmethod
    def _step(state: EvaluationState, name: str, status: str, details: str = "") -> List[EvaluationStep]:
        return state.get("steps", []) + [
            EvaluationStep(step_name=name, status=status, details=details, timestamp=utcnow())
        ]

    # ===================
    # Nodes
    # ===================

    def _policy_check(self, state: EvaluationState) -> Dict[str, Any]:
        """Verify the policy is active and the beneficiary is on it."""
        claim = state["claim"]
        policy = state.get("policy")

        if policy is None:
            check = PolicyCheck(passed=False, message="Policy not found")
            return {"policy_check": check, "steps": self._step(state, "policy_check", "failed", check.message)}

        updates: Dict[str, Any] = {}
        if claim.policy_terms is None:
            updates["policy_terms"] = PolicyTerms(
                start_date=policy.start_date,
                max_benefit=policy.max_benefit,
                status=policy.status
            )

        beneficiary = policy.find_beneficiary(claim.beneficiary.nik)
        match_score = None
        if beneficiary is not None:
            match_score = beneficiary.match_score if beneficiary.match_score is not None else DEFAULT_BENEFICIARY_MATCH
            updates["beneficiary"] = claim.beneficiary.model_copy(update={"match_score": match_score})

        if not policy.is_active:
            check = PolicyCheck(passed=False, message=f"Policy status: {policy.status.value}", beneficiary_match_score=match_score)
        elif beneficiary is None:
            check = PolicyCheck(passed=False, message="Beneficiary not found in policy")
        else:
            check = PolicyCheck(
                passed=True,
                message=f"Beneficiary match score: {match_score * 100:.0f}%",
                beneficiary_match_score=match_score
            )

        return {
            "claim": claim.model_copy(update=updates) if updates else claim,
            "policy_check": check,
            "steps": self._step(state, "policy_check", "passed" if check.passed else "failed", check.message)
        }

    def _check_documents(self, state: EvaluationState) -> Dict[str, Any]:
        claim = state["claim"]
        result = check_completeness(claim.claim_type, claim.uploaded_document_types, claim.incident.conditions)
        details = (
            "All required documents present" if result.complete
            else "Missing documents: " + ", ".join(d.value for d in result.missing)
        )
        return {
            "completeness": result,
            "steps": self._step(state, "check_documents", "passed" if result.complete else "warning", details)
        }

    def _evaluate_rules(self, state: EvaluationState) -> Dict[str, Any]:
        results = self.rule_engine.evaluate_claim(state["claim"])
        recommendation = RuleEngine.get_recommended_action(results)
        status = "failed" if recommendation.action == RuleAction.DENY.value else "passed"
        return {
            "rule_results": results,
            "rule_recommendation": recommendation,
            "steps": self._step(state, "evaluate_rules", status, f"Rules recommend {recommendation.action}")
        }

    def _assess_fraud(self, state: EvaluationState) -> Dict[str, Any]:
        fraud = self.fraud_detector.assess_fraud_risk(state["claim"])
        status = "warning" if fraud.requires_manual_review or fraud.requires_siu else "passed"
        details = (
            f"{len(fraud.fraud_indicators)} fraud indicators found" if fraud.fraud_indicators
            else "No fraud indicators detected"
        )
        return {"fraud": fraud, "steps": self._step(state, "assess_fraud", status, details)}

    def _score_risk(self, state: EvaluationState) -> Dict[str, Any]:
        claim = state["claim"]
        risk = self.risk_scorer.calculate_comprehensive_risk_score(claim, state["fraud"])
        analysis = self.risk_scorer.generate_ai_analysis(claim, risk)
        return {
            "risk": risk,
            "ai_analysis": analysis,
            "steps": self._step(
                state, "score_risk", "passed",
                f"Overall risk {risk.overall_risk_score:.2f} ({risk.risk_category.value})"
            )
        }

    def _route_approval(self, state: EvaluationState) -> Dict[str, Any]:
        """Tier depends on the freshly computed fraud indicators and risk score."""
        claim = state["claim"].model_copy(update={
            "fraud_indicators": state["fraud"].fraud_indicators,
            "risk_score": state["risk"].overall_risk_score,
        })
        tier, _ = get_required_approvals(claim)
        return {
            "claim": claim,
            "approval_tier": tier,
            "steps": self._step(state, "route_approval", "passed", f"Routed to {tier.value} tier")
        }

    def _finalize(self, state: EvaluationState) -> Dict[str, Any]:
        policy_check = state["policy_check"]
        rules = state["rule_recommendation"]
        final = merge_recommendations(rules, state["risk"].ai_recommendation, policy_check.passed)

        red_flags: List[str] = []
        if not policy_check.passed:
            red_flags.append(policy_check.message)
        red_flags.extend(
            r.message for r in state["rule_results"]
            if r.passed and r.action in (RuleAction.DENY.value, RuleAction.REVIEW.value, RuleAction.FLAG.value)
        )
        red_flags.extend(i.description for i in state["fraud"].fraud_indicators)
        if state["fraud"].blacklist_match:
            red_flags.append("Beneficiary found in fraud blacklist")

        # The stored analysis carries the merged action so auto-approval honours rule outcomes
        analysis = state["ai_analysis"].model_copy(update={"recommended_action": final})

        return {
            "final_recommendation": final,
            "ai_analysis": analysis,
            "red_flags": red_flags,
            "steps": self._step(state, "finalize", "passed", f"Final recommendation {final.value}")
        }

    # ===================
    # Entry Points
    # ===================

    def run(self, claim: Claim, policy: Optional[Policy] = None) -> Dict[str, Any]:
        """Run the graph on an in-memory claim and return the final state."""
        return self.graph.invoke({"claim": claim, "policy": policy, "steps": []})

    def evaluate(self, claim_id: str, actor: str = "system") -> Optional[ClaimEvaluation]:
        """
        Evaluate a stored claim and persist the outcome.

        Returns None when the claim does not exist.
        """
        claim = self.claim_store.get_claim_by_id(claim_id)
        if claim is None:
            return None

        logger.info("Starting evaluation", claim_id=claim_id)
        policy = self.policy_store.get_policy(claim.policy_id)
        final_state = self.run(claim, policy)

        evaluated: Claim = final_state["claim"]
        sla = self.sla_monitor.calculate_sla_status(evaluated)

        self.claim_store.update_claim(claim_id, ClaimUpdate(
            beneficiary=evaluated.beneficiary,
            policy_terms=evaluated.policy_terms,
            fraud_indicators=final_state["fraud"].fraud_indicators,
            risk_score=final_state["risk"].overall_risk_score,
            ai_analysis=final_state["ai_analysis"],
            red_flags=final_state["red_flags"],
            sla_status=sla.status
        ), actor=actor)

        evaluation = ClaimEvaluation(
            claim_id=claim_id,
            steps=final_state["steps"],
            policy_check=final_state["policy_check"],
            completeness=final_state["completeness"],
            rule_results=final_state["rule_results"],
            rule_recommendation=final_state["rule_recommendation"],
            fraud=final_state["fraud"],
            risk=final_state["risk"],
            ai_analysis=final_state["ai_analysis"],
            approval_tier=final_state["approval_tier"],
            final_recommendation=final_state["final_recommendation"],
            red_flags=final_state["red_flags"]
        )

        logger.info(
            "Evaluation complete",
            claim_id=claim_id,
            recommendation=evaluation.final_recommendation.value,
            tier=evaluation.approval_tier.value
        )
        return evaluation
