# claimcare/services/rule_engine.py
"""Declarative coverage and exclusion rules."""

from datetime import date
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from claimcare.core.constants import (
    ClaimType, RuleAction, RULE_CATEGORY_ALL, RULE_NOT_TRIGGERED,
    BENEFICIARY_MATCH_THRESHOLD, DEFAULT_MAX_BENEFIT
)
from claimcare.core.logging import get_logger
from claimcare.models.base import utcnow
from claimcare.models.claim import Claim
from claimcare.models.decisioning import RuleResult, RuleRecommendation
from claimcare.services.document_requirements import check_completeness

logger = get_logger(__name__)


# ===================
# Condition Variants
# ===================

class TextContains(BaseModel):
    """First non-empty field among `paths` contains any keyword (case-insensitive)."""
    kind: Literal["text_contains"] = "text_contains"
    paths: List[str]
    keywords: List[str]


class PolicyAgeBelow(BaseModel):
    """Calendar months since policy start are below `months`."""
    kind: Literal["policy_age_below"] = "policy_age_below"
    months: int


class DaysAfterPolicyStartBelow(BaseModel):
    """The date at `path` falls fewer than `days` after policy start."""
    kind: Literal["days_after_policy_start_below"] = "days_after_policy_start_below"
    path: str
    days: int


class AmountExceedsBenefit(BaseModel):
    kind: Literal["amount_exceeds_benefit"] = "amount_exceeds_benefit"
    default_limit: float = DEFAULT_MAX_BENEFIT


class DocumentsComplete(BaseModel):
    kind: Literal["documents_complete"] = "documents_complete"


class NumberAtLeast(BaseModel):
    kind: Literal["number_at_least"] = "number_at_least"
    path: str
    threshold: float


class AllOf(BaseModel):
    kind: Literal["all_of"] = "all_of"
    conditions: List["Condition"]


Condition = Annotated[
    Union[
        TextContains, PolicyAgeBelow, DaysAfterPolicyStartBelow,
        AmountExceedsBenefit, DocumentsComplete, NumberAtLeast, AllOf
    ],
    Field(discriminator="kind")
]

AllOf.model_rebuild()


class Rule(BaseModel):
    id: str
    name: str
    category: str  # ClaimType value or "All"
    condition: Condition
    action: RuleAction
    priority: int  # Lower runs first
    message: str

    def applies_to(self, claim_type: ClaimType) -> bool:
        return self.category == RULE_CATEGORY_ALL or self.category == claim_type.value


# ===================
# Condition Evaluation
# ===================

def _resolve(claim: Claim, path: str) -> Any:
    value: Any = claim
    for part in path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


def _policy_start(claim: Claim, today: date) -> date:
    if claim.policy_terms and claim.policy_terms.start_date:
        return claim.policy_terms.start_date
    return today


def _text_contains(condition: TextContains, claim: Claim, today: date) -> bool:
    text = ""
    for path in condition.paths:
        value = _resolve(claim, path)
        if value:
            text = str(value).lower()
            break
    return any(keyword.lower() in text for keyword in condition.keywords)


def _policy_age_below(condition: PolicyAgeBelow, claim: Claim, today: date) -> bool:
    start = _policy_start(claim, today)
    months = (today.year - start.year) * 12 + (today.month - start.month)
    return months < condition.months


def _days_after_policy_start_below(condition: DaysAfterPolicyStartBelow, claim: Claim, today: date) -> bool:
    event = _resolve(claim, condition.path) or today
    return (event - _policy_start(claim, today)).days < condition.days


def _amount_exceeds_benefit(condition: AmountExceedsBenefit, claim: Claim, today: date) -> bool:
    limit = condition.default_limit
    if claim.policy_terms and claim.policy_terms.max_benefit:
        limit = claim.policy_terms.max_benefit
    return claim.benefit_amount > limit


def _documents_complete(condition: DocumentsComplete, claim: Claim, today: date) -> bool:
    result = check_completeness(
        claim.claim_type, claim.uploaded_document_types, claim.incident.conditions
    )
    return result.complete


def _number_at_least(condition: NumberAtLeast, claim: Claim, today: date) -> bool:
    value = _resolve(claim, condition.path) or 0
    return value >= condition.threshold


def _all_of(condition: AllOf, claim: Claim, today: date) -> bool:
    return all(evaluate_condition(c, claim, today) for c in condition.conditions)


_HANDLERS: Dict[str, Callable[[Any, Claim, date], bool]] = {
    "text_contains": _text_contains,
    "policy_age_below": _policy_age_below,
    "days_after_policy_start_below": _days_after_policy_start_below,
    "amount_exceeds_benefit": _amount_exceeds_benefit,
    "documents_complete": _documents_complete,
    "number_at_least": _number_at_least,
    "all_of": _all_of,
}


def evaluate_condition(condition: BaseModel, claim: Claim, today: date) -> bool:
    return bool(_HANDLERS[condition.kind](condition, claim, today))


# ===================
# Built-in Rules
# ===================

DEFAULT_RULES: List[Rule] = [
    Rule(
        id="RULE_001",
        name="Suicide Exclusion",
        category=ClaimType.LIFE.value,
        condition=AllOf(conditions=[
            TextContains(paths=["incident.cause_of_death"], keywords=["suicide"]),
            PolicyAgeBelow(months=24),
        ]),
        action=RuleAction.DENY,
        priority=1,
        message="Claim denied: Suicide within 2-year exclusion period"
    ),
    Rule(
        id="RULE_002",
        name="Pre-existing Condition",
        category=ClaimType.CRITICAL_ILLNESS.value,
        condition=DaysAfterPolicyStartBelow(path="incident.diagnosis_date", days=90),
        action=RuleAction.REVIEW,
        priority=2,
        message="Manual review required: Possible pre-existing condition"
    ),
    Rule(
        id="RULE_003",
        name="Maximum Benefit Limit",
        category=RULE_CATEGORY_ALL,
        condition=AmountExceedsBenefit(),
        action=RuleAction.FLAG,
        priority=3,
        message="Claim amount exceeds maximum benefit limit"
    ),
    Rule(
        id="RULE_004",
        name="Valid Critical Illness",
        category=ClaimType.CRITICAL_ILLNESS.value,
        condition=TextContains(
            paths=["incident.diagnosis"],
            keywords=["cancer", "heart attack", "stroke", "kidney failure", "organ transplant"]
        ),
        action=RuleAction.APPROVE,
        priority=4,
        message="Valid critical illness diagnosis confirmed"
    ),
    Rule(
        id="RULE_005",
        name="Document Completeness",
        category=RULE_CATEGORY_ALL,
        condition=DocumentsComplete(),
        action=RuleAction.APPROVE,
        priority=5,
        message="All required documents are present"
    ),
    Rule(
        id="RULE_006",
        name="Drunk Driving Exclusion",
        category=ClaimType.ACCIDENT.value,
        condition=TextContains(paths=["incident.police_report"], keywords=["alcohol", "dui", "drunk"]),
        action=RuleAction.DENY,
        priority=1,
        message="Claim denied: Accident caused by drunk driving"
    ),
    Rule(
        id="RULE_007",
        name="War/Terrorism Exclusion",
        category=RULE_CATEGORY_ALL,
        condition=TextContains(
            paths=["incident.cause_of_death", "incident.cause_of_injury"],
            keywords=["war", "terrorism", "military"]
        ),
        action=RuleAction.DENY,
        priority=1,
        message="Claim denied: War/terrorism exclusion applies"
    ),
    Rule(
        id="RULE_008",
        name="Beneficiary Verification",
        category=ClaimType.LIFE.value,
        condition=NumberAtLeast(path="beneficiary.match_score", threshold=BENEFICIARY_MATCH_THRESHOLD),
        action=RuleAction.APPROVE,
        priority=6,
        message="Beneficiary identity verified"
    ),
]


# ===================
# Engine
# ===================

class RuleEngine:
    """Evaluates prioritized rules; a triggered deny ends evaluation."""

    def __init__(self, rules: Optional[List[Rule]] = None, clock: Callable = utcnow):
        self._rules: List[Rule] = list(DEFAULT_RULES if rules is None else rules)
        self._clock = clock

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def add_rule(self, rule: Rule):
        self._rules.append(rule)

    def evaluate_claim(self, claim: Claim) -> List[RuleResult]:
        today = self._clock().date()
        applicable = sorted(
            (rule for rule in self._rules if rule.applies_to(claim.claim_type)),
            key=lambda rule: rule.priority
        )

        results: List[RuleResult] = []
        for rule in applicable:
            passed = evaluate_condition(rule.condition, claim, today)
            results.append(RuleResult(
                rule_id=rule.id,
                rule_name=rule.name,
                passed=passed,
                action=rule.action.value if passed else RULE_NOT_TRIGGERED,
                message=rule.message if passed else f"Rule {rule.name} not triggered"
            ))
            if passed and rule.action == RuleAction.DENY:
                logger.info("Exclusion triggered", claim_id=claim.claim_id, rule=rule.id)
                break

        return results

    @staticmethod
    def get_recommended_action(results: List[RuleResult]) -> RuleRecommendation:
        triggered = [r for r in results if r.passed]
        denies = [r for r in triggered if r.action == RuleAction.DENY.value]
        approvals = [r for r in triggered if r.action == RuleAction.APPROVE.value]
        reviews = [r for r in triggered if r.action == RuleAction.REVIEW.value]
        flags = [r for r in triggered if r.action == RuleAction.FLAG.value]

        if denies:
            return RuleRecommendation(
                action=RuleAction.DENY.value,
                confidence=1.0,
                reasons=[r.message for r in denies]
            )

        if reviews or flags:
            return RuleRecommendation(
                action=RuleAction.REVIEW.value,
                confidence=0.6,
                reasons=[r.message for r in reviews + flags]
            )

        if len(approvals) >= 2:
            return RuleRecommendation(
                action=RuleAction.APPROVE.value,
                confidence=min(0.9, 0.3 + len(approvals) * 0.15),
                reasons=[r.message for r in approvals]
            )

        return RuleRecommendation(
            action=RuleAction.REVIEW.value,
            confidence=0.5,
            reasons=["Insufficient data for automatic decision"]
        )
