# claimcare/core/dependencies.py
from claimcare.core.config import settings
from claimcare.core.logging import get_logger

logger = get_logger(__name__)

# ===================
# Stores
# ===================

_claim_store = None
_policy_store = None
_approval_ledger = None

def _data_dir():
    return settings.DATA_DIR if settings.PERSIST_TO_DISK else None

def get_claim_store():
    """Get claim store instance."""
    global _claim_store
    if _claim_store is None:
        from claimcare.storage.claim_store import ClaimStore
        _claim_store = ClaimStore(data_dir=_data_dir())
        logger.info("Claim store initialized", persisted=settings.PERSIST_TO_DISK)
    return _claim_store

def get_policy_store():
    """Get policy store instance."""
    global _policy_store
    if _policy_store is None:
        from claimcare.storage.policy_store import PolicyStore
        _policy_store = PolicyStore(data_dir=_data_dir())
        logger.info("Policy store initialized")
    return _policy_store

def get_approval_ledger():
    global _approval_ledger
    if _approval_ledger is None:
        from claimcare.storage.approval_store import ApprovalLedger
        _approval_ledger = ApprovalLedger()
    return _approval_ledger

# ===================
# Scoring Collaborators
# ===================

_signal_provider = None
_blacklist = None

def get_signal_provider():
    """Seedable fraud-signal provider."""
    global _signal_provider
    if _signal_provider is None:
        from claimcare.ai.signals import RandomSignalProvider
        _signal_provider = RandomSignalProvider(seed=settings.SIGNAL_PROVIDER_SEED)
        logger.info("Signal provider initialized", seed=settings.SIGNAL_PROVIDER_SEED)
    return _signal_provider

def get_blacklist():
    global _blacklist
    if _blacklist is None:
        from claimcare.ai.signals import SetBlacklist
        _blacklist = SetBlacklist(settings.FRAUD_BLACKLIST_NIKS)
        logger.info("Fraud blacklist loaded", entries=len(settings.FRAUD_BLACKLIST_NIKS))
    return _blacklist

# ===================
# Service Instances
# ===================

_fraud_detector = None
_risk_scorer = None
_rule_engine = None
_approval_manager = None
_sla_monitor = None
_claim_pipeline = None
_decision_service = None

def get_fraud_detector():
    """Get fraud detector service."""
    global _fraud_detector
    if _fraud_detector is None:
        from claimcare.ai.fraud_detection import FraudDetector
        _fraud_detector = FraudDetector(
            signals=get_signal_provider(),
            blacklist=get_blacklist(),
            history=get_claim_store()
        )
        logger.info("Fraud detector initialized")
    return _fraud_detector

def get_risk_scorer():
    global _risk_scorer
    if _risk_scorer is None:
        from claimcare.ai.risk_scoring import RiskScorer
        _risk_scorer = RiskScorer(get_fraud_detector(), history=get_claim_store())
    return _risk_scorer

def get_rule_engine():
    global _rule_engine
    if _rule_engine is None:
        from claimcare.services.rule_engine import RuleEngine
        _rule_engine = RuleEngine()
        logger.info("Rule engine initialized", rules=len(_rule_engine.rules))
    return _rule_engine

def get_approval_manager():
    """Get approval workflow manager."""
    global _approval_manager
    if _approval_manager is None:
        from claimcare.services.approval import ApprovalManager
        _approval_manager = ApprovalManager(ledger=get_approval_ledger())
    return _approval_manager

def get_sla_monitor():
    global _sla_monitor
    if _sla_monitor is None:
        from claimcare.services.sla_monitor import SLAMonitor
        _sla_monitor = SLAMonitor()
    return _sla_monitor

def get_claim_pipeline():
    """Get the claim evaluation pipeline."""
    global _claim_pipeline
    if _claim_pipeline is None:
        from claimcare.workflows.claim_pipeline import ClaimPipeline
        _claim_pipeline = ClaimPipeline(
            claim_store=get_claim_store(),
            policy_store=get_policy_store(),
            rule_engine=get_rule_engine(),
            fraud_detector=get_fraud_detector(),
            risk_scorer=get_risk_scorer(),
            sla_monitor=get_sla_monitor()
        )
        logger.info("Claim pipeline initialized")
    return _claim_pipeline

def get_decision_service():
    global _decision_service
    if _decision_service is None:
        from claimcare.workflows.claim_decisioning import ClaimDecisionService
        _decision_service = ClaimDecisionService(
            claim_store=get_claim_store(),
            approval_manager=get_approval_manager()
        )
    return _decision_service

# ===================
# Cleanup
# ===================

def reset_dependencies():
    """Drop every cached instance, so the next request rebuilds them."""
    global _claim_store, _policy_store, _approval_ledger, _signal_provider, _blacklist
    global _fraud_detector, _risk_scorer, _rule_engine, _approval_manager
    global _sla_monitor, _claim_pipeline, _decision_service

    _claim_store = _policy_store = _approval_ledger = None
    _signal_provider = _blacklist = None
    _fraud_detector = _risk_scorer = _rule_engine = _approval_manager = None
    _sla_monitor = _claim_pipeline = _decision_service = None
    logger.info("Dependencies reset")
