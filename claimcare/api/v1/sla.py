# claimcare/api/v1/sla.py
from fastapi import APIRouter, Depends
from typing import List

from claimcare.models.sla import OJKReport, SLAMetrics, SLAStatus
from claimcare.core.dependencies import get_claim_store, get_sla_monitor
from claimcare.core.exceptions import ClaimNotFoundError

router = APIRouter()


@router.get("/claims/{claim_id}", response_model=SLAStatus)
async def claim_sla_status(claim_id: str, store=Depends(get_claim_store), monitor=Depends(get_sla_monitor)):
    claim = store.get_claim_by_id(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)
    return monitor.calculate_sla_status(claim)

@router.get("/breaches", response_model=List[SLAStatus])
async def predicted_breaches(store=Depends(get_claim_store), monitor=Depends(get_sla_monitor)):
    """Open claims at risk of breaching, highest breach risk first."""
    at_risk = monitor.predict_sla_breaches(store.list_claims(include_closed=False))
    return [monitor.calculate_sla_status(claim) for claim in at_risk]

@router.get("/ojk-report", response_model=OJKReport)
async def ojk_report(store=Depends(get_claim_store), monitor=Depends(get_sla_monitor)):
    return monitor.generate_ojk_report(store.list_claims())

@router.get("/metrics", response_model=SLAMetrics)
async def sla_metrics(store=Depends(get_claim_store), monitor=Depends(get_sla_monitor)):
    return monitor.calculate_sla_metrics(store.list_claims())
