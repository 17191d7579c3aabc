"""
Demo Router
===========
Combines two simulated recordings so the API can be tried without files.
"""

from fastapi import APIRouter

from fitmerge.api.routes.combine import run_combine
from fitmerge.api.schemas import CombineResponse, DemoCombineRequest
from fitmerge.simulator import simulate_pair


router = APIRouter()


@router.post("/combine", response_model=CombineResponse)
def demo_combine(payload: DemoCombineRequest):
    """Simulate a bike computer and a watch on the same ride, then combine them."""
    bike, watch = simulate_pair(seed=payload.seed, duration_seconds=payload.duration_seconds)
    return run_combine([bike, watch], payload.options)
