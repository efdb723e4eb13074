"""
Signals API Endpoints

Read-only access to the latest engine snapshot.
"""

from fastapi import APIRouter

from app.schemas.signals import EngineSnapshot
from app.services.stream import get_state_publisher

router = APIRouter()


@router.get("", response_model=EngineSnapshot)
async def get_signals():
    """Latest engine snapshot (all symbols)."""
    return get_state_publisher().snapshot
