"""
API v1 Router

All API endpoints for the dashboard and chat bot.
"""

from fastapi import APIRouter

from cryptoadvisor.api.v1.endpoints import market, indicators, recommendations

router = APIRouter()

# Include all endpoint routers
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(indicators.router, prefix="/indicators", tags=["Indicators"])
router.include_router(recommendations.router, prefix="/recommendations", tags=["Recommendations"])
