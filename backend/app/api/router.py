"""
Main API router.
"""

from fastapi import APIRouter
from app.api import series, bills, paychecks, recurring

api_router = APIRouter()

api_router.include_router(series.router, prefix="/recurring")
api_router.include_router(bills.router, prefix="/recurring")
api_router.include_router(paychecks.router, prefix="/recurring")
api_router.include_router(recurring.router, prefix="/recurring")
