"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from haulsettle.api.routes import rates, settlements, tickets

api_router = APIRouter()

# Include all route modules
api_router.include_router(rates.router)
api_router.include_router(settlements.router)
api_router.include_router(tickets.router)
