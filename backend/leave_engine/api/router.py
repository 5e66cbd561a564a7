from fastapi import APIRouter

from leave_engine.api.balances import balances_router
from leave_engine.api.holidays import holidays_router
from leave_engine.api.reports import reports_router
from leave_engine.api.requests import requests_router
from leave_engine.api.rollover import rollover_router
from leave_engine.api.system import system_router

api_router = APIRouter()
api_router.include_router(balances_router)
api_router.include_router(requests_router)
api_router.include_router(holidays_router)
api_router.include_router(rollover_router)
api_router.include_router(reports_router)
api_router.include_router(system_router)
