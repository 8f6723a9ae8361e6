"""
API v1 router aggregating all endpoints.
"""
from fastapi import APIRouter

from newsdesk.api.v1.auth import router as auth_router
from newsdesk.api.v1.sites import router as sites_router
from newsdesk.api.v1.grants import router as grants_router
from newsdesk.api.v1.announcements import router as announcements_router
from newsdesk.api.v1.audit_logs import router as audit_logs_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(sites_router)
api_router.include_router(grants_router)
api_router.include_router(announcements_router)
api_router.include_router(audit_logs_router)
