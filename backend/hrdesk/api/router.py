from fastapi import APIRouter

from hrdesk.api.approvals import build_request_router
from hrdesk.api.biometric import biometric_router
from hrdesk.api.departments import department_managers_router
from hrdesk.api.employees import employees_router
from hrdesk.api.imports import imports_router
from hrdesk.services.request_kinds import REQUEST_KINDS

api_router = APIRouter()
api_router.include_router(imports_router)
api_router.include_router(employees_router)
api_router.include_router(department_managers_router)
api_router.include_router(biometric_router)
for _kind in REQUEST_KINDS:
    api_router.include_router(build_request_router(_kind))
