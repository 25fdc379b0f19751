"""
API v1 routes.
"""

from fastapi import APIRouter

from growthlab.api.v1 import experiments, evidence, templates, reports

router = APIRouter()

router.include_router(experiments.router, prefix="/experiments", tags=["Experiments"])
router.include_router(evidence.router, tags=["Evidence"])
router.include_router(templates.router, prefix="/templates", tags=["Templates"])
router.include_router(reports.router, tags=["Reports"])
