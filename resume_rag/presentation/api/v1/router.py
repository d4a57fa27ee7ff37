"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from resume_rag.presentation.api.v1.endpoints.health import router as health_router
from resume_rag.presentation.api.v1.endpoints.resumes import router as resumes_router
from resume_rag.presentation.api.v1.endpoints.search import router as search_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(resumes_router)
router.include_router(search_router)
