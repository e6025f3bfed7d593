from fastapi import APIRouter
from marketplace.api.v1.endpoints import files, health, opportunities, proposals, users

router = APIRouter(prefix="/v1")

router.include_router(files.router, prefix="/files", tags=["Files"])
router.include_router(health.router, prefix="/health", tags=["Health"])
router.include_router(opportunities.router, prefix="/opportunities", tags=["Opportunities"])
router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])
router.include_router(users.router, prefix="/users", tags=["Users"])
