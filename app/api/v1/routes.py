from fastapi import APIRouter
from app.api.v1.endpoints import auth, disputes, evidence, packets

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(disputes.router, prefix="/disputes", tags=["disputes"])
router.include_router(evidence.router, prefix="/evidence", tags=["evidence"])
router.include_router(packets.router, prefix="/packets", tags=["packets"])
