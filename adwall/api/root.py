from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["root"])

@router.get("/")
async def api_root():
    return {"message": "Mini Ad Wall API"}

@router.get("/health")
async def health():
    return {"status": "ok"}
