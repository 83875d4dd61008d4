from fastapi import APIRouter
from ..config import settings

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    return {
        "status": "ok",
        "embeddings": "enabled" if settings.gemini_api_key else "disabled",
        "store": "sql" if settings.database_url else "memory",
    }
