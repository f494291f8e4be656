from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Hello, you've reached the job-alert-service. Monitoring jobs for status changes."


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
