from fastapi import APIRouter

from waitlist.api import subscribe

api_router = APIRouter()

api_router.include_router(subscribe.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
