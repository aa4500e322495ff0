"""HTTP routes for cart-fill jobs.

Mounted on the AgentOS base app so that non-chat clients (the progress
widget) can start jobs and poll them:

- POST /api/fill-cart                     start a job, 202 with its handle
- GET  /api/fill-cart/progress/{job_id}   latest snapshot, 404 when unknown or expired
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.jobs.service import CartFillService
from src.models.models import CartFillProgress, StartCartFillRequest, StartCartFillResponse


def create_cart_fill_router(service: CartFillService) -> APIRouter:
    """Build the cart-fill router bound to ``service``."""
    router = APIRouter(prefix="/api/fill-cart", tags=["cart-fill"])

    @router.post("", status_code=status.HTTP_202_ACCEPTED, response_model=StartCartFillResponse)
    async def start_fill_cart(request: StartCartFillRequest) -> StartCartFillResponse:
        return await service.start_cart_fill(request.products)

    @router.get(
        "/progress/{job_id}",
        response_model=CartFillProgress,
        responses={404: {"description": "Job not found or expired"}},
    )
    async def get_fill_cart_progress(job_id: str):
        progress = service.check_cart_fill_progress(job_id)
        if progress.status == "not_found":
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Job not found or expired"})
        return progress

    return router
