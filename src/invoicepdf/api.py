from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from invoicepdf.services.exceptions import InvoiceError
from invoicepdf.services.gateway import DeliveryGateway, build_default_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


class GenerateResponse(BaseModel):
    success: bool
    message: str
    filePath: str | None = None


def get_gateway(request: Request) -> DeliveryGateway:
    return request.app.state.gateway


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.post("/generate/{transaction_id}", response_model=GenerateResponse, response_model_exclude_none=True)
async def generate_invoice(transaction_id: str, gateway: DeliveryGateway = Depends(get_gateway)):
    try:
        path = await gateway.generate(transaction_id)
    except InvoiceError as e:
        logger.warning("Invoice generation failed for %s: %s", transaction_id, e)
        return GenerateResponse(success=False, message=str(e))
    return GenerateResponse(
        success=True,
        message="Invoice generated successfully",
        filePath=str(path),
    )


@router.get("/download/{transaction_id}")
async def download_invoice(transaction_id: str, gateway: DeliveryGateway = Depends(get_gateway)):
    try:
        download = await gateway.download(transaction_id)
    except InvoiceError as e:
        logger.warning("Invoice download failed for %s: %s", transaction_id, e)
        return _failure(404, str(e))
    return StreamingResponse(
        download.iter_bytes(),
        media_type=download.media_type,
        headers=download.headers,
    )


def create_app(gateway: DeliveryGateway | None = None) -> FastAPI:
    app = FastAPI(title="Invoice PDF API")
    app.state.gateway = gateway or build_default_gateway()
    app.include_router(router)
    return app
