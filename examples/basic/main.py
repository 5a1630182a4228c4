"""Basic example demonstrating fastapi-xray-middleware.

Traces every request with X-Ray and logs through the single-line
formatter. An outbound call made while handling a request is traced on
its own segment that continues the request's trace.

Run with:
    APP_NAME=orders-api XRAY_NAME=orders LOG_LEVEL=DEBUG uvicorn main:app --reload

Available endpoints:
    GET /orders/{order_id}          - Look up an order
    GET /orders/{order_id}/invoice  - Fetch the invoice from the billing service
"""

import logging

import httpx
from fastapi import FastAPI, Request

from fastapi_xray_middleware import (
    AsyncLoggingTransport,
    XRayMiddleware,
    configure_logging,
    get_settings,
    open_segment,
)

settings = get_settings()
logger = configure_logging(settings, logging.getLogger("orders"))

app = FastAPI(title="Basic Example")
app.add_middleware(XRayMiddleware, settings=settings, logger=logger)


@app.get("/orders/{order_id}")
async def get_order(order_id: str, request: Request) -> dict:
    request.state.transaction.log.info("Looking up order %s", order_id, extra={"EMAILREQ": order_id})
    return {"order_id": order_id}


@app.get("/orders/{order_id}/invoice")
async def get_invoice(order_id: str, request: Request) -> dict:
    inbound = request.state.xray_segment
    trace = {
        "Root": inbound.trace_id,
        "Parent": inbound.segment.id,
        "Sampled": str(int(inbound.segment.sampled)),
    }
    with open_segment("billing", trace, inbound.recorder, logger) as traced:
        async with httpx.AsyncClient(transport=AsyncLoggingTransport(traced, logger=logger)) as client:
            response = await client.get(f"http://billing.internal/invoices/{order_id}")
    return {"order_id": order_id, "billing_status": response.status_code}
