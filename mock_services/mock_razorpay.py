"""
mock_razorpay.py — Mock Implementation of the Razorpay Orders API (REST)

This module provides a simulated payment gateway for local runs and tests.
It exposes a FastAPI application that mimics the Razorpay order endpoint,
including its basic-auth check and error envelope.

Simulation Scenarios:
    • Successful order creation
    • Authentication failure (HTTP 401) for the key secret "invalid_secret"
    • Minimum amount violation (HTTP 400) for amounts below 100 paise
    • Gateway outage (HTTP 503) for receipts containing "outage"

Endpoints:
    POST /v1/orders — Creates an order.

Port:
    Default: 8001 (HTTP)
"""

import logging
import time
import uuid
from typing import Dict, Optional, Union

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel

app = FastAPI(title="Mock Razorpay")
security = HTTPBasic()
logging.basicConfig(level=logging.INFO)

INVALID_SECRET = "invalid_secret"
MIN_AMOUNT = 100

# Orders created since startup, keyed by id
ORDERS: Dict[str, dict] = {}


class OrderRequest(BaseModel):
    """
    Represents a Razorpay order creation payload.

    Attributes:
        amount (int): Amount in the smallest currency unit (paise).
        currency (str): ISO 4217 currency code (e.g. 'INR').
        receipt (str): Merchant receipt identifier.
        payment_capture (int): 1 for automatic capture.
        notes (dict): Free-form key/value metadata.
    """
    amount: int
    currency: str
    receipt: Optional[str] = None
    payment_capture: int = 1
    notes: Dict[str, Union[str, int, float]] = {}


def _error(status_code: int, description: str, code: str = "BAD_REQUEST_ERROR"):
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "description": description, "source": "NA", "reason": "NA"}},
    )


@app.post("/v1/orders")
def create_order(request: OrderRequest, credentials: HTTPBasicCredentials = Depends(security)):
    """
    Creates an order, simulating outcomes based on credentials, amount and receipt.

    Returns:
        dict: The created order (id, entity, amount, amount_due, currency,
        receipt, status "created", notes, created_at).
    """
    logging.info(f"[RZP] Order request {request.receipt} for {request.amount} {request.currency}")

    if credentials.password == INVALID_SECRET:
        logging.warning(f"[RZP] Authentication failed for key {credentials.username}.")
        return _error(401, "Authentication failed")

    if request.amount < MIN_AMOUNT:
        return _error(400, "Order amount less than minimum amount allowed")

    if request.receipt and "outage" in request.receipt:
        return _error(503, "Service temporarily unavailable", code="SERVER_ERROR")

    order_id = f"order_{uuid.uuid4().hex[:14]}"
    order = {
        "id": order_id,
        "entity": "order",
        "amount": request.amount,
        "amount_paid": 0,
        "amount_due": request.amount,
        "currency": request.currency,
        "receipt": request.receipt,
        "status": "created",
        "attempts": 0,
        "notes": request.notes,
        "created_at": int(time.time()),
    }
    ORDERS[order_id] = order
    logging.info(f"[RZP] Order {order_id} created.")
    return order


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
