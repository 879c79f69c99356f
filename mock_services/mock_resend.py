"""
mock_resend.py — Mock Implementation of the Resend Email API (REST)

This module simulates the Resend send-email endpoint for local runs and tests.
Sent messages are kept in memory instead of being delivered.

Simulation Scenarios:
    • Accepted email (returns a message id)
    • Missing or wrong API key (HTTP 401)
    • Rejected recipient (HTTP 422) for addresses containing "bounce"

Port:
    Default: 8003 (HTTP)
"""

import logging
import uuid
from typing import List

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

app = FastAPI(title="Mock Resend")
logging.basicConfig(level=logging.INFO)

API_KEY = "re_test_key"
OUTBOX: List[dict] = []


class EmailRequest(BaseModel):
    sender: str = Field(..., alias="from")
    to: List[str]
    subject: str
    html: str


@app.post("/emails")
def send_email(request: EmailRequest, authorization: str = Header("")):
    """Accepts an email, or rejects it based on API key and recipient."""
    if authorization != f"Bearer {API_KEY}":
        return JSONResponse(status_code=401, content={"statusCode": 401, "name": "validation_error", "message": "API key is invalid"})

    if any("bounce" in recipient for recipient in request.to):
        logging.warning(f"[RS] Recipient rejected: {request.to}")
        return JSONResponse(status_code=422, content={"statusCode": 422, "name": "validation_error", "message": "Invalid `to` field."})

    message_id = str(uuid.uuid4())
    OUTBOX.append({"id": message_id, "from": request.sender, "to": request.to, "subject": request.subject, "html": request.html})
    logging.info(f"[RS] Email {message_id} accepted for {request.to}")
    return {"id": message_id}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8003)
