"""
mock_shiprocket.py — Mock Implementation of the Shiprocket Courier API (REST)

This module simulates the two Shiprocket endpoints the checkout service uses:
token login and AWB tracking. It is used for local runs and by the tests.

The mock simulates common tracking scenarios:
    • Delivered shipment with a full activity history
    • Unknown AWB (track_status 0) for codes containing "NOTFOUND"
    • Rejected credentials (HTTP 403) for the password "wrong"
    • Expired or unknown tokens (HTTP 401)

Port:
    Default: 8002 (HTTP)
"""

import logging
import uuid

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Mock Shiprocket")
logging.basicConfig(level=logging.INFO)

# Issued tokens and number of login calls, inspected by the tests
TOKENS = set()
STATS = {"logins": 0}


class LoginRequest(BaseModel):
    email: str
    password: str


@app.post("/v1/external/auth/login")
def login(request: LoginRequest):
    """Issues an API token for valid credentials."""
    STATS["logins"] += 1
    if request.password == "wrong":
        logging.warning(f"[SR] Login rejected for {request.email}.")
        return JSONResponse(status_code=403, content={"message": "Invalid email and password combination", "status_code": 403})

    token = uuid.uuid4().hex
    TOKENS.add(token)
    logging.info(f"[SR] Token issued for {request.email}.")
    return {"token": token, "email": request.email}


@app.get("/v1/external/courier/track/awb/{awb_code}")
def track(awb_code: str, authorization: str = Header("")):
    """
    Returns tracking data for an AWB code.

    Behavior:
        - Unknown bearer token → 401
        - AWB containing "NOTFOUND" → track_status 0 with an error message
        - Otherwise → a delivered shipment with three scan activities
    """
    token = authorization.removeprefix("Bearer ").strip()
    if token not in TOKENS:
        return JSONResponse(status_code=401, content={"message": "Token has expired", "status_code": 401})

    if "NOTFOUND" in awb_code:
        return {"tracking_data": {"track_status": 0, "shipment_status": 0, "shipment_track": [],
                                  "error": "Aahh! There is no activities found in our DB. Please have some patience it will be updated soon."}}

    logging.info(f"[SR] Tracking request for AWB {awb_code}")
    return {
        "tracking_data": {
            "track_status": 1,
            "shipment_status": 7,
            "shipment_track": [{
                "awb_code": awb_code,
                "courier_name": "Delhivery Surface",
                "current_status": "Delivered",
                "delivered_date": "2026-10-14 16:20:00",
                "origin": "Chennai",
                "destination": "Coimbatore",
            }],
            "shipment_track_activities": [
                {"date": "2026-10-14 16:20:00", "activity": "Delivered", "location": "Coimbatore"},
                {"date": "2026-10-13 09:05:00", "activity": "Out for delivery", "location": "Coimbatore"},
                {"date": "2026-10-12 18:40:00", "activity": "Picked up", "location": "Chennai"},
            ],
            "track_url": f"https://shiprocket.co/tracking/{awb_code}",
        }
    }


def reset():
    """Forgets issued tokens and counters."""
    TOKENS.clear()
    STATS["logins"] = 0


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
