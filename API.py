from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import uvicorn

import config
from errors import Ok
from gateway import InferenceGateway
from llm_client import create_client
from log import configure_logging, mask
from mailer import Mailer
from otp_store import InMemoryOtpStore, OtpStore
from schemas import ContactDetails, OtpRequest, OtpVerification

logger = logging.getLogger(__name__)


def create_app(
    gateway: Optional[InferenceGateway] = None,
    otp_store: Optional[OtpStore] = None,
    mailer: Optional[Mailer] = None,
) -> FastAPI:
    """
    Build the HTTP app around explicitly constructed collaborators.

    Anything not passed in is created from config: the gateway gets a
    GeminiClient holding API_KEY (missing key fails here, at startup).
    """
    configure_logging()

    if gateway is None:
        gateway = InferenceGateway(create_client())
    if otp_store is None:
        otp_store = InMemoryOtpStore()
    if mailer is None:
        mailer = Mailer()

    app = FastAPI(title="AyurConnect AI Gateway")
    app.state.gateway = gateway
    app.state.otp_store = otp_store
    app.state.mailer = mailer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/gemini")
    async def analyze(request: Request):
        """
        Single analysis endpoint multiplexed by the `type` field.

        Expects one of:
        - {"type": "medicine", "medicineName": "...", "personalization": {...}}
        - {"type": "lab", "input": {"text": "...", "image": {"mimeType": "...", "data": "<base64>"}}}
        - {"type": "dosha", "answers": {"<questionKey>": "..."}}

        Returns the result JSON with 200, or {"error": "..."} with 400/500.
        """
        payload = await _json_body(request)
        if payload is None:
            return JSONResponse({"error": "Request body must be valid JSON"}, status_code=400)

        # The model call blocks, so run it off the event loop
        result = await run_in_threadpool(gateway.handle, payload)

        if isinstance(result, Ok):
            return JSONResponse(result.value, status_code=200)
        return JSONResponse(result.error.to_body(), status_code=result.error.status_code)

    @app.post("/api/contact")
    async def contact(request: Request):
        payload = await _json_body(request)
        try:
            details = ContactDetails.model_validate(payload or {})
        except ValidationError:
            return JSONResponse({"error": "Please provide your name, email and phone number."}, status_code=400)

        logger.info(f"📨 Consultation request from {mask(details.email)}")
        # SMTP blocks, keep it off the event loop
        if not await run_in_threadpool(mailer.send_contact_request, details):
            logger.warning("Consultation request could not be emailed; continuing")

        return {"message": "Thank you! An Ayurvedic expert will get in touch with you shortly."}

    @app.post("/api/send-otp")
    async def send_otp(request: Request):
        payload = await _json_body(request)
        try:
            otp_request = OtpRequest.model_validate(payload or {})
        except ValidationError:
            return JSONResponse({"error": "Please provide a valid email and phone number."}, status_code=400)

        code = otp_store.issue(otp_request.email)
        if not await run_in_threadpool(mailer.send_otp, otp_request.email, code):
            otp_store.discard(otp_request.email)
            return JSONResponse({"error": "Failed to send OTP. Please try again."}, status_code=500)

        logger.info(f"🔐 OTP issued for {mask(otp_request.email)}")
        return {"message": f"An OTP has been sent to {otp_request.email}."}

    @app.post("/api/verify-otp")
    async def verify_otp(request: Request):
        payload = await _json_body(request)
        try:
            verification = OtpVerification.model_validate(payload or {})
        except ValidationError:
            return JSONResponse({"error": "Please provide your email and the OTP."}, status_code=400)

        if not otp_store.verify(verification.email, verification.otp):
            logger.info(f"❌ OTP verification failed for {mask(verification.email)}")
            return JSONResponse({"error": "Invalid or expired OTP."}, status_code=400)

        logger.info(f"✅ OTP verified for {mask(verification.email)}")
        return {"message": "Verification successful."}

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "service": "AyurConnect AI Gateway"}

    return app


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


if __name__ == "__main__":
    uvicorn.run(
        "API:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.PORT,
    )
