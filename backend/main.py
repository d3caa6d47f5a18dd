"""LC Meter Backend: FastAPI application entry point."""

import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routes import measure

load_dotenv()


app = FastAPI(
    title="LC Meter API",
    description="Capacitor and inductor equivalent circuits from oscilloscope measurements",
    version="0.1.0",
)

# CORS: allow frontend origins
_frontend_url = os.getenv("FRONTEND_URL")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[_frontend_url] if _frontend_url else [],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(measure.router, prefix="/api", tags=["Measurement"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "lcmeter-backend"}
