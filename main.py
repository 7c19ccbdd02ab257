# main.py
# ------------------------------------------------------------------------------------
#  FastAPI service for podcast episode generation:
#  - POST /api/generate-script      -> topic -> 5-scene script (text model)
#  - POST /api/generate-videos      -> start one render per scene, returns at once
#  - GET  /api/check-status         -> poll per-scene status + overall progress
#  - POST /api/admin/clear-sessions -> wipe the in-memory status store
#  - GET  /debug/config             -> runtime env (hide in prod)
#  State:
#    * in-memory JobStore on app.state (lost on restart; finished sessions expire)
#  Every JSON body is {success, data} or {success: false, error}
# ------------------------------------------------------------------------------------

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ai_client import AIClientError, generate_script
from generation import GenerationCoordinator, GenerationRequestError
from job_store import JobStore
from progress import calculate_progress
from schemas import GenerateVideosRequest, ScriptGenerationRequest
from settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ------------- FastAPI app --------------
app = FastAPI(title="Podcast Episode API", version="0.3.0")

# 🔴 In prod, tighten this list to your domains
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def _on_startup():
    app.state.store = JobStore(session_ttl_sec=settings.session_ttl_sec)
    app.state.coordinator = GenerationCoordinator(app.state.store)

@app.on_event("shutdown")
async def _on_shutdown():
    await app.state.coordinator.shutdown()

def get_store(request: Request) -> JobStore:
    return request.app.state.store

def get_coordinator(request: Request) -> GenerationCoordinator:
    return request.app.state.coordinator

# ---------- Envelope ----------
def ok(data) -> JSONResponse:
    return JSONResponse({"success": True, "data": data})

def fail(error: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)

@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    msg = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return fail(msg.removeprefix("Value error, "), 400)

# ---------- Health ----------
@app.get("/health")
def health():
    return {"ok": True}

# ---------- Script ----------
@app.post("/api/generate-script")
async def create_script(payload: ScriptGenerationRequest):
    logger.info("Generating script for topic: %s", payload.topic)
    try:
        script = await generate_script(payload)
    except AIClientError as e:
        logger.error("Script generation error: %s", e)
        return fail(f"Script generation failed: {e}", 500)
    logger.info("Script generated successfully: %s", script.title)
    return ok(script.model_dump(by_alias=True, exclude_none=True))

@app.get("/api/generate-script")
def describe_script():
    return {
        "message": "Script generation API endpoint",
        "methods": ["POST"],
        "description": "Generate podcast scripts using AI",
    }

# ---------- Videos ----------
@app.post("/api/generate-videos")
async def create_videos(
    payload: GenerateVideosRequest,
    coordinator: GenerationCoordinator = Depends(get_coordinator),
):
    try:
        ack = coordinator.start(payload.session_id, payload.scenes)
    except GenerationRequestError as e:
        return fail(str(e), 400)
    return ok(ack.model_dump(by_alias=True))

@app.get("/api/generate-videos")
def describe_videos():
    return {
        "message": "Video generation API endpoint",
        "methods": ["POST"],
        "description": "Generate videos for podcast scenes using AI",
    }

# ---------- Status ----------
@app.get("/api/check-status")
def check_status(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    store: JobStore = Depends(get_store),
):
    if not session_id:
        return fail("Session ID is required", 400)
    records = store.get(session_id)
    if records is None:
        return fail("Session not found", 404)
    progress = calculate_progress(records)
    return ok({
        "videos": [r.to_dict() for r in records],
        "progress": progress.model_dump(by_alias=True, exclude_none=True),
    })

# ---------- Admin ----------
@app.post("/api/admin/clear-sessions")
def clear_sessions(store: JobStore = Depends(get_store)):
    cleared = len(store)
    store.clear()
    logger.warning("Cleared %d session(s) from the status store", cleared)
    return ok({"cleared": cleared})

# ---------- Index ----------
@app.get("/")
def index():
    return {"service": "podcast-episode-api", "public_base": settings.public_base_url}

# ---------- Debug (hide in prod) ----------
if settings.debug:
    @app.get("/debug/config")
    def debug_config():
        return {
            "AI_API_URL": settings.ai_api_url,
            "AI_SCRIPT_MODEL": settings.ai_script_model,
            "AI_VIDEO_MODEL": settings.ai_video_model,
            "VIDEO_DURATION_SEC": settings.video_duration_sec,
            "SESSION_TTL_SEC": settings.session_ttl_sec,
        }
