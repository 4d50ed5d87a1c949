import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from . import __version__
from .config import Config
from .errors import PreconditionViolation
from .models import AdvanceOutcome, AspectRatio, Operation, VoiceProfile
from .orchestrator import SceneSession

# Global session (single-user mode)
session: Optional[SceneSession] = None


def build_session(config: Config) -> SceneSession:
    from .service.gemini import GeminiSceneService

    return SceneSession(GeminiSceneService.from_config(config), config.generation)


def load_config() -> Config:
    path = Path(os.getenv("SCRIPTURE_SCENES_CONFIG", "config.yaml"))
    return Config.from_yaml(path) if path.exists() else Config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session on startup, release its audio on shutdown."""
    global session

    try:
        session = build_session(load_config())
        logger.info("Scene session ready")
    except ValueError as e:
        logger.error(f"Failed to create scene session: {e}")
        session = None

    yield

    if session is not None:
        session.close()
    session = None


app = FastAPI(
    title="Scripture Scenes API",
    description="Illustrated, narrated scripture scenes with consistent characters",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class PromptRequest(BaseModel):
    reference: str = Field(..., description="Scripture reference, e.g. 'Gênesis 1:1'")


class ImageRequest(BaseModel):
    prompt: str = Field(..., description="Scene prompt to illustrate")
    aspect_ratio: Optional[AspectRatio] = None


class VerseRequest(BaseModel):
    reference: Optional[str] = None
    language: Optional[str] = None


class NarrationRequest(BaseModel):
    text: Optional[str] = None
    voice: Optional[VoiceProfile] = None


class StateResponse(BaseModel):
    active: bool
    reference: str
    prompt_text: str
    characters: dict[str, str]
    has_image: bool
    aspect_ratio: AspectRatio
    verse_text: str
    narrated_text: Optional[str]
    in_flight: Optional[Operation]
    errors: dict[str, str]


def _session() -> SceneSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Scene service not configured")
    return session


def _state(s: SceneSession) -> StateResponse:
    st = s.state
    return StateResponse(
        active=st.active,
        reference=s.current_reference_text,
        prompt_text=st.prompt_text,
        characters=st.characters,
        has_image=st.image is not None,
        aspect_ratio=st.aspect_ratio,
        verse_text=st.verse_text,
        narrated_text=st.narration.text if st.narration else None,
        in_flight=st.in_flight,
        errors={op.value: err.message for op, err in st.errors.items()},
    )


def _failed(s: SceneSession, operation: Operation) -> HTTPException:
    error = s.error_for(operation)
    return HTTPException(
        status_code=502,
        detail={"kind": error.kind.value, "message": error.message} if error else operation.value,
    )


@app.exception_handler(PreconditionViolation)
async def precondition_handler(request, exc: PreconditionViolation):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    _session()
    return {"status": "healthy"}


@app.get("/state", response_model=StateResponse)
async def get_state():
    return _state(_session())


@app.post("/prompt", response_model=StateResponse)
async def generate_prompt(request: PromptRequest):
    """Start a fresh scene for a reference."""
    s = _session()
    if await s.generate_prompt(request.reference) is None:
        raise _failed(s, Operation.PROMPT)
    return _state(s)


@app.post("/image", response_model=StateResponse)
async def generate_image(request: ImageRequest):
    s = _session()
    if await s.generate_image(request.prompt, request.aspect_ratio) is None:
        raise _failed(s, Operation.IMAGE)
    return _state(s)


@app.post("/advance")
async def advance():
    """Generate the next verse of the active sequence."""
    s = _session()
    outcome = await s.advance()
    if outcome is AdvanceOutcome.FAILED:
        raise _failed(s, Operation.ADVANCE)

    body = {"outcome": outcome.value, "state": _state(s).model_dump(mode="json")}
    if outcome is AdvanceOutcome.CHAPTER_ENDED:
        body["message"] = s.error_for(Operation.ADVANCE).message
    return body


@app.post("/reset", response_model=StateResponse)
async def reset():
    s = _session()
    s.reset()
    return _state(s)


@app.get("/image")
async def get_image():
    s = _session()
    if s.state.image is None:
        raise HTTPException(status_code=404, detail="No image generated")
    return Response(content=s.state.image, media_type="image/jpeg")


@app.post("/verse")
async def fetch_verse(request: VerseRequest):
    s = _session()
    text = await s.fetch_verse_text(request.reference, request.language)
    if text is None:
        raise _failed(s, Operation.VERSE)
    return {"reference": request.reference or s.current_reference_text, "text": text}


@app.post("/narration")
async def generate_narration(request: NarrationRequest):
    s = _session()
    narration = await s.generate_narration(request.text, request.voice)
    if narration is None:
        raise _failed(s, Operation.NARRATION)
    return {"text": narration.text, "audio_url": "/narration/audio"}


@app.get("/narration/audio")
async def get_narration_audio():
    s = _session()
    if s.state.narration is None:
        raise HTTPException(status_code=404, detail="No narration generated")
    return Response(content=s.state.narration.handle.read(), media_type="audio/wav")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
