"""
Stateless HTTP endpoints for enhancement, validation and generation.

The endpoints never touch the usage ledger; quota is the caller's concern.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ideaforge.errors import IdeaForgeError, InvalidInput
from ideaforge.factory import Services, create_services
from ideaforge.models.conversation import Continuing, Phase, Transcript
from ideaforge.models.idea import AppIdea
from ideaforge.utils.logger import logger

app = FastAPI(title="IdeaForge API")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey"],
)


class ChatMessage(BaseModel):
    role: Literal["system", "assistant", "user"]
    content: str


class EnhanceRequest(BaseModel):
    originalPrompt: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)
    phase: Phase = Phase.ANALYZE


class AppNameRequest(BaseModel):
    purpose: str = ""


class IdeaGenerationRequest(BaseModel):
    mode: Literal["instant", "conversational"] = "instant"
    userResponses: Optional[str] = None


@lru_cache(maxsize=1)
def get_services() -> Services:
    return create_services()


@app.exception_handler(IdeaForgeError)
async def handle_ideaforge_error(request: Request, exc: IdeaForgeError):
    if exc.status_code >= 500 or exc.code == "configuration_error":
        logger.error(f"{request.url.path} failed ({exc.code}): {exc.message}")
    else:
        logger.info(f"{request.url.path} rejected ({exc.code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/enhance-prompt")
def enhance_prompt(body: EnhanceRequest, services: Services = Depends(get_services)):
    try:
        transcript = Transcript.from_messages(message.model_dump() for message in body.messages)
    except ValueError as e:
        raise InvalidInput(f"Invalid conversation: {e}") from e

    result = services.enhancement.respond(body.phase, body.originalPrompt, transcript)
    if isinstance(result, Continuing):
        return {"done": False, "message": result.message}
    return result.to_wire()


@app.post("/validate-idea")
def validate_idea(idea: AppIdea, services: Services = Depends(get_services)):
    scorecard = services.validation.validate(idea)
    return scorecard.model_dump(mode="json")


@app.post("/generate-app-name")
def generate_app_name(body: AppNameRequest, services: Services = Depends(get_services)):
    return {"name": services.generation.generate_app_name(body.purpose)}


@app.post("/generate-prompt")
def generate_prompt(idea: AppIdea, services: Services = Depends(get_services)):
    return {"prompt": services.generation.generate_build_prompt(idea)}


@app.post("/generate-idea")
def generate_idea(body: IdeaGenerationRequest, services: Services = Depends(get_services)):
    responses = body.userResponses if body.mode == "conversational" else None
    idea = services.generation.generate_idea(responses)
    return {"idea": idea.form_fields()}
