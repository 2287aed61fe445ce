from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, StreamingResponse

from private_reader.auth import (
    PasswordGateMiddleware,
    clear_session_cookie,
    password_matches,
    set_session_cookie,
)
from private_reader.config import AVAILABLE_MODELS, DEFAULT_MODEL, get_settings, is_known_model
from private_reader.enrichment import enrich_modules, merge_enrichment
from private_reader.errors import ConfigurationError, ProviderError, ResponseParseError
from private_reader.export import (
    DOCX_MEDIA_TYPE,
    format_learning_index,
    format_module,
    format_technical_analysis,
    learning_index_docx,
)
from private_reader.logging_config import setup_logging
from private_reader.normalize import parse_learning_index, parse_technical_analysis
from private_reader.pages import LOGIN_PAGE, render_app_page
from private_reader.prompts import build_prompt
from private_reader.providers import generate
from private_reader.schemas import (
    AuthRequest,
    EnrichModulesRequest,
    EnrichModulesResponse,
    ExtractRequest,
    ExtractResponse,
    LearningIndex,
    ModelOptionResponse,
    ProcessTextRequest,
    TechnicalAnalysis,
    TechnicalAnalysisRequest,
)
from private_reader.search import get_search_provider
from private_reader.url_extract import MIN_TEXT_LENGTH, fetch_raw_content

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Private Reader API", version="0.1.0")

app.add_middleware(PasswordGateMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


_PROVIDER_STATUS_MESSAGES = {
    401: "Invalid API key. Please check your API key configuration.",
    402: "Insufficient quota. Please check your account billing.",
    429: "API quota exceeded or rate limit reached. Please try again later.",
}


def _resolve_model(model: str | None) -> str:
    if not model:
        return DEFAULT_MODEL
    if not is_known_model(model):
        raise HTTPException(status_code=400, detail="Invalid model specified")
    return model


def _http_error(e: Exception, fallback: str) -> HTTPException:
    """Map a typed failure onto the status code and message the client sees."""
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=500, detail=e.message)
    if isinstance(e, ProviderError) and e.status_code in _PROVIDER_STATUS_MESSAGES:
        return HTTPException(status_code=e.status_code, detail=_PROVIDER_STATUS_MESSAGES[e.status_code])
    if isinstance(e, ResponseParseError):
        return HTTPException(status_code=500, detail=e.message)
    return HTTPException(status_code=500, detail=fallback)


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/", response_class=HTMLResponse)
def login_page() -> str:
    return LOGIN_PAGE


@app.get("/app", response_class=HTMLResponse)
def app_page() -> str:
    return render_app_page()


@app.get("/api/models", response_model=list[ModelOptionResponse])
def models() -> list[ModelOptionResponse]:
    return [ModelOptionResponse(value=m.value, label=m.label, cost=m.cost) for m in AVAILABLE_MODELS]


@app.post("/api/auth")
async def authenticate(request: Request) -> JSONResponse:
    try:
        req = AuthRequest.model_validate(await request.json())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid request")

    settings = get_settings()
    if not settings.access_password:
        logger.error("ACCESS_PASSWORD is not set")
        raise HTTPException(status_code=500, detail="Server configuration error")

    if not password_matches(req.password, settings.access_password):
        raise HTTPException(status_code=401, detail="Invalid password")

    response = JSONResponse({"success": True})
    set_session_cookie(response, settings.access_password, secure=settings.is_production)
    return response


@app.post("/api/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"success": True})
    clear_session_cookie(response)
    return response


@app.post("/api/process-text", response_model=LearningIndex)
def process_text(req: ProcessTextRequest) -> LearningIndex:
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text input is required and cannot be empty")
    model = _resolve_model(req.model)

    try:
        raw = generate(build_prompt("index", req.text), model)
        return parse_learning_index(raw)
    except (ConfigurationError, ProviderError, ResponseParseError) as e:
        logger.error("Error processing text with %s: %s", model, e)
        raise _http_error(e, "An error occurred while processing your text. Please try again.")


@app.post("/api/enrich-modules", response_model=EnrichModulesResponse)
def enrich(req: EnrichModulesRequest) -> EnrichModulesResponse:
    if req.module_order is not None and req.module_by_order(req.module_order) is None:
        raise HTTPException(status_code=400, detail=f"No module with order {req.module_order}")

    settings = get_settings()
    try:
        search = get_search_provider(settings)
    except ConfigurationError as e:
        logger.error("Enrichment unavailable: %s", e)
        raise HTTPException(status_code=500, detail=e.message)
    except ValueError as e:
        logger.error("Enrichment unavailable: %s", e)
        raise HTTPException(status_code=500, detail=f"Server configuration error: {e}")

    index = LearningIndex(
        main_topic=req.main_topic,
        topic_summary=req.topic_summary,
        learning_modules=req.learning_modules,
    )
    enriched = enrich_modules(
        index,
        search,
        max_results=settings.search_max_results,
        only_order=req.module_order,
    )
    return EnrichModulesResponse(enriched_modules=enriched, learning_index=merge_enrichment(index, enriched))


@app.post("/api/technical-analysis", response_model=TechnicalAnalysis)
def technical_analysis(req: TechnicalAnalysisRequest) -> TechnicalAnalysis:
    if not req.raw_content.strip():
        raise HTTPException(status_code=400, detail="Raw content is required and cannot be empty")
    model = _resolve_model(req.model)

    logger.info("Processing analysis request, content length: %d, model: %s", len(req.raw_content), model)
    try:
        raw = generate(build_prompt("analysis", req.raw_content), model)
        return parse_technical_analysis(raw)
    except (ConfigurationError, ProviderError, ResponseParseError) as e:
        logger.error("Error processing technical analysis with %s: %s", model, e)
        raise _http_error(e, "An error occurred while processing the technical analysis. Please try again.")


@app.post("/api/extract", response_model=ExtractResponse)
async def extract(req: ExtractRequest) -> ExtractResponse:
    try:
        text = await fetch_raw_content(req.url)
    except httpx.InvalidURL as e:
        logger.warning("Extract rejected malformed URL %r: %s", req.url, e)
        raise HTTPException(status_code=400, detail="Invalid URL")
    except httpx.HTTPError as e:
        logger.warning("Extract failed for %s: %s", req.url, e)
        raise HTTPException(status_code=502, detail=f"Could not fetch {req.url}")
    if len(text) < MIN_TEXT_LENGTH:
        raise HTTPException(status_code=400, detail="Could not extract enough readable text from that URL.")
    return ExtractResponse(url=req.url, raw_content=text)


@app.post("/api/export/text", response_class=PlainTextResponse)
def export_text(index: LearningIndex, module_order: int | None = None) -> str:
    """Clipboard text for the whole index, or for one module when `module_order` is given."""
    if module_order is None:
        return format_learning_index(index)
    module = index.module_by_order(module_order)
    if module is None:
        raise HTTPException(status_code=400, detail=f"No module with order {module_order}")
    return format_module(module)


@app.post("/api/export/analysis-text", response_class=PlainTextResponse)
def export_analysis_text(analysis: TechnicalAnalysis) -> str:
    return format_technical_analysis(analysis)


@app.post("/api/export/docx")
def export_docx(index: LearningIndex) -> StreamingResponse:
    headers = {"Content-Disposition": 'attachment; filename="learning-index.docx"'}
    return StreamingResponse(learning_index_docx(index), media_type=DOCX_MEDIA_TYPE, headers=headers)
