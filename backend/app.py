from contextlib import asynccontextmanager
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy.engine import Engine

from CardsModule import CardGenerator, CardService, CardStatus
from CardsModule.schemas import Card, CardCreateRequest, CardSummary
from TracksModule import TrackPage, list_tracks
from TracksModule.tracks import MAX_PAGE_COUNT
from tools.config import Settings
from tools.database import StorageError, build_engine, ensure_schema, make_session_factory
from tools.llm_logger import get_llm_logger

logger = logging.getLogger(__name__)

WORD_NOT_FOUND = "The word does not exist!"

router = APIRouter()


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    generator: Optional[CardGenerator] = None,
) -> FastAPI:
    """Build the API with its database engine and card generator wired in."""
    settings = settings or Settings.from_env()
    engine = engine or build_engine(settings.sqlalchemy_url)
    llm_logger = get_llm_logger(settings.llm_log_path)
    generator = generator or CardGenerator(settings, llm_logger=llm_logger)
    session_factory = make_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.api_key:
            logger.warning("api_key is not set; card generation requests will fail")
        created = ensure_schema(engine)
        if created:
            logger.info("Initialised schema: %s", ", ".join(created))
        yield
        engine.dispose()

    app = FastAPI(title="Word Cards API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.llm_logger = llm_logger
    app.state.card_service = CardService(session_factory, generator)

    app.include_router(router)
    return app


def get_card_service(request: Request) -> CardService:
    return request.app.state.card_service


def get_session(request: Request):
    with request.app.state.session_factory() as session:
        yield session


@router.get("/", response_class=PlainTextResponse)
def root():
    return "OK"


@router.post("/api/cards/create", response_model=Card)
def create_card(data: CardCreateRequest, service: CardService = Depends(get_card_service)):
    """Return the stored card for ``new_word``, generating it on first request."""
    logger.info("📨 Card request: %s", data.new_word)
    result = service.create_or_fetch(data.new_word)

    if result.ok:
        return result.card
    if result.status in (CardStatus.LEXICALLY_ABSENT, CardStatus.MALFORMED_REPLY):
        return PlainTextResponse(WORD_NOT_FOUND, status_code=404)
    if result.status is CardStatus.UPSTREAM_FAILURE:
        raise HTTPException(status_code=502, detail="Card generation service unavailable")
    raise HTTPException(status_code=503, detail="Card storage unavailable")


@router.get("/api/cards/getAll", response_model=List[CardSummary])
def get_all_cards(service: CardService = Depends(get_card_service)):
    try:
        return [CardSummary(initial_form=name) for name in service.list_initial_forms()]
    except StorageError:
        raise HTTPException(status_code=503, detail="Card storage unavailable")


@router.get("/api/tracks/getAll", response_model=TrackPage)
def get_all_tracks(
    page: int = Query(0, ge=0),
    page_count: int = Query(10, ge=1, le=MAX_PAGE_COUNT),
    session=Depends(get_session),
):
    try:
        tracks, count = list_tracks(session, page=page, page_count=page_count)
    except StorageError:
        raise HTTPException(status_code=503, detail="Track storage unavailable")
    return TrackPage(data=tracks, count=count)


@router.get("/api/llm-logs")
def get_llm_logs(request: Request):
    """Return every recorded language-model call"""
    return request.app.state.llm_logger.read_logs()
