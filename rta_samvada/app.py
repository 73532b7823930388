import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from rta_samvada.config import Settings
from rta_samvada.llm import LLM, build_llm
from rta_samvada.pipeline import Session
from rta_samvada.routes import router
from rta_samvada.storage import SessionStore

load_dotenv(Path(__file__).parent.parent / ".env")


def create_app(
    data_dir: Path | None = None,
    llm: LLM | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = SessionStore(settings.data_dir)
    session = Session.open(store, llm or build_llm(settings), settings=settings)

    app = FastAPI(title="Ṛta-Samvāda")
    app.state.session = session
    app.include_router(router, prefix="/api")
    return app
