import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.database.session import init_db_schema
from config.log_config import configure_logging
from hashtag.adapter.input.web.pipeline_router import pipeline_router

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 첫 실행에서 테이블이 없으면 만든다. 주기 실행은 외부 스케줄러가 담당한다.
    init_db_schema()
    yield


app = FastAPI(title="YouTube Hashtag Tracker", version="0.1.0", lifespan=lifespan)
app.include_router(pipeline_router, prefix="/pipeline")


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("APP_HOST", "0.0.0.0"), port=int(os.getenv("APP_PORT", "8000")))
