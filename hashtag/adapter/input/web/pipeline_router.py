from fastapi import APIRouter, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.batch import hashtag_batch
from hashtag.domain.errors import StoreSchemaError
from hashtag.infrastructure.repository.hashtag_repository_impl import HashtagRepositoryImpl

# 워크플로는 네트워크/DB 를 블로킹 호출하므로 핸들러는 def 로 두어 스레드풀에서 실행한다.
pipeline_router = APIRouter(tags=["pipeline"])

repository = HashtagRepositoryImpl()


def _run(workflow) -> JSONResponse:
    try:
        return JSONResponse(jsonable_encoder(workflow()))
    except StoreSchemaError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@pipeline_router.post("/full-sync")
def trigger_full_sync():
    """
    최근 1년치 해시태그 영상을 메인 테이블에 적재하고 전체 중복 제거를 수행한다.
    """
    return _run(hashtag_batch.run_full_sync)


@pipeline_router.post("/daily-incremental")
def trigger_daily_incremental():
    """
    오늘 게시된 영상을 스태킹 테이블에 추가하고 오늘 수집분 중복을 정리한다.
    """
    return _run(hashtag_batch.run_daily_incremental)


@pipeline_router.post("/daily-stats")
def trigger_daily_stats():
    return _run(hashtag_batch.compute_daily_stats)


@pipeline_router.post("/subscriber-history")
def trigger_subscriber_history():
    return _run(hashtag_batch.update_subscriber_history)


@pipeline_router.get("/daily-stats")
def list_daily_stats(limit: int = Query(default=100, ge=1, le=1000)):
    """
    일자 내림차순, 해시태그/영상 타입 오름차순으로 정렬된 일별 집계를 조회한다.
    """
    try:
        stats = repository.read_daily_stats(limit=limit)
    except StoreSchemaError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return JSONResponse(jsonable_encoder({"items": stats}))


@pipeline_router.get("/subscriber-history")
def list_subscriber_history(
    channel_title: str | None = Query(default=None, description="채널명 필터"),
    limit: int = Query(default=100, ge=1, le=1000),
):
    try:
        snapshots = repository.read_channel_snapshots(channel_title=channel_title, limit=limit)
    except StoreSchemaError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return JSONResponse(jsonable_encoder({"items": snapshots}))

# 수동 실행 참고:
# 1) 건강 확인:     GET  http://localhost:8000/health
# 2) 전체 동기화:   POST http://localhost:8000/pipeline/full-sync
# 3) 일일 증분:     POST http://localhost:8000/pipeline/daily-incremental
# 4) 일별 집계:     POST http://localhost:8000/pipeline/daily-stats
# 5) 구독자 이력:   POST http://localhost:8000/pipeline/subscriber-history
