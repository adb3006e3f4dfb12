"""Supply-chain ledger API router."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from farmtrace.common.exceptions import PersistenceError, ProductNotFoundError
from farmtrace.common.security import ActorContext, require_actor, require_role
from farmtrace.ledger.blocks import block_hash
from farmtrace.ledger.results import (
    ProductFoundNoStages,
    ProductFoundWithStages,
    ProductNotFound,
)
from farmtrace.ledger.schemas import (
    BatchProductSummary,
    BatchStageResponse,
    IntegrityResponse,
    NoStagesResponse,
    ProducerStageResponse,
    ProductNotFoundResponse,
    ProductWithStagesResponse,
    StageAddedResponse,
    StageCreate,
    StageResponse,
    StageStatsResponse,
    StageTemplateResponse,
)
from farmtrace.ledger.templates import STAGE_TEMPLATES

router = APIRouter(prefix="/supply-chain")


def _get_service():
    from farmtrace.deps import get_ledger_service
    return get_ledger_service()


def _get_db():
    from farmtrace.deps import get_db
    return get_db()


def _persistence_http_error(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=409 if e.integrity else 503, detail=e.message)


# Static paths are registered before /{product_id} so they are not
# captured by it.


@router.get("/templates", response_model=list[StageTemplateResponse])
async def list_stage_templates():
    return [StageTemplateResponse.model_validate(t) for t in STAGE_TEMPLATES]


@router.get("/batch/{batch_code:path}")
async def get_stages_by_batch_code(batch_code: str):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            resolution = await svc.resolve_batch_code(session, batch_code)
    except PersistenceError as e:
        raise _persistence_http_error(e)

    if isinstance(resolution, ProductNotFound):
        return JSONResponse(
            status_code=404,
            content=ProductNotFoundResponse().model_dump(mode="json"),
        )
    if isinstance(resolution, ProductFoundNoStages):
        body = NoStagesResponse(
            product=BatchProductSummary.model_validate(resolution.product),
        )
        return JSONResponse(content=body.model_dump(mode="json"))
    if isinstance(resolution, ProductFoundWithStages):
        return JSONResponse(content=[
            BatchStageResponse.model_validate(s).model_dump(mode="json")
            for s in resolution.stages
        ])
    raise TypeError(f"Unexpected batch resolution: {resolution!r}")


@router.get("/stages/all", response_model=list[StageResponse])
async def get_all_stages():
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            stages = await svc.list_all(session)
            return [StageResponse.model_validate(s) for s in stages]
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.get("/producer/stages", response_model=list[ProducerStageResponse])
async def get_producer_stages(actor: ActorContext = Depends(require_actor)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            stages = await svc.list_by_producer(session, actor.id)
            return [ProducerStageResponse.model_validate(s) for s in stages]
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.get(
    "/producer/products-with-stages",
    response_model=list[ProductWithStagesResponse],
)
async def get_producer_products_with_stages(
    actor: ActorContext = Depends(require_actor),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            entries = await svc.aggregate_by_producer(session, actor.id)
            return [
                ProductWithStagesResponse(
                    id=e.product.id,
                    name=e.product.name,
                    batch_code=e.product.batch_code,
                    description=e.product.description or "",
                    created_by=e.product.created_by,
                    created_at=e.product.created_at,
                    stages=[StageResponse.model_validate(s) for s in e.stages],
                    stageCount=e.stage_count,
                )
                for e in entries
            ]
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.post("/{product_id}", response_model=StageAddedResponse, status_code=201)
async def add_stage(
    product_id: int,
    body: StageCreate,
    actor: ActorContext = Depends(require_role("producer", "admin")),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            stage = await svc.append_stage(
                session,
                product_id=product_id,
                stage_name=body.stage_name,
                location=body.location,
                actor_id=actor.id,
                description=body.description,
                notes=body.notes,
            )
            view = await svc.get_stage(session, stage.id)
            return StageAddedResponse(
                stage=StageResponse.model_validate(view),
                blockHash=block_hash(stage.id, stage.timestamp),
            )
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.get("/{product_id}", response_model=list[StageResponse])
async def get_product_stages(product_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            stages = await svc.list_by_product(session, product_id)
            return [StageResponse.model_validate(s) for s in stages]
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.get("/{product_id}/stats", response_model=StageStatsResponse)
async def get_stage_stats(product_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            stats = await svc.stage_stats(session, product_id)
            return StageStatsResponse(
                total_stages=stats.total_stages,
                first_stage_date=stats.first_stage_date,
                last_stage_date=stats.last_stage_date,
                unique_contributors=stats.unique_contributors,
            )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        raise _persistence_http_error(e)


@router.get("/{product_id}/verify", response_model=IntegrityResponse)
async def verify_product_stages(product_id: int):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            report = await svc.verify_integrity(session, product_id)
            return IntegrityResponse(
                isValid=report.is_valid,
                totalStages=report.total_stages,
                message=report.message,
            )
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except PersistenceError as e:
        raise _persistence_http_error(e)
