"""Ledger service — append, query, resolve and verify supply-chain stages."""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from farmtrace.common.exceptions import PersistenceError, ProductNotFoundError
from farmtrace.common.logging import get_logger
from farmtrace.ledger.integrity import IntegrityReport, check_chronology
from farmtrace.ledger.models import StageModel
from farmtrace.ledger.results import (
    BatchResolution,
    ProductFoundNoStages,
    ProductFoundWithStages,
    ProductNotFound,
    ProductStages,
    StageStats,
    StageView,
)
from farmtrace.products.models import ProductModel
from farmtrace.products.service import ProductService
from farmtrace.users.models import UserModel

logger = get_logger("ledger")


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Re-raise store failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store rejected %s: %s", action, exc)
        raise PersistenceError(
            f"Store rejected {action}",
            integrity=isinstance(exc, IntegrityError),
        ) from exc


def _to_view(
    stage: StageModel,
    updated_by_name: Optional[str],
    product_name: Optional[str] = None,
    batch_code: Optional[str] = None,
) -> StageView:
    return StageView(
        id=stage.id,
        product_id=stage.product_id,
        stage_name=stage.stage_name,
        location=stage.location,
        updated_by=stage.updated_by,
        timestamp=stage.timestamp,
        updated_by_name=updated_by_name,
        description=stage.description,
        notes=stage.notes,
        product_name=product_name,
        batch_code=batch_code,
    )


class LedgerService:
    """Append-only, timestamp-ordered stage log per product."""

    def __init__(self, product_service: ProductService):
        self.product_service = product_service

    # ── Write ──

    async def append_stage(
        self,
        session: AsyncSession,
        product_id: int,
        stage_name: str,
        location: str,
        actor_id: int,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StageModel:
        """Persist a new stage stamped with the server clock."""
        stage = StageModel(
            product_id=product_id,
            stage_name=stage_name,
            location=location,
            updated_by=actor_id,
            description=description,
            notes=notes,
        )
        session.add(stage)
        with _store_errors(f"stage for product {product_id}"):
            await session.flush()

        logger.info(
            "Stage %s (%s) appended to product %s by actor %s",
            stage.id, stage_name, product_id, actor_id,
        )
        return stage

    # ── Read ──

    @staticmethod
    def _stage_query():
        return (
            select(StageModel, UserModel.full_name)
            .outerjoin(UserModel, UserModel.id == StageModel.updated_by)
        )

    async def _require_product(
        self, session: AsyncSession, product_id: int,
    ) -> ProductModel:
        with _store_errors(f"lookup of product {product_id}"):
            product = await self.product_service.get_by_id(session, product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return product

    async def _journey(
        self, session: AsyncSession, product_id: int,
    ) -> list[StageView]:
        query = (
            self._stage_query()
            .where(StageModel.product_id == product_id)
            .order_by(StageModel.timestamp.asc(), StageModel.id.asc())
        )
        with _store_errors(f"stages of product {product_id}"):
            result = await session.execute(query)
            return [_to_view(stage, name) for stage, name in result.all()]

    async def get_stage(
        self, session: AsyncSession, stage_id: int,
    ) -> StageView | None:
        with _store_errors(f"lookup of stage {stage_id}"):
            result = await session.execute(
                self._stage_query().where(StageModel.id == stage_id)
            )
            row = result.one_or_none()
        if row is None:
            return None
        return _to_view(row[0], row[1])

    async def list_by_product(
        self, session: AsyncSession, product_id: int,
    ) -> list[StageView]:
        """Chronological journey of one product, oldest first."""
        await self._require_product(session, product_id)
        return await self._journey(session, product_id)

    async def list_all(self, session: AsyncSession) -> list[StageView]:
        """Every stage in the ledger, oldest first."""
        query = self._stage_query().order_by(
            StageModel.timestamp.asc(), StageModel.id.asc(),
        )
        with _store_errors("all stages"):
            result = await session.execute(query)
            return [_to_view(stage, name) for stage, name in result.all()]

    async def list_by_producer(
        self, session: AsyncSession, producer_id: int,
    ) -> list[StageView]:
        """Activity feed across a producer's products, newest first."""
        query = (
            select(StageModel, UserModel.full_name, ProductModel.name)
            .join(ProductModel, ProductModel.id == StageModel.product_id)
            .outerjoin(UserModel, UserModel.id == StageModel.updated_by)
            .where(ProductModel.created_by == producer_id)
            .order_by(StageModel.timestamp.desc(), StageModel.id.desc())
        )
        with _store_errors(f"stages of producer {producer_id}"):
            result = await session.execute(query)
            return [
                _to_view(stage, user_name, product_name=product_name)
                for stage, user_name, product_name in result.all()
            ]

    async def resolve_batch_code(
        self, session: AsyncSession, batch_code: str,
    ) -> BatchResolution:
        """Resolve a scanned batch code to one of three outcomes."""
        with _store_errors(f"lookup of batch code {batch_code!r}"):
            product = await self.product_service.get_by_batch_code(session, batch_code)
        if product is None:
            return ProductNotFound(batch_code=batch_code)

        stages = await self._journey(session, product.id)
        if not stages:
            return ProductFoundNoStages(product=product)

        for stage in stages:
            stage.product_name = product.name
            stage.batch_code = product.batch_code
        return ProductFoundWithStages(product=product, stages=stages)

    async def aggregate_by_producer(
        self, session: AsyncSession, producer_id: int,
    ) -> list[ProductStages]:
        """Every product of a producer with its stages, richest history first."""
        query = (
            select(ProductModel, StageModel, UserModel.full_name)
            .outerjoin(StageModel, StageModel.product_id == ProductModel.id)
            .outerjoin(UserModel, UserModel.id == StageModel.updated_by)
            .where(ProductModel.created_by == producer_id)
            .order_by(
                ProductModel.id.asc(),
                StageModel.timestamp.asc(),
                StageModel.id.asc(),
            )
        )
        with _store_errors(f"products of producer {producer_id}"):
            result = await session.execute(query)
            rows = result.all()

        grouped: dict[int, ProductStages] = {}
        for product, stage, user_name in rows:
            entry = grouped.setdefault(product.id, ProductStages(product=product))
            if stage is not None:
                entry.stages.append(_to_view(stage, user_name))

        # sorted() is stable, so equal counts keep product id order
        return sorted(grouped.values(), key=lambda e: e.stage_count, reverse=True)

    async def stage_stats(
        self, session: AsyncSession, product_id: int,
    ) -> StageStats:
        await self._require_product(session, product_id)
        query = select(
            func.count(StageModel.id),
            func.min(StageModel.timestamp),
            func.max(StageModel.timestamp),
            func.count(distinct(StageModel.updated_by)),
        ).where(StageModel.product_id == product_id)
        with _store_errors(f"stats of product {product_id}"):
            result = await session.execute(query)
            total, first, last, contributors = result.one()
        return StageStats(
            total_stages=total or 0,
            first_stage_date=first,
            last_stage_date=last,
            unique_contributors=contributors or 0,
        )

    # ── Verify ──

    async def verify_integrity(
        self, session: AsyncSession, product_id: int,
    ) -> IntegrityReport:
        """Check that stored timestamps never go backwards."""
        await self._require_product(session, product_id)
        with _store_errors(f"timestamps of product {product_id}"):
            result = await session.execute(
                select(StageModel.timestamp)
                .where(StageModel.product_id == product_id)
                .order_by(StageModel.timestamp.asc())
            )
            timestamps = list(result.scalars().all())

        report = check_chronology(timestamps)
        if not report.is_valid:
            logger.warning(
                "Integrity check failed for product %s (%d stages)",
                product_id, report.total_stages,
            )
        return report
