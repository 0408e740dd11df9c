"""
Maintenance background tasks.

Removes workspace-scoped rows left behind when a workspace disappeared
outside the normal delete path.
"""

from __future__ import annotations

import asyncio
import logging

from mission_control.workers.celery_app import SWEEP_TASK, celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name=SWEEP_TASK,
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def sweep_orphaned_rows(self) -> dict[str, int]:
    """Run the orphan sweep in one transaction and return per-table counts."""
    try:
        # Fresh loop per run; forked workers inherit a closed one.
        from mission_control.core.database import async_engine
        async_engine.sync_engine.dispose()

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            deleted = loop.run_until_complete(run_orphan_sweep())
        finally:
            loop.close()
        return deleted
    except Exception as exc:
        logger.error("sweep_orphaned_rows failed: %s", exc)
        raise self.retry(exc=exc)


async def run_orphan_sweep(session_factory=None) -> dict[str, int]:
    """Async helper: sweep and commit. Returns only tables with deletions."""
    from mission_control.core.database import AsyncSessionLocal
    from mission_control.services.workspace_service import WorkspaceService

    factory = session_factory or AsyncSessionLocal
    async with factory() as session:
        try:
            report = await WorkspaceService(session).sweep_orphans()
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return {name: count for name, count in report.deleted_data.items() if count}
