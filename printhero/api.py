"""
PrintHero monitor API.

Local HTTP view of the running service: status, monitored folders, the
print job log and daily statistics, plus start/stop of watching.

Security Warning:
-----------------
Binds to localhost (127.0.0.1) by default. No authentication is
implemented; anyone who can reach the port can stop printing and read
file paths from the job log. Only bind elsewhere on trusted networks.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from . import __version__
from .jobs.models import PrintJobStatus
from .persistence.errors import PersistenceError
from .service import PrintHeroService

logger = logging.getLogger(__name__)


DEFAULT_HOST = "127.0.0.1"


def create_app(service: PrintHeroService) -> FastAPI:
    """
    Create the monitor API application for a service instance.

    The service is not started here; callers decide whether watching runs.
    """
    app = FastAPI(
        title="PrintHero Monitor API",
        description="Status and control of the PrintHero hot folder service.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    @app.get("/status")
    async def status():
        """Watching state, printer selection and today's counters."""
        return service.status()

    # -------------------------------------------------------------------------
    # Folders and jobs
    # -------------------------------------------------------------------------

    @app.get("/folders")
    async def list_folders():
        """All monitored folders, flagged with whether they are watched now."""
        try:
            folders = service.persistence.load_all_monitored_folders()
        except PersistenceError as e:
            raise HTTPException(status_code=500, detail=str(e))

        watched = set(service.registry.watched_folders())
        return {
            "count": len(folders),
            "folders": [
                {
                    **folder.model_dump(mode="json"),
                    "is_watched": str(Path(folder.folder_path).absolute()) in watched,
                }
                for folder in folders
            ],
        }

    @app.get("/jobs")
    async def list_jobs(
        status: Optional[str] = Query(None, description="Filter by status: pending, printing, completed, failed, cancelled"),
        limit: int = Query(100, ge=1, le=1000, description="Maximum results"),
    ):
        """Print job log, newest first."""
        status_filter = None
        if status:
            try:
                status_filter = PrintJobStatus(status)
            except ValueError:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid status: {status}. Valid values: "
                    f"{', '.join(s.value for s in PrintJobStatus)}",
                )

        try:
            jobs = service.persistence.load_print_jobs(limit=limit, status=status_filter)
        except PersistenceError as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {
            "count": len(jobs),
            "jobs": [job.model_dump(mode="json") for job in jobs],
        }

    @app.get("/statistics")
    async def statistics():
        """Today's processed and failed counts."""
        return service.statistics.snapshot().model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    @app.post("/watching/start")
    def start_watching():
        """Start watching all active folders (adds new ones if already running)."""
        try:
            watched = service.start()
        except PersistenceError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"running": service.is_running, "watched_folders": watched}

    @app.post("/watching/stop")
    def stop_watching():
        """Stop watching; waits for queued files to finish."""
        service.stop()
        return {"running": service.is_running, "watched_folders": []}

    return app


def run_api_server(
    service: PrintHeroService,
    host: Optional[str] = None,
    port: Optional[int] = None,
    start_watching: bool = True,
) -> None:
    """
    Serve the monitor API with uvicorn, optionally watching folders meanwhile.

    Watching is stopped when the server exits.
    """
    import uvicorn

    host = host or service.config.api_host or DEFAULT_HOST
    port = port or service.config.api_port
    app = create_app(service)

    if host not in ("127.0.0.1", "localhost"):
        logger.warning(f"Monitor API bound to {host}: no authentication is configured")

    if start_watching:
        service.start()
    try:
        logger.info(f"Starting PrintHero monitor API on {host}:{port}")
        uvicorn.run(app, host=host, port=port)
    finally:
        service.stop()
