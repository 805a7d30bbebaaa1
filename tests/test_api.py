"""
Tests for the monitor API.

Uses TestClient - no running server required.
"""

import threading

import pytest
from fastapi.testclient import TestClient

from printhero.api import create_app
from printhero.config import ServiceConfig
from printhero.jobs.models import PrintJobRecord, PrintJobStatus
from printhero.printing.dispatcher import DryRunPrintDispatcher
from printhero.service import PrintHeroService
from printhero.watchfolders.models import MonitoredFolder


@pytest.fixture
def service(tmp_path):
    config = ServiceConfig(db_path=str(tmp_path / "printhero.db"), log_dir=None, settle_delay=0.0)
    service = PrintHeroService(config, dispatcher=DryRunPrintDispatcher())
    yield service
    service.stop()


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


class TestReadEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_status(self, client):
        body = client.get("/status").json()
        assert body["running"] is False
        assert body["watched_folders"] == []

    def test_folders(self, client, service, hot_folder):
        folder = MonitoredFolder(folder_path=str(hot_folder))
        service.persistence.save_folder(folder)

        body = client.get("/folders").json()

        assert body["count"] == 1
        assert body["folders"][0]["id"] == folder.id
        assert body["folders"][0]["is_watched"] is False

    def test_jobs_with_status_filter(self, client, service):
        service.persistence.save_print_job(PrintJobRecord(
            file_path="/hot/a.pdf", file_name="a.pdf", status=PrintJobStatus.FAILED
        ))
        service.persistence.save_print_job(PrintJobRecord(
            file_path="/hot/b.pdf", file_name="b.pdf", status=PrintJobStatus.COMPLETED
        ))

        body = client.get("/jobs", params={"status": "failed"}).json()

        assert body["count"] == 1
        assert body["jobs"][0]["file_name"] == "a.pdf"

    def test_invalid_job_status_is_rejected(self, client):
        assert client.get("/jobs", params={"status": "lost"}).status_code == 400

    def test_statistics(self, client):
        body = client.get("/statistics").json()
        assert body["files_processed_today"] == 0
        assert body["printing_errors"] == 0


class TestControlEndpoints:

    def test_start_and_stop_watching(self, client, service, hot_folder):
        service.persistence.save_folder(MonitoredFolder(folder_path=str(hot_folder)))

        started = client.post("/watching/start").json()
        assert started == {"running": True, "watched_folders": [str(hot_folder)]}
        assert client.get("/folders").json()["folders"][0]["is_watched"] is True

        stopped = client.post("/watching/stop").json()
        assert stopped["running"] is False
        assert not service.is_running


def _worker_threads():
    return {t for t in threading.enumerate() if t.name.startswith("printhero-worker")}


class TestConcurrentControl:

    def test_concurrent_starts_share_one_session(self, client, service, hot_folder):
        service.persistence.save_folder(MonitoredFolder(folder_path=str(hot_folder)))
        workers_before = _worker_threads()
        barrier = threading.Barrier(4)
        status_codes = []

        def post_start():
            barrier.wait()
            status_codes.append(client.post("/watching/start").status_code)

        threads = [threading.Thread(target=post_start) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(10)

        assert status_codes == [200] * 4
        assert service.registry.watched_folders() == [str(hot_folder)]
        assert len(_worker_threads() - workers_before) == service.config.worker_count

        client.post("/watching/stop")

        assert _worker_threads() - workers_before == set()
