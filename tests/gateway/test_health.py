"""健康检查与请求日志测试"""

from doma.gateway.middleware.logging_mw import _task_id_from_path


class TestHealth:
    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_readiness(self, client):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ready"
        assert body["checks"]["sqlite"] == "ok"
        assert body["checks"]["wal_mode"] == "ok"
        assert body["checks"]["notifier"] == "log"


class TestRequestLogging:
    async def test_request_id_header(self, client):
        first = await client.get("/health")
        second = await client.get("/health")
        assert len(first.headers["X-Request-ID"]) == 26
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    def test_task_id_extracted_from_path(self):
        assert _task_id_from_path("/api/tasks/01ABC/comments") == "01ABC"
        assert _task_id_from_path("/api/tasks") is None
        assert _task_id_from_path("/api/spaces/S1/status") is None
