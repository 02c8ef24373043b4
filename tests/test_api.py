"""Tests HTTP: sobre {success, data, error}, códigos de estado y dashboard."""

from sqlalchemy import insert

from common.schema import alert_config, alerts, devices, water_readings
from water_api.errors import DispatchError
from water_api.ingest.coordinator import IngestSettings

from conftest import FakeDispatcher, count_rows


# =============================================================================
# INGESTA
# =============================================================================

class TestIngestEndpoint:

    def test_success_payload_shape(self, client, engine):
        resp = client.post(
            "/api/iot/water-level",
            json={
                "device_id": "D1",
                "water_level_cm": 40.2,
                "water_level_percent": 15,
                "timestamp": "2026-01-01T10:00:00Z",
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["error"] is None
        data = body["data"]
        assert data["reading"]["status"] == "LOW"
        assert data["reading"]["device_id"] == "D1"
        assert data["reading"]["water_level_cm"] == 40.2
        assert data["reading"]["created_at"].startswith("2026-01-01T10:00:00")
        assert data["device"] == {"device_id": "D1", "name": "Device D1"}
        assert data["config"] == {
            "minLevelPercent": 20.0,
            "maxLevelPercent": 90.0,
            "alertEnabled": True,
            "deviceChatId": None,
        }
        assert count_rows(engine, alerts) == 1

    def test_missing_device_id_is_400(self, client, engine):
        resp = client.post("/api/iot/water-level", json={"water_level_percent": 50})

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "data": None, "error": "DEVICE_ID_REQUIRED"}
        assert count_rows(engine, water_readings) == 0

    def test_wrong_secret_is_403(self, make_client, engine):
        client = make_client(settings=IngestSettings(shared_secret="abc"))

        resp = client.post(
            "/api/iot/water-level",
            json={"device_id": "D1", "water_level_percent": 50, "secret_key": "wrong"},
        )

        assert resp.status_code == 403
        assert resp.json()["error"] == "INVALID_SECRET_KEY"
        assert count_rows(engine, devices) == 0

    def test_malformed_field_is_400(self, client, engine):
        resp = client.post(
            "/api/iot/water-level",
            json={"device_id": "D1", "water_level_percent": "mucho"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "data": None, "error": "INVALID_PAYLOAD"}
        assert count_rows(engine, water_readings) == 0

    def test_empty_body_is_device_id_required(self, client, engine):
        resp = client.post("/api/iot/water-level")

        assert resp.status_code == 400
        assert resp.json()["error"] == "DEVICE_ID_REQUIRED"
        assert count_rows(engine, water_readings) == 0

    def test_malformed_field_without_device_id(self, client):
        resp = client.post("/api/iot/water-level", json={"water_level_percent": "n/a"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "DEVICE_ID_REQUIRED"

    def test_wrong_secret_checked_before_field_types(self, make_client, engine):
        client = make_client(settings=IngestSettings(shared_secret="abc"))

        resp = client.post(
            "/api/iot/water-level",
            json={"device_id": "D1", "secret_key": "wrong", "water_level_percent": "n/a"},
        )

        assert resp.status_code == 403
        assert resp.json()["error"] == "INVALID_SECRET_KEY"
        assert count_rows(engine, devices) == 0

    def test_timestamp_offset_stored_as_utc(self, client):
        first = client.post(
            "/api/iot/water-level",
            json={"device_id": "D1", "water_level_percent": 40, "timestamp": "2026-01-01T15:00:00+07:00"},
        ).json()
        client.post(
            "/api/iot/water-level",
            json={"device_id": "D1", "water_level_percent": 60, "timestamp": "2026-01-01T09:00:00Z"},
        )

        assert first["data"]["reading"]["created_at"].startswith("2026-01-01T08:00:00")

        latest = client.get("/api/devices/D1/latest").json()["data"]
        assert latest["water_level_percent"] == 60.0

        ranged = client.get(
            "/api/devices/D1/readings",
            params={"from": "2026-01-01T14:30:00+07:00", "to": "2026-01-01T08:30:00Z"},
        ).json()["data"]
        assert ranged["total"] == 1
        assert ranged["items"][0]["water_level_percent"] == 40.0
        assert ranged["items"][0]["created_at"].startswith("2026-01-01T08:00:00")

    def test_device_id_is_trimmed(self, client, engine):
        client.post("/api/iot/water-level", json={"device_id": " D1 ", "water_level_percent": 50})
        body = client.post("/api/iot/water-level", json={"device_id": "D1", "water_level_percent": 50}).json()

        assert body["data"]["device"]["device_id"] == "D1"
        assert count_rows(engine, devices) == 1

    def test_dispatch_failure_still_succeeds(self, make_client, engine):
        failing = FakeDispatcher(error=DispatchError("TELEGRAM_SEND_ERROR: Timeout"))
        client = make_client(fake_dispatcher=failing)

        resp = client.post("/api/iot/water-level", json={"device_id": "D1", "water_level_percent": 97})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert failing.attempts == 1
        assert count_rows(engine, alerts) == 1


# =============================================================================
# DASHBOARD
# =============================================================================

class TestDashboardEndpoints:

    def _ingest(self, client, percent, ts, device_id="D1"):
        resp = client.post(
            "/api/iot/water-level",
            json={"device_id": device_id, "water_level_percent": percent, "timestamp": ts},
        )
        assert resp.status_code == 200

    def test_list_devices(self, client):
        self._ingest(client, 50, "2026-01-01T10:00:00Z", "D1")
        self._ingest(client, 50, "2026-01-01T10:00:00Z", "D2")

        body = client.get("/api/devices").json()

        assert body["success"] is True
        assert [d["device_id"] for d in body["data"]] == ["D1", "D2"]
        assert body["data"][0]["name"] == "Device D1"

    def test_latest_reading(self, client):
        self._ingest(client, 40, "2026-01-01T10:00:00Z")
        self._ingest(client, 60, "2026-01-01T11:00:00Z")

        body = client.get("/api/devices/D1/latest").json()

        assert body["data"]["water_level_percent"] == 60.0

    def test_latest_reading_none(self, client):
        body = client.get("/api/devices/NOPE/latest").json()
        assert body == {"success": True, "data": None, "error": None}

    def test_readings_paging_and_range(self, client):
        for hour, pct in ((8, 30), (9, 40), (10, 50), (11, 60)):
            self._ingest(client, pct, f"2026-01-01T{hour:02d}:00:00Z")

        page = client.get("/api/devices/D1/readings", params={"limit": 2, "offset": 1}).json()["data"]
        assert page["total"] == 4
        assert page["limit"] == 2
        assert page["offset"] == 1
        assert [r["water_level_percent"] for r in page["items"]] == [50.0, 40.0]

        ranged = client.get(
            "/api/devices/D1/readings",
            params={"from": "2026-01-01T09:00:00Z", "to": "2026-01-01T10:00:00Z"},
        ).json()["data"]
        assert ranged["total"] == 2
        assert ranged["limit"] == 100

    def test_readings_limit_capped(self, client):
        page = client.get("/api/devices/D1/readings", params={"limit": 5000}).json()["data"]
        assert page["limit"] == 1000
        assert page["items"] == []

    def test_get_config_default_is_not_persisted(self, client, engine):
        body = client.get("/api/devices/D1/config").json()

        assert body["data"] == {
            "deviceId": "D1",
            "minLevelPercent": 20.0,
            "maxLevelPercent": 90.0,
            "alertEnabled": True,
            "telegramChatId": None,
            "isDefault": True,
        }
        assert count_rows(engine, alert_config) == 0

    def test_put_config_then_ingest_uses_it(self, client, dispatcher):
        resp = client.put(
            "/api/devices/D1/config",
            json={"maxLevelPercent": 70, "telegramChatId": 6507355215},
        )
        assert resp.status_code == 200
        assert resp.json()["data"] == {
            "deviceId": "D1",
            "minLevelPercent": 20.0,
            "maxLevelPercent": 70.0,
            "alertEnabled": True,
            "telegramChatId": "6507355215",
        }

        body = client.post("/api/iot/water-level", json={"device_id": "D1", "water_level_percent": 75}).json()

        assert body["data"]["reading"]["status"] == "HIGH"
        assert body["data"]["config"]["deviceChatId"] == "6507355215"
        assert dispatcher.sent[0][0] == "6507355215"

        cfg = client.get("/api/devices/D1/config").json()["data"]
        assert cfg["isDefault"] is False
        assert cfg["maxLevelPercent"] == 70.0


# =============================================================================
# SALUD Y TELEGRAM
# =============================================================================

class TestOperationalEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"success": True, "data": "OK", "error": None}

    def test_ready(self, client):
        assert client.get("/ready").status_code == 200

    def test_db_test_counts_devices(self, client, engine):
        with engine.begin() as conn:
            conn.execute(insert(devices).values(device_id="D1", name="x", location=""))
        assert client.get("/db-test").json()["data"] == {"deviceCount": 1}

    def test_telegram_test_uses_default_chat(self, client, dispatcher):
        body = client.post("/api/telegram/test").json()

        assert body["success"] is True
        assert body["data"]["chatId"] == "default-chat"
        assert dispatcher.sent == [("default-chat", body["data"]["text"])]

    def test_telegram_test_requires_chat(self, make_client):
        client = make_client(settings=IngestSettings())
        resp = client.post("/api/telegram/test", json={"text": "hola"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "CHAT_ID_REQUIRED"

    def test_telegram_test_send_failure(self, make_client):
        client = make_client(fake_dispatcher=FakeDispatcher(error=DispatchError("boom")))
        resp = client.post("/api/telegram/test", json={"chatId": "1"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "TELEGRAM_SEND_ERROR"
