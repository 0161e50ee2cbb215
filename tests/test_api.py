import pytest
from fastapi.testclient import TestClient

from omnia import main
from omnia.engine.dashboard import Dashboard


@pytest.fixture
def client(daily_store, monkeypatch):
    monkeypatch.setitem(main.STATE, "dashboard", Dashboard(daily_store))
    return TestClient(main.app)


class TestOptions:
    def test_lists_timeframes_and_modes(self, client):
        data = client.get("/api/options").json()
        assert [t["value"] for t in data["timeframes"]] == ["7d", "14d", "30d"]
        assert [m["value"] for m in data["focus_modes"]] == ["sleep", "stress", "heart-rate", "oxygenation"]
        assert data["default_timeframe"] == "14d"
        assert data["default_focus_mode"] == "sleep"


class TestDashboardEndpoint:
    def test_view(self, client):
        response = client.get("/api/dashboard", params={"timeframe": "7d", "focus": "stress"})
        assert response.status_code == 200
        data = response.json()
        assert data["has_data"] is True
        assert len(data["chart_data"]) == 7
        assert data["axes"][0]["domain"] == [0, 100]
        assert data["summary"]["primary"]["change"] == -6

    def test_defaults(self, client):
        data = client.get("/api/dashboard").json()
        assert data["timeframe"]["value"] == "14d"
        assert data["focus"]["mode"] == "sleep"
        assert len(data["samples"]) == 14

    @pytest.mark.parametrize("params", [
        {"timeframe": "90d"},
        {"focus": "mood"},
    ])
    def test_bad_selection(self, client, params):
        assert client.get("/api/dashboard", params=params).status_code == 400


class TestSamplesAndCards:
    def test_samples(self, client):
        data = client.get("/api/samples").json()
        assert len(data) == 20
        assert data[0]["timestamp"] == "2024-01-01T00:00:00"
        assert data[0]["steps"] == 5000

    def test_summary_cards(self, client):
        data = client.get("/api/summary-cards").json()
        assert [card["id"] for card in data] == ["heart-rate", "oxygenation", "steps", "sleep"]


class TestConvertEndpoint:
    def test_converts_upload(self, client):
        files = {"file": ("export.csv", b"Date,Heart Rate\n1/5/2024,72\n", "text/csv")}
        response = client.post("/api/convert", files=files)
        assert response.status_code == 200
        assert response.json() == [{"date": "2024-01-05", "heartRate": 72}]

    def test_rejects_file_without_rows(self, client):
        files = {"file": ("export.csv", b"Date,Heart Rate\n", "text/csv")}
        response = client.post("/api/convert", files=files)
        assert response.status_code == 400
        assert response.json()["detail"] == "CSV is missing data rows."


class TestStoreLoading:
    def test_loads_store_on_first_use(self, tmp_path, monkeypatch):
        path = tmp_path / "data.json"
        path.write_text('[{"date": "2024-01-01", "steps": 10}]', encoding="utf-8")
        monkeypatch.setattr(main, "DATA_PATH", str(path))
        monkeypatch.setitem(main.STATE, "dashboard", None)

        data = TestClient(main.app).get("/api/samples").json()
        assert len(data) == 1
        assert data[0]["steps"] == 10

    @pytest.mark.parametrize("url", ["/api/dashboard", "/api/samples", "/api/summary-cards"])
    def test_corrupt_data_file_is_server_error(self, url, tmp_path, monkeypatch):
        path = tmp_path / "data.json"
        path.write_text("[{not json", encoding="utf-8")
        monkeypatch.setattr(main, "DATA_PATH", str(path))
        monkeypatch.setitem(main.STATE, "dashboard", None)

        response = TestClient(main.app).get(url)
        assert response.status_code == 500
        assert response.json()["detail"] == "Health data could not be loaded."
        assert main.STATE["dashboard"] is None

    def test_bad_selection_is_rejected_before_loading(self, tmp_path, monkeypatch):
        path = tmp_path / "data.json"
        path.write_text("[{not json", encoding="utf-8")
        monkeypatch.setattr(main, "DATA_PATH", str(path))
        monkeypatch.setitem(main.STATE, "dashboard", None)

        response = TestClient(main.app).get("/api/dashboard", params={"focus": "mood"})
        assert response.status_code == 400
