import pytest

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_healthy_without_credentials(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    @pytest.mark.parametrize("service", ["database", "cache"])
    def test_reports_each_backing_service(self, api_client, service):
        data = api_client.get("/health").json()

        assert data["services"][service]["status"] == "up"
        assert data["services"][service]["response_time_ms"] >= 0
