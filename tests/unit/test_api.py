"""HTTP surface tests: FastAPI app over fake pipeline dependencies."""

import httpx
import pytest

from agentlab.api.dependencies import get_pipeline_service
from agentlab.domain.errors import LLMError
from agentlab.domain.requests import MISSING_QUESTION_MESSAGE
from agentlab.main import app
from agentlab.utils.tracing import TRACE_ID_HEADER


class StubHealthClient:
    def __init__(self, status):
        self.status = status

    async def health_check(self):
        return self.status


class StubDatabaseHealthClient(StubHealthClient):
    async def health_check(self):
        return {"status": self.status, "connected": self.status == "healthy"}


@pytest.fixture
async def client(pipeline_service):
    app.dependency_overrides[get_pipeline_service] = lambda: pipeline_service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def healthy_clients():
    app.state.db_client = StubDatabaseHealthClient("healthy")
    app.state.llm_client = StubHealthClient("healthy")
    app.state.embedding_client = StubHealthClient("healthy")
    yield
    for name in ("db_client", "llm_client", "embedding_client"):
        delattr(app.state, name)


class TestQueryEndpoint:
    @pytest.mark.asyncio
    async def test_database_answer_shape(self, client, llm):
        llm.responses.update({
            "router": "sql_agent",
            "sql": "SELECT COUNT(*) AS count FROM users",
            "answer": "There are 5 users.",
        })

        response = await client.post("/query", json={"question": "How many users are there?"})

        assert response.status_code == 200
        body = response.json()
        assert body["route"] == "sql_agent"
        assert body["answer"] == "There are 5 users."
        assert body["sql"] == "SELECT COUNT(*) AS count FROM users"
        assert body["rows"] == [{"count": 5}]
        assert body["rowCount"] == 1
        assert body["error"] is None
        assert body["trace_id"] == response.headers[TRACE_ID_HEADER]

    @pytest.mark.asyncio
    async def test_document_answer_has_null_sql_fields(self, client, llm):
        llm.responses.update({"router": "html_rag", "document": "SSO is single sign-on."})

        response = await client.post("/query", json={"question": "What is SSO?"})

        assert response.status_code == 200
        body = response.json()
        assert body["route"] == "html_rag"
        assert body["sql"] is None
        assert body["rows"] is None
        assert body["rowCount"] is None
        assert body["error"] is None

    @pytest.mark.asyncio
    async def test_message_field_accepted(self, client, llm):
        llm.responses.update({"router": "html_rag", "document": "ok"})

        response = await client.post("/query", json={"message": "What is SSO?"})

        assert response.status_code == 200
        assert llm.calls[0]["prompt"] == "What is SSO?"

    @pytest.mark.asyncio
    async def test_recovered_execution_error_is_200(self, client, llm):
        llm.responses.update({"router": "sql_agent", "sql": "DROP TABLE users", "answer": "Read only."})

        response = await client.post("/query", json={"question": "Drop users"})

        assert response.status_code == 200
        assert response.json()["error"] == "Only SELECT queries are allowed"

    @pytest.mark.asyncio
    async def test_bytea_column_is_serialized_as_hex(self, client, llm, db):
        db.rows = [{"id": 1, "avatar": b"\xff\xd8\xff"}]
        llm.responses.update({
            "router": "sql_agent",
            "sql": "SELECT id, avatar FROM users",
            "answer": "User 1 has an avatar.",
        })

        response = await client.post("/query", json={"question": "Show user avatars"})

        assert response.status_code == 200
        body = response.json()
        assert body["rows"] == [{"id": 1, "avatar": "\\xffd8ff"}]
        assert body["rowCount"] == 1
        assert body["answer"] == "User 1 has an avatar."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"question": 42}, {"question": "   "}, {"question": None}, ["How many users?"]],
    )
    async def test_invalid_question_is_400(self, client, llm, payload):
        response = await client.post("/query", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == MISSING_QUESTION_MESSAGE
        assert body["error_code"] == "BAD_REQUEST"
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, client):
        response = await client.post(
            "/query", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == MISSING_QUESTION_MESSAGE

    @pytest.mark.asyncio
    async def test_fatal_failure_is_500_with_raw_message(self, client, llm):
        llm.responses["router"] = LLMError("LLM generation failed: Connection error.")

        response = await client.post(
            "/query", json={"question": "How many users?"}, headers={TRACE_ID_HEADER: "trace-abc"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "LLM generation failed: Connection error."
        assert body["error_code"] == "PIPELINE_ERROR"
        assert body["details"]["operation"] == "classification"
        assert body["trace_id"] == "trace-abc"
        assert response.headers[TRACE_ID_HEADER] == "trace-abc"


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_healthy(self, client, healthy_clients):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["status"] == "healthy"
        assert body["database_status"] == "healthy"

    @pytest.mark.asyncio
    async def test_degraded_is_still_ok(self, client, healthy_clients):
        app.state.db_client = StubDatabaseHealthClient("unhealthy")

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["status"] == "degraded"
        assert body["database_status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_without_clients(self, client):
        response = await client.get("/health")

        body = response.json()
        assert body["ok"] is True
        assert body["llm_service_status"] == "not_configured"


@pytest.mark.asyncio
async def test_trace_id_generated_when_absent(client):
    response = await client.get("/")

    trace_id = response.headers[TRACE_ID_HEADER]
    assert len(trace_id) == 36
    assert response.json()["trace_id"] == trace_id
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_unknown_route_is_404(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"
