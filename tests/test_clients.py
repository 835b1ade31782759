"""Tests for the document client - behavior focused with HTTP mocking."""

import json
from unittest.mock import patch

import httpx
import pytest

from docdb_client.clients import DocumentClient
from docdb_client.exceptions import (
    ConflictError,
    DocumentClientError,
    NotFoundError,
    RequestRateTooLargeError,
    TransportError,
)
from docdb_client.retry import ConnectionPolicy, RetryOptions

ACCOUNT = "https://acct.example.com"
EAST = "https://acct-east.example.com"
WEST = "https://acct-west.example.com"

DOC_LINK = "dbs/db/colls/c/docs/1"


# --- Helper to script service responses ---


class Router:
    """httpx.MockTransport handler returning scripted responses per (method, url)."""

    def __init__(self):
        self.routes: dict[tuple[str, str], list[tuple]] = {}
        self.seen: list[httpx.Request] = []

    def add(self, method: str, url: str, *responses: tuple) -> None:
        """Each response is (status_code, json_body, headers); the last one repeats."""
        self.routes[(method, url)] = list(responses)

    def count(self, method: str, url: str) -> int:
        return sum(1 for r in self.seen if r.method == method and str(r.url) == url)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.seen.append(request)
        responses = self.routes[(request.method, str(request.url))]
        status_code, body, headers = responses.pop(0) if len(responses) > 1 else responses[0]
        if body is None:
            return httpx.Response(status_code, headers=headers or {})
        return httpx.Response(status_code, json=body, headers=headers or {})


def account_body(write: str, reads: list[tuple[str, str]]) -> dict:
    return {
        "writableLocations": [{"name": "Write", "databaseAccountEndpoint": write}],
        "readableLocations": [{"name": name, "databaseAccountEndpoint": url} for name, url in reads],
    }


def make_client(handler, **policy_kwargs) -> DocumentClient:
    policy_kwargs.setdefault("enable_endpoint_discovery", False)
    policy_kwargs.setdefault("retry_options", RetryOptions(base_delay=0, jitter=0))
    return DocumentClient(
        ACCOUNT,
        auth_token="type=resource&sig=abc",
        connection_policy=ConnectionPolicy(**policy_kwargs),
        transport=httpx.MockTransport(handler),
    )


# --- Fixtures ---


@pytest.fixture
def router():
    return Router()


@pytest.fixture
def sleep():
    with patch("docdb_client.retry.utility.time.sleep") as mock_sleep:
        yield mock_sleep


# --- Reads and errors ---


class TestReadDocument:
    """Test single-region read behavior."""

    def test_returns_body_on_success(self, router):
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (200, {"id": "1"}, None))

        with make_client(router) as client:
            assert client.read_document(DOC_LINK) == {"id": "1"}

    def test_sends_auth_and_version_headers(self, router):
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (200, {"id": "1"}, None))

        with make_client(router) as client:
            client.read_document(DOC_LINK, partition_key="p1")

        sent = router.seen[0]
        assert sent.headers["authorization"] == "type=resource&sig=abc"
        assert "x-ms-version" in sent.headers
        assert json.loads(sent.headers["x-ms-documentdb-partitionkey"]) == ["p1"]

    def test_plain_not_found_is_not_retried(self, router):
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (404, {"message": "gone"}, None))

        with make_client(router) as client:
            with pytest.raises(NotFoundError) as exc_info:
                client.read_document(DOC_LINK)

        assert exc_info.value.message == "gone"
        assert len(router.seen) == 1

    def test_maps_conflict(self, router):
        router.add("PUT", f"{ACCOUNT}/{DOC_LINK}", (409, {"message": "exists"}, None))

        with make_client(router) as client:
            with pytest.raises(ConflictError):
                client.replace_document(DOC_LINK, {"id": "1"})

    def test_connection_failure_raises_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused")

        client = DocumentClient(
            ACCOUNT,
            connection_policy=ConnectionPolicy(enable_endpoint_discovery=False),
            transport=httpx.MockTransport(refuse),
        )

        with pytest.raises(TransportError):
            client.read_document(DOC_LINK)

    @pytest.mark.parametrize(
        "failure",
        [
            httpx.ReadError("connection reset"),
            httpx.WriteError("broken pipe"),
            httpx.RemoteProtocolError("malformed frame"),
        ],
    )
    def test_any_httpx_transport_failure_raises_transport_error(self, failure):
        def fail(request):
            raise failure

        with make_client(fail) as client:
            with pytest.raises(TransportError) as exc_info:
                client.read_document(DOC_LINK)

        assert exc_info.value.__cause__ is failure

    def test_unparseable_error_headers_are_ignored(self, router):
        router.add(
            "GET",
            f"{ACCOUNT}/{DOC_LINK}",
            (404, {"message": "gone"}, {"x-ms-substatus": "abc", "x-ms-retry-after-ms": "soon"}),
        )

        with make_client(router) as client:
            with pytest.raises(NotFoundError) as exc_info:
                client.read_document(DOC_LINK)

        assert exc_info.value.sub_status_code is None
        assert exc_info.value.retry_after is None

    def test_decimal_sub_status_header_is_read(self, router):
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (404, None, {"x-ms-substatus": "1002.0"}))

        with make_client(router) as client:
            with pytest.raises(NotFoundError) as exc_info:
                client.read_document(DOC_LINK)

        assert exc_info.value.sub_status_code == 1002



class TestThrottling:
    """Test 429 handling end to end."""

    def test_retries_until_success(self, router, sleep):
        throttled = (429, {"message": "busy"}, {"x-ms-retry-after-ms": "0"})
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", throttled, throttled, (200, {"id": "1"}, None))

        with make_client(router) as client:
            assert client.read_document(DOC_LINK) == {"id": "1"}

        assert len(router.seen) == 3

    def test_exhaustion_raises_throttle_error(self, router, sleep):
        router.add(
            "GET",
            f"{ACCOUNT}/{DOC_LINK}",
            (429, None, {"x-ms-retry-after-ms": "250", "x-ms-activity-id": "act-1"}),
        )
        options = RetryOptions(max_retry_attempts_on_throttled_requests=2)

        with make_client(router, retry_options=options) as client:
            with pytest.raises(RequestRateTooLargeError) as exc_info:
                client.read_document(DOC_LINK)

        assert exc_info.value.retry_after == 0.25
        assert exc_info.value.activity_id == "act-1"
        assert len(router.seen) == 2
        sleep.assert_called_once_with(0.25)

    def test_fractional_retry_after_header(self, router, sleep):
        router.add(
            "GET",
            f"{ACCOUNT}/{DOC_LINK}",
            (429, None, {"x-ms-retry-after-ms": "12.5"}),
            (200, {"id": "1"}, None),
        )

        with make_client(router) as client:
            assert client.read_document(DOC_LINK) == {"id": "1"}

        sleep.assert_called_once_with(0.0125)



# --- Multi-region ---


class TestMultiRegion:
    """Test endpoint discovery and session-read failover."""

    def test_session_read_fails_over_to_next_region(self, router, sleep):
        router.add("GET", f"{ACCOUNT}/", (200, account_body(EAST, [("East", EAST), ("West", WEST)]), None))
        router.add("GET", f"{EAST}/{DOC_LINK}", (404, None, {"x-ms-substatus": "1002"}))
        router.add("GET", f"{WEST}/{DOC_LINK}", (200, {"id": "1"}, None))

        with make_client(router, enable_endpoint_discovery=True, preferred_locations=["East", "West"]) as client:
            assert client.read_document(DOC_LINK) == {"id": "1"}

        assert router.count("GET", f"{EAST}/{DOC_LINK}") == 1
        assert router.count("GET", f"{WEST}/{DOC_LINK}") == 1

    def test_write_forbidden_follows_new_write_region(self, router, sleep):
        router.add(
            "GET",
            f"{ACCOUNT}/",
            (200, account_body(EAST, [("East", EAST)]), None),
            (200, account_body(WEST, [("West", WEST)]), None),
        )
        router.add("PUT", f"{EAST}/{DOC_LINK}", (403, None, {"x-ms-substatus": "3"}))
        router.add("PUT", f"{WEST}/{DOC_LINK}", (200, {"id": "1", "v": 2}, None))

        with make_client(router, enable_endpoint_discovery=True) as client:
            result = client.replace_document(DOC_LINK, {"id": "1", "v": 2})

        assert result == {"id": "1", "v": 2}
        assert router.count("GET", f"{ACCOUNT}/") == 2
        sleep.assert_called_once_with(1.0)

    @pytest.mark.parametrize(
        "body",
        [
            {"writableLocations": [{"name": "East"}]},
            {"writableLocations": [None]},
            {"readableLocations": "East"},
            ["not", "an", "account"],
        ],
    )
    def test_malformed_account_falls_back_to_default_endpoint(self, router, body):
        router.add("GET", f"{ACCOUNT}/", (200, body, None))
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (200, {"id": "1"}, None))

        with make_client(router, enable_endpoint_discovery=True) as client:
            assert client.read_document(DOC_LINK) == {"id": "1"}
            assert client.endpoint_manager.write_endpoint == ACCOUNT

            with pytest.raises(DocumentClientError, match="Malformed database account"):
                client.endpoint_manager.refresh_endpoint_list()

        assert router.count("GET", f"{ACCOUNT}/") == 2

    def test_transport_failure_during_refresh_keeps_cached_write_region(self, sleep):
        account_reads = []
        writes = []

        def service(request):
            if request.method == "GET":
                account_reads.append(request)
                if len(account_reads) > 1:
                    raise httpx.ReadError("connection reset")
                return httpx.Response(200, json=account_body(EAST, [("East", EAST)]))
            writes.append(request)
            if len(writes) == 1:
                return httpx.Response(403, headers={"x-ms-substatus": "3"})
            return httpx.Response(200, json={"id": "1"})

        with make_client(service, enable_endpoint_discovery=True) as client:
            assert client.replace_document(DOC_LINK, {"id": "1"}) == {"id": "1"}

        assert len(account_reads) == 2
        assert [str(w.url) for w in writes] == [f"{EAST}/{DOC_LINK}"] * 2



# --- Create ---


class TestCreateDocument:
    """Test partition-key resolution on create."""

    def test_stale_definition_is_refreshed_once(self, router, sleep):
        router.add(
            "GET",
            f"{ACCOUNT}/dbs/db/colls/c",
            (200, {"id": "c", "partitionKey": {"paths": ["/region"], "kind": "Hash"}}, None),
            (200, {"id": "c", "partitionKey": {"paths": ["/city"], "kind": "Hash"}}, None),
        )
        router.add(
            "POST",
            f"{ACCOUNT}/dbs/db/colls/c/docs",
            (400, {"message": "mismatch"}, {"x-ms-substatus": "1001"}),
            (201, {"id": "1", "city": "Oslo"}, None),
        )

        with make_client(router) as client:
            created = client.create_document("dbs/db/colls/c", {"id": "1", "city": "Oslo"})

        assert created == {"id": "1", "city": "Oslo"}
        assert router.count("GET", f"{ACCOUNT}/dbs/db/colls/c") == 2
        posts = [r for r in router.seen if r.method == "POST"]
        assert json.loads(posts[0].headers["x-ms-documentdb-partitionkey"]) == [{}]
        assert json.loads(posts[1].headers["x-ms-documentdb-partitionkey"]) == ["Oslo"]

    def test_explicit_partition_key_skips_collection_read(self, router):
        router.add("POST", f"{ACCOUNT}/dbs/db/colls/c/docs", (201, {"id": "1"}, None))

        with make_client(router) as client:
            client.create_document("dbs/db/colls/c", {"id": "1"}, partition_key="p1")

        assert len(router.seen) == 1
        assert json.loads(router.seen[0].headers["x-ms-documentdb-partitionkey"]) == ["p1"]

    def test_session_token_from_write_is_used_for_reads(self, router):
        router.add(
            "POST",
            f"{ACCOUNT}/dbs/db/colls/c/docs",
            (201, {"id": "1"}, {"x-ms-session-token": "0:42"}),
        )
        router.add("GET", f"{ACCOUNT}/{DOC_LINK}", (200, {"id": "1"}, None))

        with make_client(router) as client:
            client.create_document("dbs/db/colls/c", {"id": "1"}, partition_key="p1")
            client.read_document(DOC_LINK)

        assert router.seen[-1].headers["x-ms-session-token"] == "0:42"


# --- Delete and query ---


class TestDeleteAndQuery:
    """Test delete and paged query behavior."""

    def test_delete_returns_none(self, router):
        router.add("DELETE", f"{ACCOUNT}/{DOC_LINK}", (204, None, None))

        with make_client(router) as client:
            assert client.delete_document(DOC_LINK) is None

    def test_query_follows_continuation(self, router):
        router.add(
            "POST",
            f"{ACCOUNT}/dbs/db/colls/c/docs",
            (200, {"Documents": [{"id": "1"}]}, {"x-ms-continuation": "page-2"}),
            (200, {"Documents": [{"id": "2"}]}, None),
        )

        with make_client(router) as client:
            documents = client.query_documents(
                "dbs/db/colls/c",
                "SELECT * FROM c WHERE c.city = @city",
                [{"name": "@city", "value": "Oslo"}],
            )

        assert documents == [{"id": "1"}, {"id": "2"}]
        first, second = router.seen
        assert first.headers["x-ms-documentdb-isquery"] == "true"
        assert first.headers["content-type"] == "application/query+json"
        assert json.loads(first.content)["parameters"] == [{"name": "@city", "value": "Oslo"}]
        assert second.headers["x-ms-continuation"] == "page-2"
