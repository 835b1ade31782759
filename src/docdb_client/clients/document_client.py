"""
Document service client.

Issues document operations over HTTP and routes every one of them through the
retry orchestrators. Owns the process-wide routing caches (endpoint manager,
partition-key definitions) that the retry policies consult.
"""

import json
import logging
import math
import threading
from typing import Any

import httpx

from .request import (
    DocumentServiceRequest,
    DocumentServiceResponse,
    OperationType,
    ResourceType,
)
from ..constants import API_VERSION, HttpHeader
from ..exceptions import DocumentClientError, TransportError, error_from_status
from ..retry import ConnectionPolicy, execute, execute_create
from ..routing import (
    DatabaseAccount,
    GlobalEndpointManager,
    PartitionKeyDefinition,
    PartitionKeyDefinitionMap,
)

logger = logging.getLogger(__name__)


class DocumentClient:
    """
    Client for a partitioned, multi-region document service.

    Features:
    - Write-region failover through endpoint discovery
    - Throttle retry within a configurable budget
    - Session reads retried against alternate regions
    - Document create retried after a stale partition-key definition
    """

    def __init__(
        self,
        url: str,
        auth_token: str | None = None,
        connection_policy: ConnectionPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            url: Account endpoint, e.g. https://myaccount.documents.example.com
            auth_token: Value sent as the authorization header
            connection_policy: Retry budget, discovery and timeout settings
            transport: Optional httpx transport (mocking, proxies)
        """
        self.url = url.rstrip("/")
        self.auth_token = auth_token
        self._connection_policy = connection_policy or ConnectionPolicy()
        self._http = httpx.Client(
            timeout=self._connection_policy.request_timeout,
            transport=transport,
        )
        self._endpoint_manager = GlobalEndpointManager(
            self.url, self._connection_policy, self._read_database_account
        )
        self._partition_key_definition_map = PartitionKeyDefinitionMap(
            self._read_partition_key_definition
        )
        self._session_lock = threading.Lock()
        self._session_tokens: dict[str, str] = {}

    @property
    def connection_policy(self) -> ConnectionPolicy:
        return self._connection_policy

    @property
    def endpoint_manager(self) -> GlobalEndpointManager:
        return self._endpoint_manager

    @property
    def partition_key_definition_map(self) -> PartitionKeyDefinitionMap:
        return self._partition_key_definition_map

    def __enter__(self) -> "DocumentClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # --- Document operations ---

    def read_document(
        self,
        document_link: str,
        partition_key: Any = None,
        session_token: str | None = None,
    ) -> dict:
        """
        Read a document.

        Args:
            document_link: dbs/<db>/colls/<coll>/docs/<id>
            partition_key: Partition-key value of the document
            session_token: Session token to read at; defaults to the last one
                seen for the collection

        Returns:
            The document body
        """
        headers = self._partition_key_header(partition_key)
        if session_token:
            headers[HttpHeader.SESSION_TOKEN] = session_token
        request = DocumentServiceRequest(
            OperationType.READ, ResourceType.DOCUMENT, document_link.strip("/"), headers=headers
        )
        return execute(self._do_request, self, request).body

    def create_document(
        self,
        collection_link: str,
        document: dict,
        partition_key: Any = None,
    ) -> dict:
        """
        Create a document.

        Without an explicit partition key the key is extracted from the
        document using the collection's cached partition-key definition. If
        the service reports that definition stale, it is refreshed and the
        create is issued once more.

        Args:
            collection_link: dbs/<db>/colls/<coll>
            document: Document body
            partition_key: Explicit partition-key value

        Returns:
            The created document as stored by the service
        """
        collection_link = collection_link.strip("/")

        def create() -> DocumentServiceResponse:
            if partition_key is not None:
                headers = self._partition_key_header(partition_key)
            else:
                headers = {}
                definition = self._partition_key_definition_map.get(collection_link)
                if definition is not None:
                    headers[HttpHeader.PARTITION_KEY] = definition.header_value(document)
            request = DocumentServiceRequest(
                OperationType.CREATE,
                ResourceType.DOCUMENT,
                f"{collection_link}/docs",
                body=document,
                headers=headers,
            )
            return execute(self._do_request, self, request)

        return execute_create(create, self, collection_link).body

    def replace_document(self, document_link: str, document: dict, partition_key: Any = None) -> dict:
        """Replace a document, returning the stored body."""
        request = DocumentServiceRequest(
            OperationType.REPLACE,
            ResourceType.DOCUMENT,
            document_link.strip("/"),
            body=document,
            headers=self._partition_key_header(partition_key),
        )
        return execute(self._do_request, self, request).body

    def delete_document(self, document_link: str, partition_key: Any = None) -> None:
        request = DocumentServiceRequest(
            OperationType.DELETE,
            ResourceType.DOCUMENT,
            document_link.strip("/"),
            headers=self._partition_key_header(partition_key),
        )
        execute(self._do_request, self, request)

    def query_documents(
        self,
        collection_link: str,
        query: str,
        parameters: list[dict] | None = None,
        partition_key: Any = None,
    ) -> list[dict]:
        """
        Run a SQL query against a collection, following continuations.

        Each page is its own retried call.

        Args:
            collection_link: dbs/<db>/colls/<coll>
            query: Query text
            parameters: Query parameters as [{"name": "@x", "value": ...}]
            partition_key: Restrict the query to one partition

        Returns:
            All matching documents
        """
        documents: list[dict] = []
        continuation: str | None = None

        while True:
            headers = self._partition_key_header(partition_key)
            headers[HttpHeader.IS_QUERY] = "true"
            headers["content-type"] = "application/query+json"
            if continuation:
                headers[HttpHeader.CONTINUATION] = continuation
            request = DocumentServiceRequest(
                OperationType.QUERY,
                ResourceType.DOCUMENT,
                f"{collection_link.strip('/')}/docs",
                body={"query": query, "parameters": parameters or []},
                headers=headers,
            )
            response = execute(self._do_request, self, request)
            documents.extend((response.body or {}).get("Documents", []))

            continuation = response.headers.get(HttpHeader.CONTINUATION)
            if not continuation:
                return documents

    # --- Transport ---

    def _get_headers(self) -> dict:
        headers = {HttpHeader.VERSION: API_VERSION}
        if self.auth_token:
            headers[HttpHeader.AUTHORIZATION] = self.auth_token
        return headers

    @staticmethod
    def _partition_key_header(partition_key: Any) -> dict:
        if partition_key is None:
            return {}
        return {HttpHeader.PARTITION_KEY: json.dumps([partition_key])}

    def _do_request(self, request: DocumentServiceRequest) -> DocumentServiceResponse:
        """Perform one attempt of a request. Used as the retry delegate."""
        endpoint = self._endpoint_manager.resolve_service_endpoint(request)
        headers = {**self._get_headers(), **request.headers}

        collection_link = request.collection_link
        if request.is_read_only and collection_link and HttpHeader.SESSION_TOKEN not in headers:
            with self._session_lock:
                token = self._session_tokens.get(collection_link)
            if token:
                headers[HttpHeader.SESSION_TOKEN] = token

        response = self._send(
            endpoint,
            request.operation_type.http_method,
            request.resource_path,
            headers,
            request.body,
        )

        if collection_link and response.session_token:
            with self._session_lock:
                self._session_tokens[collection_link] = response.session_token

        return response

    def _send(
        self,
        endpoint: str,
        method: str,
        path: str,
        headers: dict,
        body: Any = None,
    ) -> DocumentServiceResponse:
        url = f"{endpoint}/{path.strip('/')}"
        try:
            response = self._http.request(method, url, headers=headers, json=body)
        except httpx.ConnectError as e:
            raise TransportError(f"Failed to connect to {endpoint}") from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out after {self._connection_policy.request_timeout}s"
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"Request to {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)

        return DocumentServiceResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.json() if response.content else None,
        )

    @staticmethod
    def _error_from_response(response: httpx.Response) -> DocumentClientError:
        """Convert an error response to a domain exception."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message")
        else:
            message = response.text or None

        sub_status = _header_number(response, HttpHeader.SUB_STATUS)
        retry_after_ms = _header_number(response, HttpHeader.RETRY_AFTER_MS)

        return error_from_status(
            response.status_code,
            message,
            sub_status_code=int(sub_status) if sub_status is not None else None,
            retry_after=retry_after_ms / 1000 if retry_after_ms is not None else None,
            activity_id=response.headers.get(HttpHeader.ACTIVITY_ID),
        )

    # --- Cache loaders ---

    def _read_database_account(self, endpoint: str) -> DatabaseAccount:
        response = self._send(endpoint, "GET", "", self._get_headers())
        try:
            return DatabaseAccount.from_dict(response.body or {})
        except (KeyError, TypeError, AttributeError) as e:
            raise DocumentClientError(
                f"Malformed database account response from {endpoint}: {e!r}",
                activity_id=response.activity_id,
            ) from e

    def _read_partition_key_definition(self, collection_link: str) -> PartitionKeyDefinition | None:
        request = DocumentServiceRequest(OperationType.READ, ResourceType.COLLECTION, collection_link)
        response = execute(self._do_request, self, request)
        data = (response.body or {}).get("partitionKey")
        if not data:
            logger.debug(f"Collection {collection_link} is not partitioned")
            return None
        try:
            return PartitionKeyDefinition.from_dict(data)
        except (TypeError, AttributeError) as e:
            raise DocumentClientError(
                f"Malformed partition key definition for {collection_link}: {e!r}",
                activity_id=response.activity_id,
            ) from e


def _header_number(response: httpx.Response, name: str) -> float | None:
    """Numeric header value, or None when absent or unparseable."""
    value = response.headers.get(name)
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        number = math.nan
    if not math.isfinite(number):
        logger.warning(f"Ignoring non-numeric {name} header: {value!r}")
        return None
    return number
