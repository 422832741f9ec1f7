import json

import requests

from search_testbed.config import DEFAULT_ES_URL, DEFAULT_TIMEOUT
from search_testbed.errors import ElasticsearchError
from search_testbed.models import Document, StoredIndex

DEFAULT_MAPPING = {
    "settings": {
        "number_of_shards": 1,
        "number_of_replicas": 0,
    },
    "mappings": {
        "properties": {
            "title": {
                "type": "text",
                "fields": {"keyword": {"type": "keyword"}},
            },
            "uri": {"type": "keyword"},
            "body": {"type": "text"},
            "content_type": {"type": "keyword"},
            "date": {"type": "date"},
        }
    },
}


def _string_field(source: dict, key: str) -> str:
    value = source.get(key)
    return value if isinstance(value, str) else ""


class ElasticsearchClient:
    """Thin REST wrapper over the handful of Elasticsearch endpoints we use.

    Transport failures and error responses are printed as an
    ``[Elasticsearch]`` line and raised as ElasticsearchError.
    """

    def __init__(self, url: str = DEFAULT_ES_URL, timeout: int = DEFAULT_TIMEOUT,
                 session: requests.Session | None = None):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, kind: str, message: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(
                method,
                f"{self.url}/{path.lstrip('/')}",
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            print(f"  [Elasticsearch] {message}: {e}")
            raise ElasticsearchError(kind, message, original_error=e) from e

    def _fail(self, kind: str, message: str, resp: requests.Response):
        print(f"  [Elasticsearch] {message} (HTTP {resp.status_code})")
        raise ElasticsearchError(
            kind, message,
            details={"status": resp.status_code, "body": resp.text[:500]},
        )

    def ping(self) -> None:
        resp = self._request("GET", "/", ElasticsearchError.CONNECTION, "failed to ping Elasticsearch")
        if not resp.ok:
            self._fail(ElasticsearchError.CONNECTION, "Elasticsearch returned an error", resp)

    def index_exists(self, index: str) -> bool:
        resp = self._request("HEAD", index, ElasticsearchError.INDEX, "failed to check index existence")
        return resp.status_code == 200

    def create_index(self, index: str, mapping: dict | None = None) -> None:
        resp = self._request(
            "PUT", index, ElasticsearchError.INDEX, "failed to create index",
            json=mapping if mapping is not None else DEFAULT_MAPPING,
        )
        if not resp.ok:
            self._fail(ElasticsearchError.INDEX, f"create index error for {index}", resp)

    def delete_index(self, index: str) -> None:
        resp = self._request("DELETE", index, ElasticsearchError.INDEX, "failed to delete index")
        if not resp.ok:
            self._fail(ElasticsearchError.INDEX, f"delete index error for {index}", resp)

    def refresh_index(self, index: str) -> None:
        self._request("POST", f"{index}/_refresh", ElasticsearchError.INDEX, "failed to refresh index")

    def count_documents(self, index: str) -> int:
        resp = self._request("GET", f"{index}/_count", ElasticsearchError.QUERY, "failed to count documents")
        if not resp.ok:
            self._fail(ElasticsearchError.QUERY, "count error", resp)
        return int(resp.json().get("count", 0))

    def search(self, index: str, query: dict) -> dict:
        """Run a search request body against ``index`` and return the raw response."""
        resp = self._request(
            "POST", f"{index}/_search", ElasticsearchError.QUERY, "failed to execute search",
            json=query,
        )
        if not resp.ok:
            self._fail(ElasticsearchError.QUERY, "search error", resp)
        return resp.json()

    def fetch_documents(self, index: str, size: int) -> list[Document]:
        """Fetch up to ``size`` documents, ordered by id."""
        response = self.search(index, {
            "query": {"match_all": {}},
            "size": size,
            "sort": [{"_id": "asc"}],
        })
        docs = []
        for hit in response.get("hits", {}).get("hits", []):
            source = hit.get("_source") or {}
            docs.append(Document(
                id=str(hit.get("_id", "")),
                title=_string_field(source, "title"),
                uri=_string_field(source, "uri"),
                body=_string_field(source, "body"),
                content_type=_string_field(source, "content_type"),
                date=_string_field(source, "date"),
            ))
        return docs

    def bulk_index(self, index: str, documents: list[Document]) -> None:
        """Index documents through ``_bulk``.

        Raises ElasticsearchError when the response flags item errors; the
        number of failed documents is in ``details["failed"]``.
        """
        if not documents:
            return

        lines = []
        for doc in documents:
            lines.append(json.dumps({"index": {"_index": index, "_id": doc.id}}))
            lines.append(json.dumps(doc.to_dict(), ensure_ascii=False))
        body = ("\n".join(lines) + "\n").encode("utf-8")

        resp = self._request(
            "POST", f"{index}/_bulk", ElasticsearchError.INDEX, "failed to bulk index",
            data=body,
            headers={"Content-Type": "application/x-ndjson"},
        )
        if not resp.ok:
            self._fail(ElasticsearchError.INDEX, "bulk index error", resp)

        payload = resp.json()
        if payload.get("errors"):
            failed = sum(
                1
                for item in payload.get("items", [])
                for action in item.values()
                if isinstance(action, dict) and action.get("error") is not None
            )
            message = f"bulk indexing failed for {failed} documents"
            print(f"  [Elasticsearch] {message}")
            raise ElasticsearchError(ElasticsearchError.INDEX, message, details={"failed": failed})

    def load_stored_index(self, index: str, stored: StoredIndex) -> None:
        """Replace ``index`` with the documents of a stored index."""
        if self.index_exists(index):
            self.delete_index(index)
        self.create_index(index, DEFAULT_MAPPING)
        self.bulk_index(index, list(stored.documents))
        self.refresh_index(index)
