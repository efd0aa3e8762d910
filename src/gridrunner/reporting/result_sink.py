"""Elasticsearch result sink with one HTTP client per worker."""
import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional
import httpx
from gridrunner.config import Settings, get_settings
from gridrunner.core.exceptions import SinkCloseError, SinkInitError, SinkWriteError
from gridrunner.observability.metrics import record_result_document
from gridrunner.reporting.models import ScenarioOutcome, build_document

logger = logging.getLogger(__name__)


class ResultSink:
    """
    Sends scenario outcomes to an Elasticsearch index.

    Each worker gets its own client between initialize and close. Nothing
    here raises: a disabled sink, a missing client, an unreachable host or a
    rejected document is logged and the caller carries on.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize result sink.

        Args:
            settings: Run settings (defaults to cached settings)
            transport: Optional httpx transport (testing only)
        """
        self.settings = settings or get_settings()
        self.transport = transport
        self._clients: Dict[str, httpx.Client] = {}

    @property
    def enabled(self) -> bool:
        """Whether reporting is switched on."""
        return self.settings.ELASTICSEARCH_ENABLED

    def initialize(self, worker_id: str) -> None:
        """
        Create the worker's client.

        No-op when reporting is disabled or the worker already has a client.

        Args:
            worker_id: Worker identifier
        """
        if not self.enabled:
            logger.info("Elasticsearch is disabled in configuration")
            return
        if worker_id in self._clients:
            return

        try:
            self._clients[worker_id] = self._build_client()
            logger.info(f"Elasticsearch client initialized (worker={worker_id})")
        except SinkInitError as e:
            logger.error(f"Error initializing Elasticsearch client: {e}", exc_info=True)

    def has_client(self, worker_id: str) -> bool:
        """Check if the worker has a registered client."""
        return worker_id in self._clients

    def send(self, outcome: ScenarioOutcome) -> bool:
        """
        Index a scenario outcome.

        Args:
            outcome: Outcome to send; its worker_id selects the client

        Returns:
            bool: True if Elasticsearch accepted the document
        """
        client = self._clients.get(outcome.worker_id)
        if not self.enabled or client is None:
            logger.debug("Elasticsearch is disabled or client not initialized")
            record_result_document("skipped")
            return False

        document = build_document(outcome)
        screenshot = self._encode_screenshot(outcome.diagnostic_path)
        if screenshot is not None:
            document["screenshotBase64"] = screenshot

        try:
            self._index(client, document)
        except Exception as e:
            logger.error(f"Error sending test result to Elasticsearch: {e}", exc_info=True)
            record_result_document("failed")
            return False

        logger.info(f"Test result sent to Elasticsearch: {outcome.name} - {outcome.status}")
        record_result_document("sent")
        return True

    def close(self, worker_id: str) -> None:
        """
        Close and unregister the worker's client. Safe to call repeatedly.

        Args:
            worker_id: Worker identifier
        """
        client = self._clients.pop(worker_id, None)
        if client is None:
            return

        try:
            self._close_client(client)
            logger.info(f"Closed Elasticsearch client (worker={worker_id})")
        except SinkCloseError as e:
            logger.warning(f"Error closing Elasticsearch client (worker={worker_id}): {e}")

    def close_all(self) -> None:
        """Close every registered client."""
        for worker_id in list(self._clients):
            self.close(worker_id)

    def _build_client(self) -> httpx.Client:
        """
        Build an HTTP client bound to the configured host and port.

        Raises:
            SinkInitError: If the client cannot be constructed
        """
        try:
            return httpx.Client(
                base_url=self.settings.elasticsearch_url,
                timeout=self.settings.ELASTICSEARCH_TIMEOUT,
                transport=self.transport,
            )
        except Exception as e:
            raise SinkInitError(
                f"Cannot build client for {self.settings.elasticsearch_url}: {e}"
            ) from e

    def _close_client(self, client: httpx.Client) -> None:
        """
        Release the client's connection pool.

        Raises:
            SinkCloseError: If closing fails
        """
        try:
            client.close()
        except Exception as e:
            raise SinkCloseError(str(e)) from e

    def _index(self, client: httpx.Client, document: Dict[str, Any]) -> None:
        """
        POST a document to the configured index.

        Raises:
            SinkWriteError: If the request fails or is rejected
        """
        index = self.settings.ELASTICSEARCH_INDEX
        try:
            response = client.post(f"/{index}/_doc", json=document)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SinkWriteError(
                f"Index {index} rejected document with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SinkWriteError(f"Request to index {index} failed: {e}") from e

    def _encode_screenshot(self, path: Optional[str]) -> Optional[str]:
        """
        Read a screenshot and base64-encode it.

        Args:
            path: Screenshot path, may be None

        Returns:
            Optional[str]: Encoded image, or None if absent or unreadable
        """
        if not path:
            return None
        try:
            screenshot = Path(path)
            if not screenshot.exists():
                return None
            return base64.b64encode(screenshot.read_bytes()).decode("ascii")
        except Exception as e:
            logger.warning(f"Error encoding screenshot: {e}")
            return None
