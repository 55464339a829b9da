"""
Reporting sinks for a finished run.

Sinks never raise: a failed delivery is logged and the run result stays
intact in memory and on disk.
"""

import json
from pathlib import Path

import httpx

from models.run_report import RunReport
from utils.logger import get_logger

logger = get_logger(__name__)


class JsonFileReportSink:
    """Writes the full run report (answers, provenance, stats) as JSON."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def emit(self, report: RunReport) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Could not write results to {self.path}: {e}")
            return False
        logger.info(f"💾 Results saved to {self.path}")
        return True


class HttpReportSink:
    """POSTs ``{"task", "apikey", "answer": {id: text}}`` to a report endpoint."""

    def __init__(
        self,
        url: str,
        api_key: str,
        task: str,
        *,
        timeout_s: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.task = task
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s)

    def payload(self, report: RunReport) -> dict:
        return {"task": self.task, "apikey": self.api_key, "answer": report.answer_map()}

    def emit(self, report: RunReport) -> bool:
        logger.info(f"📤 Sending {len(report.answers)} answers to {self.url}")
        try:
            response = self._client.post(self.url, json=self.payload(report))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Report rejected with HTTP {e.response.status_code}",
                extra={"extra_fields": {"url": self.url, "body": e.response.text[:500]}},
            )
            return False
        except httpx.HTTPError as e:
            logger.error(f"Report delivery failed: {e}", extra={"extra_fields": {"url": self.url}})
            return False

        logger.info(
            "Report accepted",
            extra={"extra_fields": {"url": self.url, "status_code": response.status_code, "body": response.text[:500]}},
        )
        return True

    def close(self) -> None:
        """Close the HTTP client if this sink created it."""
        if self._owns_client:
            self._client.close()
