import time
from collections.abc import Callable
from typing import Any

import httpx

from openlabel.external.client import ExternalCallClient
from openlabel.external.exceptions import MalformedUpstreamResponseError
from openlabel.external.policy import CATEGORY_OCR
from openlabel.logging.logger import Log
from openlabel.ocr.base import BaseRecognizer
from openlabel.ocr.exceptions import RecognitionFailedError, RecognitionTimedOutError
from openlabel.ocr.models import (
    STATE_FAILED,
    STATE_RUNNING,
    STATE_SUCCEEDED,
    STATE_TIMED_OUT,
    RecognitionJob,
)


class AzureReadAdapter(BaseRecognizer):
    """Recognizes label text with the Azure Document Intelligence prebuilt-read model.

    Submission returns 202 with an Operation-Location header; the job is then
    polled at a fixed interval until it succeeds, fails, or the poll budget
    runs out.
    """

    name = "azure"

    ANALYZE_PATH = "/formrecognizer/documentModels/prebuilt-read:analyze"
    KEY_HEADER = "Ocp-Apim-Subscription-Key"

    def __init__(
        self,
        *,
        call_client: ExternalCallClient,
        endpoint: str,
        api_key: str,
        api_version: str = "2023-07-31",
        poll_interval_seconds: float = 1.0,
        max_poll_attempts: int = 30,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not endpoint or not api_key:
            raise ValueError(
                "azure_ocr_endpoint and azure_ocr_key are required for ocr_provider=azure"
            )
        if max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be at least 1")
        self._client = call_client
        self._endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._api_version = api_version
        self._poll_interval = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts
        self._sleep = sleep

    def submit(self, image_reference: str) -> RecognitionJob:
        request = self._client.build_request(
            "POST",
            f"{self._endpoint}{self.ANALYZE_PATH}",
            CATEGORY_OCR,
            params={"api-version": self._api_version},
            headers={self.KEY_HEADER: self._api_key},
            json={"urlSource": image_reference},
        )
        response = self._client.invoke(request, CATEGORY_OCR)

        poll_handle = response.headers.get("operation-location")
        if not poll_handle:
            self._log_malformed("submission has no Operation-Location header", response)
            raise MalformedUpstreamResponseError(
                "No operation-location header in recognition submission response"
            )

        job = RecognitionJob(image_reference=image_reference, poll_handle=poll_handle)
        Log.info(f"Recognition job {job.id} submitted to azure")
        return job

    def await_result(self, job: RecognitionJob) -> str:
        poll_handle = job.poll_handle
        if not poll_handle:
            raise MalformedUpstreamResponseError(
                f"Recognition job {job.id} has no poll handle"
            )
        job.state = STATE_RUNNING

        while job.poll_attempts < self._max_poll_attempts:
            self._sleep(self._poll_interval)
            job.poll_attempts += 1
            payload = self._check_status(poll_handle)
            status = str(payload["status"]).lower()
            Log.info(
                f"Recognition job {job.id} status: {status} "
                f"(attempt {job.poll_attempts}/{self._max_poll_attempts})"
            )

            if status == STATE_SUCCEEDED:
                job.state = STATE_SUCCEEDED
                job.text = extract_read_text(payload.get("analyzeResult"))
                return job.text
            if status == STATE_FAILED:
                job.state = STATE_FAILED
                job.error = _failure_reason(payload)
                raise RecognitionFailedError(f"Document analysis failed: {job.error}")

        job.state = STATE_TIMED_OUT
        job.error = f"no terminal state after {job.poll_attempts} polls"
        raise RecognitionTimedOutError(
            f"Document analysis timed out after {job.poll_attempts} polls"
        )

    def _check_status(self, poll_handle: str) -> dict[str, Any]:
        request = self._client.build_request(
            "GET",
            poll_handle,
            CATEGORY_OCR,
            headers={self.KEY_HEADER: self._api_key},
        )
        response = self._client.invoke(request, CATEGORY_OCR)
        try:
            payload = response.json()
        except ValueError as exc:
            self._log_malformed("poll response is not JSON", response)
            raise MalformedUpstreamResponseError(
                f"Recognition poll response is not JSON: {exc}"
            ) from exc
        if not isinstance(payload, dict) or "status" not in payload:
            self._log_malformed("poll response has no status", response)
            raise MalformedUpstreamResponseError("Recognition poll response has no status")
        return payload

    @staticmethod
    def _log_malformed(reason: str, response: httpx.Response) -> None:
        Log.error(
            f"Malformed recognition response ({reason}): "
            f"status={response.status_code} headers={dict(response.headers)} "
            f"body={response.text}"
        )


def extract_read_text(analyze_result: Any) -> str:
    """Pull the recognized text out of a read result.

    Prefers the flat ``content`` field; falls back to joining page lines for
    results that only carry ``pages`` or the older ``readResults`` layout.
    """
    if not isinstance(analyze_result, dict):
        return ""
    content = analyze_result.get("content")
    if isinstance(content, str):
        return content

    pages = analyze_result.get("readResults") or analyze_result.get("pages") or []
    lines: list[str] = []
    for page in pages:
        for line in page.get("lines") or []:
            text = line.get("text") or line.get("content")
            if text:
                lines.append(text)
            elif line.get("words"):
                lines.append(" ".join(w.get("text", "") for w in line["words"]))
    return "\n".join(lines)


def _failure_reason(payload: dict[str, Any]) -> str:
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Unknown error"
