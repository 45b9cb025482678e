import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from openlabel.external.client import ExternalCallClient
from openlabel.external.exceptions import (
    MalformedUpstreamResponseError,
    QuotaExceededError,
    RetriesExhaustedError,
)
from openlabel.ocr.azure_read_adapter import AzureReadAdapter, extract_read_text
from openlabel.ocr.exceptions import RecognitionFailedError, RecognitionTimedOutError
from openlabel.ocr.models import (
    STATE_FAILED,
    STATE_SUCCEEDED,
    STATE_TIMED_OUT,
    RecognitionJob,
)

ENDPOINT = "https://labels.cognitiveservices.azure.com/"
OPERATION_URL = (
    "https://labels.cognitiveservices.azure.com/formrecognizer/documentModels/"
    "prebuilt-read/analyzeResults/abc-123"
)
IMAGE_URL = "https://cdn.example.com/label.jpg"

ClientMaker = Callable[..., ExternalCallClient]


class FakeAzure:
    """Answers the submit request, then serves poll payloads in order."""

    def __init__(
        self,
        polls: list[Any],
        submit_headers: dict[str, str] | None = None,
    ) -> None:
        self.polls = polls
        self.submit_headers = (
            submit_headers if submit_headers is not None else {"Operation-Location": OPERATION_URL}
        )
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(202, headers=self.submit_headers)
        poll_index = sum(1 for r in self.requests if r.method == "GET") - 1
        payload = self.polls[min(poll_index, len(self.polls) - 1)]
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    @property
    def poll_count(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")


def _adapter(client: ExternalCallClient, sleeps: list[float], **kwargs: Any) -> AzureReadAdapter:
    return AzureReadAdapter(
        call_client=client,
        endpoint=ENDPOINT,
        api_key="secret-key",
        sleep=sleeps.append,
        **kwargs,
    )


class TestConstruction:
    def test_requires_endpoint_and_key(self, make_call_client: ClientMaker) -> None:
        client = make_call_client(FakeAzure(polls=[]))
        with pytest.raises(ValueError, match="azure_ocr_endpoint"):
            AzureReadAdapter(call_client=client, endpoint="", api_key="k")


class TestSubmit:
    def test_posts_url_source_and_returns_job_with_handle(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(polls=[])
        adapter = _adapter(make_call_client(azure), sleeps)

        job = adapter.submit(IMAGE_URL)

        assert job.poll_handle == OPERATION_URL
        assert job.image_reference == IMAGE_URL
        request = azure.requests[0]
        assert request.url.path == "/formrecognizer/documentModels/prebuilt-read:analyze"
        assert request.url.params["api-version"] == "2023-07-31"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "secret-key"
        assert json.loads(request.content) == {"urlSource": IMAGE_URL}

    def test_missing_operation_location_is_malformed(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        adapter = _adapter(make_call_client(FakeAzure(polls=[], submit_headers={})), sleeps)

        with pytest.raises(MalformedUpstreamResponseError, match="operation-location"):
            adapter.submit(IMAGE_URL)

    def test_quota_error_propagates(self, make_call_client: ClientMaker, sleeps: list[float]) -> None:
        azure = FakeAzure(polls=[{"status": "running"}])
        client = make_call_client(azure, ocr_daily_limit=1)
        client.invoke(client.build_request("GET", OPERATION_URL, "ocr"), "ocr")
        adapter = _adapter(client, sleeps)

        with pytest.raises(QuotaExceededError):
            adapter.submit(IMAGE_URL)

        assert not any(r.method == "POST" for r in azure.requests)


class TestAwaitResult:
    def test_returns_content_when_succeeded(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(
            polls=[
                {"status": "running"},
                {"status": "succeeded", "analyzeResult": {"content": "Oats, honey"}},
            ]
        )
        adapter = _adapter(make_call_client(azure), sleeps, poll_interval_seconds=1.0)

        job = adapter.submit(IMAGE_URL)
        text = adapter.await_result(job)

        assert text == "Oats, honey"
        assert job.state == STATE_SUCCEEDED
        assert job.poll_attempts == 2
        assert sleeps == [1.0, 1.0]
        assert azure.requests[-1].headers["Ocp-Apim-Subscription-Key"] == "secret-key"

    def test_failed_status_raises_with_reason(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(
            polls=[{"status": "failed", "error": {"message": "Image too small"}}]
        )
        adapter = _adapter(make_call_client(azure), sleeps)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(RecognitionFailedError, match="Document analysis failed: Image too small"):
            adapter.await_result(job)

        assert job.state == STATE_FAILED

    def test_failed_status_without_message(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        adapter = _adapter(make_call_client(FakeAzure(polls=[{"status": "failed"}])), sleeps)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(RecognitionFailedError, match="Unknown error"):
            adapter.await_result(job)

    def test_times_out_after_max_polls(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(polls=[{"status": "running"}])
        adapter = _adapter(make_call_client(azure), sleeps, max_poll_attempts=30)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(RecognitionTimedOutError, match="30 polls"):
            adapter.await_result(job)

        assert azure.poll_count == 30
        assert job.state == STATE_TIMED_OUT
        assert job.is_terminal

    def test_non_json_poll_response_is_malformed(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(polls=[httpx.Response(200, text="<html>oops</html>")])
        adapter = _adapter(make_call_client(azure), sleeps)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(MalformedUpstreamResponseError, match="not JSON"):
            adapter.await_result(job)

    def test_poll_response_without_status_is_malformed(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        adapter = _adapter(make_call_client(FakeAzure(polls=[{"result": 1}])), sleeps)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(MalformedUpstreamResponseError, match="no status"):
            adapter.await_result(job)

    def test_rate_limited_poll_is_retried_by_call_client(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(
            polls=[
                httpx.Response(429),
                {"status": "succeeded", "analyzeResult": {"content": "salt"}},
            ]
        )
        adapter = _adapter(make_call_client(azure, delay_seconds=2.0), sleeps)

        job = adapter.submit(IMAGE_URL)

        assert adapter.await_result(job) == "salt"
        assert job.poll_attempts == 1
        assert sleeps == [1.0, 2.0]

    def test_poll_retries_exhausted_propagates(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        adapter = _adapter(make_call_client(FakeAzure(polls=[httpx.Response(429)])), sleeps)

        job = adapter.submit(IMAGE_URL)
        with pytest.raises(RetriesExhaustedError):
            adapter.await_result(job)

    def test_job_without_poll_handle_is_malformed(
        self, make_call_client: ClientMaker, sleeps: list[float]
    ) -> None:
        azure = FakeAzure(polls=[{"status": "succeeded"}])
        adapter = _adapter(make_call_client(azure), sleeps)

        with pytest.raises(MalformedUpstreamResponseError, match="no poll handle"):
            adapter.await_result(RecognitionJob(image_reference=IMAGE_URL))

        assert azure.poll_count == 0
        assert sleeps == []


class TestExtractReadText:
    def test_prefers_content(self) -> None:
        assert extract_read_text({"content": "a\nb", "pages": []}) == "a\nb"

    def test_joins_page_lines(self) -> None:
        result = {
            "pages": [
                {"lines": [{"content": "Oats"}, {"content": "Honey"}]},
                {"lines": [{"content": "Salt"}]},
            ]
        }
        assert extract_read_text(result) == "Oats\nHoney\nSalt"

    def test_legacy_read_results_with_words(self) -> None:
        result = {"readResults": [{"lines": [{"words": [{"text": "sea"}, {"text": "salt"}]}]}]}
        assert extract_read_text(result) == "sea salt"

    def test_missing_result_is_empty(self) -> None:
        assert extract_read_text(None) == ""
