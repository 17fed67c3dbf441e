"""Tests for the HTTP retriever, with traffic served by httpx.MockTransport."""

import httpx

from calsync.fetch import MINIMAL_HEADERS


class TestRetriever:
    def test_html_document(self, mock_retriever):
        retriever = mock_retriever(lambda req: httpx.Response(200, html="<p>jadwal</p>"))
        doc = retriever.fetch("https://persebaya.id/jadwal")
        assert doc is not None
        assert doc.text == "<p>jadwal</p>"
        assert doc.content_type.startswith("text/html")

    def test_non_success_is_absent(self, mock_retriever):
        retriever = mock_retriever(lambda req: httpx.Response(404, text="not found"))
        assert retriever.fetch("https://persebaya.id/jadwal") is None

    def test_timeout_is_absent(self, mock_retriever):
        calls = []

        def handler(request):
            calls.append(request.url)
            raise httpx.ReadTimeout("timed out", request=request)

        retriever = mock_retriever(handler)
        assert retriever.fetch("https://persebaya.id/jadwal") is None
        assert len(calls) == 1

    def test_connect_error_retried_once(self, mock_retriever):
        calls = []

        def handler(request):
            calls.append(request.url)
            raise httpx.ConnectError("refused", request=request)

        assert mock_retriever(handler).fetch("https://persebaya.id/jadwal") is None
        assert len(calls) == 2

    def test_invalid_url_is_absent(self, mock_retriever):
        calls = []
        retriever = mock_retriever(lambda req: calls.append(req) or httpx.Response(200, text="ok"))
        assert retriever.fetch("https://persebaya.id/jadwal\x00") is None
        assert retriever.fetch_text("https://persebaya.id/jadwal\x00") is None
        assert calls == []

    def test_json_envelope_unwrapped(self, mock_retriever):
        retriever = mock_retriever(lambda req: httpx.Response(200, json={"status": "ok", "html": "<p>8 Agustus 2025</p>"}))
        doc = retriever.fetch("https://persebaya.id/jadwal/page-1")
        assert doc.text == "<p>8 Agustus 2025</p>"

    def test_json_without_html_is_absent(self, mock_retriever):
        retriever = mock_retriever(lambda req: httpx.Response(200, json={"items": []}))
        assert retriever.fetch("https://persebaya.id/api") is None

    def test_minimal_headers(self, mock_retriever):
        seen = httpx.Headers()

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text="ok")

        mock_retriever(handler).fetch("https://example.org/")
        assert seen["user-agent"] == MINIMAL_HEADERS["User-Agent"]
        assert "referer" not in seen

    def test_browser_headers_and_referer(self, mock_retriever):
        seen = httpx.Headers()

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text="ok")

        mock_retriever(handler).fetch("https://persebaya.id/jadwal/page-1", browser_like=True, referer="https://persebaya.id/jadwal")
        assert seen["user-agent"].startswith("Mozilla/5.0")
        assert "id-ID" in seen["accept-language"]
        assert seen["referer"] == "https://persebaya.id/jadwal"

    def test_fetch_text(self, mock_retriever):
        retriever = mock_retriever(lambda req: httpx.Response(200, text="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"))
        assert retriever.fetch_text("https://example.org/cal.ics").startswith("BEGIN:VCALENDAR")
