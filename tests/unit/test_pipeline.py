"""Tests for the extraction cascade and feed dispatch."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from calsync.models import FeedEntry, SourceDescriptor
from calsync.pipeline import Pipeline

LD_AND_TABLE = """
<html><head>
<script type="application/ld+json">
{"@type": "SportsEvent", "name": "Persebaya vs Persib", "startDate": "2025-08-08T19:00:00+07:00"}
</script>
</head><body>
<table><tr><td>09.08.2025</td><td>15:00</td><td>Arema FC</td><td>Bali United</td></tr></table>
</body></html>
"""

TABLE_ONLY = "<table><tr><td>09.08.2025</td><td>15:00</td><td>Arema FC</td><td>Bali United</td></tr></table>"


def _serve(pages: dict):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        body = pages.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        if isinstance(body, dict):
            return httpx.Response(200, json=body)
        return httpx.Response(200, html=body)

    return handler, requests


class TestCascade:
    def test_structured_data_wins_over_table(self, config, mock_retriever, now):
        handler, _ = _serve({"https://example.org/fixtures": LD_AND_TABLE})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        events = pipeline.extract_events(SourceDescriptor(url="https://example.org/fixtures"), now)
        assert [e.summary for e in events] == ["Persebaya vs Persib"]

    def test_table_fallback(self, config, mock_retriever, now):
        handler, _ = _serve({"https://example.org/fixtures": TABLE_ONLY})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        (ev,) = pipeline.extract_events(SourceDescriptor(url="https://example.org/fixtures"), now)
        assert ev.summary == "Arema FC – Bali United"

    def test_deterministic(self, config, mock_retriever, now):
        handler, _ = _serve({"https://example.org/fixtures": LD_AND_TABLE})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        src = SourceDescriptor(url="https://example.org/fixtures")
        assert pipeline.extract_events(src, now) == pipeline.extract_events(src, now)

    def test_site_extractor_before_generic(self, config, mock_retriever, now):
        page = "<p>Jumat, 8 Agustus 2025</p><p><b>PERSEBAYA</b>|FT2:1|<b>PERSIB</b></p>" + TABLE_ONLY
        handler, requests = _serve({"https://persebaya.id/jadwal": page})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        (ev,) = pipeline.extract_events(SourceDescriptor(url="https://persebaya.id/jadwal", clubName="Persebaya"), now)
        assert ev.summary == "PERSEBAYA – PERSIB"
        assert len(requests) == 1
        assert requests[0].headers["user-agent"].startswith("Mozilla/5.0")

    def test_pagination_followup(self, config, mock_retriever, now):
        handler, requests = _serve({
            "https://persebaya.id/jadwal": "<div id='app'></div>",
            "https://persebaya.id/jadwal/page-1": {
                "html": "<p>8 Agustus 2025 <strong>PERSEBAYA</strong>|FT2:1|<strong>PERSIB</strong></p>"
            },
        })
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        (ev,) = pipeline.extract_events(SourceDescriptor(url="https://persebaya.id/jadwal", clubName="Persebaya"), now)
        assert ev.summary == "PERSEBAYA – PERSIB"
        assert [str(r.url) for r in requests] == ["https://persebaya.id/jadwal", "https://persebaya.id/jadwal/page-1"]
        assert requests[1].headers["referer"] == "https://persebaya.id/jadwal"

    def test_at_most_two_fetches(self, config, mock_retriever, now):
        handler, requests = _serve({"https://persebaya.id/jadwal": "<div></div>"})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        assert pipeline.extract_events(SourceDescriptor(url="https://persebaya.id/jadwal"), now) == []
        assert len(requests) == 2

    def test_timeout_yields_empty(self, config, mock_retriever, now):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        assert pipeline.extract_events(SourceDescriptor(url="https://example.org/fixtures"), now) == []

    def test_old_events_cut_off(self, config, mock_retriever):
        handler, _ = _serve({"https://example.org/fixtures": LD_AND_TABLE})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        later = datetime(2025, 9, 1, tzinfo=timezone.utc)
        assert pipeline.extract_events(SourceDescriptor(url="https://example.org/fixtures"), later) == []

    def test_malformed_url(self, config, mock_retriever, now):
        handler, _ = _serve({})
        pipeline = Pipeline(config, retriever=mock_retriever(handler))
        assert pipeline.extract_events(SourceDescriptor(url="http://[bad/x", clubName="Persebaya"), now) == []

    def test_no_url(self, config, now):
        assert Pipeline(config).extract_events(SourceDescriptor(), now) == []


class TestFeedTypes:
    @pytest.fixture
    def today(self):
        return datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)

    def test_lunar_provider(self, config, today):
        events = Pipeline(config).extract_events(SourceDescriptor(provider="ayyamul-bidh"), today)
        assert events
        assert all(e.all_day for e in events)
        assert all(e.start >= today - timedelta(days=1) for e in events)
        starts = [e.start for e in events]
        assert starts == sorted(starts)

    def test_lunar_entry(self, config, today):
        entry = FeedEntry(id="ayyamul-bidh", name="Puasa Ayyamul Bidh", type="lunar")
        assert Pipeline(config).extract_entry(entry, today)

    def test_url_entry(self, config, mock_retriever, now):
        ics = (
            "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//test//EN\r\n"
            "BEGIN:VEVENT\r\nUID:1\r\nDTSTART;VALUE=DATE:20250817\r\nDTEND;VALUE=DATE:20250818\r\n"
            "SUMMARY:Hari Kemerdekaan\r\nEND:VEVENT\r\n"
            "BEGIN:VEVENT\r\nUID:2\r\nDTSTART;VALUE=DATE:20250101\r\nSUMMARY:Tahun Baru\r\nEND:VEVENT\r\n"
            "END:VCALENDAR\r\n"
        )
        retriever = mock_retriever(lambda req: httpx.Response(200, text=ics, headers={"Content-Type": "text/calendar"}))
        entry = FeedEntry(id="libur", name="Libur", type="url", source=SourceDescriptor(url="https://example.org/libur.ics"))
        (ev,) = Pipeline(config, retriever=retriever).extract_entry(entry, now)
        assert ev.summary == "Hari Kemerdekaan"
        assert ev.all_day

    def test_naive_now_taken_as_utc(self, config, today):
        pipeline = Pipeline(config)
        naive = today.replace(tzinfo=None)
        src = SourceDescriptor(provider="ayyamul-bidh")
        assert pipeline.extract_events(src, naive) == pipeline.extract_events(src, today)
        entry = FeedEntry(id="ayyamul-bidh", name="Puasa Ayyamul Bidh", type="lunar")
        assert pipeline.extract_entry(entry, naive) == pipeline.extract_entry(entry, today)

    def test_url_entry_floating_times_use_configured_offset(self, config, mock_retriever, now):
        config["utc_offset_hours"] = 8
        ics = (
            "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//test//EN\r\n"
            "BEGIN:VEVENT\r\nUID:1\r\nDTSTART:20250817T190000\r\nDTEND:20250817T210000\r\n"
            "SUMMARY:Laga persahabatan\r\nEND:VEVENT\r\n"
            "END:VCALENDAR\r\n"
        )
        retriever = mock_retriever(lambda req: httpx.Response(200, text=ics))
        entry = FeedEntry(id="laga", name="Laga", type="url", source=SourceDescriptor(url="https://example.org/laga.ics"))
        (ev,) = Pipeline(config, retriever=retriever).extract_entry(entry, now)
        assert ev.start == datetime(2025, 8, 17, 19, 0, tzinfo=timezone(timedelta(hours=8)))
