from __future__ import annotations

import httpx

from tabcrawl import cli
from tabcrawl.crawler.direct import DirectFetcher


def test_parser_knows_every_command():
    parser = cli.build_parser()
    assert parser.parse_args(["open", "https://a.test"]).url == "https://a.test"
    assert parser.parse_args(["extract", "--out", "page.html"]).out == "page.html"
    assert parser.parse_args(["close"]).command == "close"
    assert parser.parse_args(["fetch-direct", "https://a.test"]).command == "fetch-direct"


def test_fetch_direct_writes_html(monkeypatch, settings, tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"content-type": "text/html"}, text="<p>cli</p>")

    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(
        cli,
        "DirectFetcher",
        lambda s: DirectFetcher(s, transport=httpx.MockTransport(handler)),
    )
    out = tmp_path / "out" / "page.html"

    assert cli.main(["fetch-direct", "https://a.test", "--out", str(out)]) == 0
    assert out.read_text(encoding="utf-8") == "<p>cli</p>"


def test_report_returns_failure_for_errors():
    assert cli._report({"error": "HTTP 404 Not Found", "status": 404}, None) == 1
    assert cli._report({"success": True}, None) == 0
