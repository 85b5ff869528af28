from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Any

from rich.console import Console

from tabcrawl.app.dispatcher import TAB_ACTIONS
from tabcrawl.app.service import CrawlTabService
from tabcrawl.config import Settings, configure_logging, get_settings
from tabcrawl.crawler.direct import DirectFetcher

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive the crawl tab from the command line")
    sub = parser.add_subparsers(dest="command", required=True)

    open_cmd = sub.add_parser("open", help="Open a fresh crawl tab at URL")
    open_cmd.add_argument("url")

    fetch_cmd = sub.add_parser("fetch", help="Navigate the crawl tab to URL and print its HTML")
    fetch_cmd.add_argument("url")
    fetch_cmd.add_argument("--out", help="Write the HTML to this file instead of stdout")

    extract_cmd = sub.add_parser("extract", help="Print the crawl tab's current HTML")
    extract_cmd.add_argument("--out", help="Write the HTML to this file instead of stdout")

    sub.add_parser("close", help="Close the crawl tab and forget the session")

    direct_cmd = sub.add_parser("fetch-direct", help="Fetch URL without a browser tab")
    direct_cmd.add_argument("url")
    direct_cmd.add_argument("--out", help="Write the HTML to this file instead of stdout")
    return parser


async def _run_tab_command(settings: Settings, args: argparse.Namespace) -> dict[str, Any]:
    message: dict[str, Any] = {"type": TAB_ACTIONS[args.command]}
    if getattr(args, "url", None):
        message["url"] = args.url
    async with CrawlTabService(settings) as service:
        return await service.dispatch(message) or {}


async def _run_direct(settings: Settings, url: str) -> dict[str, Any]:
    fetcher = DirectFetcher(settings)
    try:
        return await fetcher.handle(url)
    finally:
        await fetcher.aclose()


def _report(response: dict[str, Any], out: str | None) -> int:
    if "error" in response:
        status = response.get("status")
        suffix = f" (status {status})" if status else ""
        console.print(f"[bold red]Error:[/bold red] {response['error']}{suffix}")
        return 1
    html = response.get("html")
    if html is None:
        console.print("[bold green]OK[/bold green]")
        return 0
    if out:
        target = Path(out)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        console.print(f"Saved {len(html)} characters to {target}")
    else:
        console.print(html, markup=False, highlight=False, soft_wrap=True)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "fetch-direct":
        response = asyncio.run(_run_direct(settings, args.url))
    else:
        if not settings.browser_cdp_url:
            console.print(
                "[yellow]BROWSER_CDP_URL is not set; the crawl tab closes "
                "when this command exits.[/yellow]"
            )
        response = asyncio.run(_run_tab_command(settings, args))
    return _report(response, getattr(args, "out", None))


if __name__ == "__main__":
    raise SystemExit(main())
