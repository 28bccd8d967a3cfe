"""
DuckDuckGo HTML search adapters (no API key).
"""

from __future__ import annotations

from typing import Any, Dict, List

from bs4 import BeautifulSoup

from .base import HTTPProviderAdapter

DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"


def parse_results(html: str, limit: int) -> List[Dict[str, Any]]:
    """Extract ``title``/``snippet``/``url`` triples from a results page."""
    soup = BeautifulSoup(html, "html.parser")
    results = []
    for node in soup.select(".result")[:limit]:
        title = node.select_one(".result__title")
        snippet = node.select_one(".result__snippet")
        url = node.select_one(".result__url")
        title_text = title.get_text(strip=True) if title else ""
        url_text = url.get_text(strip=True) if url else ""
        if title_text and url_text:
            results.append({
                "title": title_text,
                "snippet": snippet.get_text(" ", strip=True) if snippet else "",
                "url": url_text,
            })
    return results


class DuckDuckGoSearchAdapter(HTTPProviderAdapter):
    """Web search results."""

    name = "duckduckgo"
    query_suffix = ""
    extra_params: Dict[str, str] = {}

    async def fetch(self, request) -> List[Dict[str, Any]]:
        query = f"{request.query}{self.query_suffix}"
        response = await self._get(
            DUCKDUCKGO_HTML_URL,
            params={"q": query, **self.extra_params},
            headers={"User-Agent": self.config.search_user_agent},
        )
        return parse_results(response.text, request.num_results)


class DuckDuckGoNewsAdapter(DuckDuckGoSearchAdapter):
    """News-flavoured search through the same HTML endpoint."""

    name = "duckduckgo-news"
    query_suffix = " news"
    extra_params = {"ia": "news"}
