"""
Web search tools for the workcation planner.
"""

import json
import logging
from typing import Any, List, Optional, Protocol

from langchain_core.tools import BaseTool, tool

from ..config.settings import DEFAULT_MAX_SEARCH_RESULTS, TAVILY_API_KEY


class SearchClient(Protocol):
    """Anything with ``invoke(query)`` returning search results."""

    def invoke(self, query: str) -> Any: ...


def create_search_client(max_results: int = DEFAULT_MAX_SEARCH_RESULTS) -> SearchClient:
    """Creates the Tavily search client used by every planner tool."""
    from langchain_community.tools.tavily_search import TavilySearchResults

    if not TAVILY_API_KEY:
        logging.warning("TAVILY_API_KEY not set; search tool calls will fail.")
    return TavilySearchResults(max_results=max_results)


def _as_text(results: Any) -> str:
    if isinstance(results, str):
        return results
    try:
        return json.dumps(results, ensure_ascii=False)
    except TypeError:
        return str(results)


def initialize_tools(search: SearchClient) -> List[BaseTool]:
    """Builds the planner's tools around one search client."""

    def run_search(query: str) -> str:
        logging.info(f"SEARCH: {query}")
        return _as_text(search.invoke(query))

    @tool
    def web_search(query: str) -> str:
        """ワーケーションに関する情報をWebで検索する。"""
        return run_search(query)

    @tool
    def search_accommodations(location: str, budget: str) -> str:
        """ワーケーション向けの宿泊施設を検索する。

        Args:
            location: 検索する場所
            budget: 予算
        """
        results = run_search(f"{location} ワーケーション 宿泊施設 Wi-Fi完備 デスク付き {budget}以内")
        return f"宿泊施設の検索結果:\n{results}"

    @tool
    def search_workspaces(location: str) -> str:
        """コワーキングスペースや仕事に適したカフェを検索する。

        Args:
            location: 検索する場所
        """
        results = run_search(f"{location} コワーキングスペース カフェ 仕事 Wi-Fi 電源")
        return f"ワークスペースの検索結果:\n{results}"

    @tool
    def search_activities(location: str, duration: str) -> str:
        """観光地やアクティビティを検索する。

        Args:
            location: 検索する場所
            duration: 滞在期間
        """
        results = run_search(f"{location} 観光 アクティビティ おすすめ {duration}")
        return f"観光・アクティビティの検索結果:\n{results}"

    @tool
    def search_transportation(location: str, origin: Optional[str] = None) -> str:
        """交通手段やアクセス方法を検索する。

        Args:
            location: 目的地
            origin: 出発地（任意）
        """
        if origin:
            query = f"{origin}から{location} 交通手段 アクセス 料金"
        else:
            query = f"{location} 現地 交通手段 移動方法"
        results = run_search(query)
        return f"交通手段の検索結果:\n{results}"

    return [web_search, search_accommodations, search_workspaces, search_activities, search_transportation]
