"""
Page Submitter - Posts one task record as a Notion database page.

Maps TaskRecord fields onto the database's named properties:
- title       -> "Title" (title)
- description -> "Notes" (rich_text)
- priority    -> "Priority" (select)
- status      -> "Status" (status)
- tags        -> "Tags" (multi_select)

Optional properties are left out entirely when absent; Notion rejects
null values for several typed property kinds.

Every outcome, including transport faults, comes back as a DispatchResult.
Nothing is retried.

Usage:
    async with PageSubmitter(settings) as submitter:
        result = await submitter.submit(TaskRecord(title="Daily Code Review"))
"""

import logging
from typing import Any, Optional

import httpx

from inbox_cron.utils.config import Settings
from inbox_cron.utils.schemas import DispatchResult, TaskRecord

logger = logging.getLogger(__name__)


def _text(content: str) -> list[dict[str, Any]]:
    return [{"text": {"content": content}}]


def build_page(
    database_id: str,
    record: TaskRecord,
    agent: Optional[str] = None,
    content_type: Optional[str] = None,
) -> dict[str, Any]:
    """
    Build the page-creation request body for one record.

    Args:
        database_id: Target Notion database
        record: Task to post
        agent: Fixed "Agent" select value, omitted when None
        content_type: Fixed "Content Type" select value, omitted when None

    Returns:
        JSON-serializable request body
    """
    properties: dict[str, Any] = {"Title": {"title": _text(record.title)}}

    if record.description:
        properties["Notes"] = {"rich_text": _text(record.description)}

    if record.priority is not None:
        properties["Priority"] = {"select": {"name": record.priority}}

    if record.status:
        properties["Status"] = {"status": {"name": record.status}}

    if record.tags:
        properties["Tags"] = {"multi_select": [{"name": tag} for tag in record.tags]}

    if agent:
        properties["Agent"] = {"select": {"name": agent}}

    if content_type:
        properties["Content Type"] = {"select": {"name": content_type}}

    return {"parent": {"database_id": database_id}, "properties": properties}


class PageSubmitter:
    """
    Client for the Notion page-creation endpoint.

    Owns its httpx.AsyncClient unless one is injected; only an owned client
    is closed by close().
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.API_TIMEOUT)

    @property
    def pages_url(self) -> str:
        return f"{self.settings.NOTION_API_BASE.rstrip('/')}/pages"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.NOTION_API_TOKEN}",
            "Content-Type": "application/json",
            "Notion-Version": self.settings.NOTION_VERSION,
        }

    async def submit(self, record: TaskRecord) -> DispatchResult:
        """
        Create one page for record.

        Args:
            record: Task to post

        Returns:
            DispatchResult with page_id on success, error text on failure
        """
        try:
            body = build_page(
                self.settings.IDE_INBOX_DB_ID,
                record,
                agent=self.settings.PAGE_AGENT,
                content_type=self.settings.PAGE_CONTENT_TYPE,
            )
            response = await self.client.post(self.pages_url, headers=self._headers(), json=body)

            if not response.is_success:
                error = f"Notion API error: {response.status_code} {response.text}"
                logger.warning(
                    "Page creation rejected",
                    extra={"task_id": record.title, "status_code": response.status_code},
                )
                return DispatchResult.failed(record.title, error)

            page_id = response.json().get("id")
            if not page_id:
                return DispatchResult.failed(record.title, "Notion API response missing page id")

            logger.info("Page created", extra={"task_id": record.title, "page_id": page_id})
            return DispatchResult.ok(record.title, str(page_id))

        except httpx.HTTPError as e:
            logger.warning(
                "Page creation transport error",
                extra={"task_id": record.title, "error": str(e)},
            )
            return DispatchResult.failed(record.title, str(e) or type(e).__name__)

        except Exception as e:
            logger.error(
                "Page creation failed",
                extra={"task_id": record.title, "error": str(e)},
                exc_info=True,
            )
            return DispatchResult.failed(record.title, str(e) or type(e).__name__)

    async def close(self) -> None:
        """Close the HTTP client if this submitter created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "PageSubmitter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
