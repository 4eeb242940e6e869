# src/agent_monitor/tracker/asana_client.py

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..core.models import Comment, Task, TrackerResult
from ..net.http_executor import HttpResponse, ResilientRequestExecutor

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://app.asana.com/api/1.0"

TASK_FIELDS = "name,notes,gid,completed"
STORY_FIELDS = "gid,text,created_at,created_by.name,type"
PAGE_LIMIT = 100
MAX_PAGES = 50


def _api_error(response: HttpResponse) -> str:
    return f"Asana API Error: {response.describe()}"


class AsanaClient:
    """
    TaskTrackerClient over the Asana REST API.

    Every call goes through the ResilientRequestExecutor; nothing here raises.
    Reads degrade to empty lists, writes report TrackerResult(success=False, error=...).
    """

    def __init__(
        self,
        executor: ResilientRequestExecutor,
        *,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        workspace_id: str | None = None,
    ) -> None:
        self._executor = executor
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._workspace_id = workspace_id
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> HttpResponse:
        return self._executor.execute(
            method,
            self._url(path),
            params=params,
            json_body={"data": data} if data is not None else None,
            headers=self._headers,
        )

    @staticmethod
    def _data(response: HttpResponse) -> Any:
        payload = response.json()
        if isinstance(payload, dict):
            return payload.get("data")
        return None

    # ---- reads ----

    def fetch_open_tasks(self, project_id: str) -> list[Task]:
        tasks: list[Task] = []
        params: dict[str, Any] = {
            "opt_fields": TASK_FIELDS,
            "completed_since": "now",
            "limit": PAGE_LIMIT,
        }

        for _ in range(MAX_PAGES):
            response = self._request("GET", f"projects/{project_id}/tasks", params=params)
            if response.status_code != 200:
                logger.error("fetch_open_tasks failed project_id=%s %s", project_id, _api_error(response))
                break

            payload = response.json() or {}
            for raw in payload.get("data") or []:
                if isinstance(raw, dict) and raw.get("gid"):
                    tasks.append(Task.from_api(raw))

            offset = ((payload.get("next_page") or {}).get("offset")) if isinstance(payload, dict) else None
            if not offset:
                break
            params = {**params, "offset": offset}

        return tasks

    def fetch_comments(self, task_id: str) -> list[Comment]:
        response = self._request("GET", f"tasks/{task_id}/stories", params={"opt_fields": STORY_FIELDS})
        if response.status_code != 200:
            logger.error("fetch_comments failed task_id=%s %s", task_id, _api_error(response))
            return []

        stories = self._data(response) or []
        return [
            Comment.from_api(story)
            for story in stories
            if isinstance(story, dict) and story.get("type") == "comment"
        ]

    # ---- writes ----

    def post_comment(self, task_id: str, text: str) -> TrackerResult:
        response = self._request("POST", f"tasks/{task_id}/stories", data={"text": text})
        if response.status_code == 201:
            return TrackerResult(success=True, data=self._data(response) or {})
        return TrackerResult(success=False, error=_api_error(response))

    def rename_task(self, task_id: str, new_title: str) -> TrackerResult:
        response = self._request("PUT", f"tasks/{task_id}", data={"name": new_title})
        if response.status_code == 200:
            return TrackerResult(success=True, data=self._data(response) or {})
        return TrackerResult(success=False, error=_api_error(response))

    def complete_task(self, task_id: str) -> TrackerResult:
        response = self._request("PUT", f"tasks/{task_id}", data={"completed": True})
        if response.status_code == 200:
            return TrackerResult(success=True, data=self._data(response) or {})
        return TrackerResult(success=False, error=_api_error(response))

    def create_task(
        self,
        *,
        title: str,
        notes: str = "",
        assignee: str | None = None,
        due_on: date | None = None,
        project_id: str | None = None,
    ) -> TrackerResult:
        data: dict[str, Any] = {"name": title, "notes": notes}
        if self._workspace_id:
            data["workspace"] = self._workspace_id
        if assignee:
            data["assignee"] = assignee
        if due_on:
            data["due_on"] = due_on.isoformat()
        if project_id:
            data["projects"] = [project_id]

        response = self._request("POST", "tasks", data=data)
        if response.status_code == 201:
            return TrackerResult(success=True, data=self._data(response) or {})
        return TrackerResult(success=False, error=_api_error(response))
