# workclock/services/directory_client.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from workclock.core.config import Settings
from workclock.core.errors import DirectoryClientError, MalformedDirectoryPayloadError
from workclock.schemas.roster import Person

logger = logging.getLogger(__name__)

BOARD_PEOPLE_QUERY = """
query ($boardId: [ID!]) {
  boards (ids: $boardId) {
    id
    items_page (limit: 500) {
      cursor
      items {
        id
        column_values (types: [people]) { id type value }
      }
    }
  }
}
"""

NEXT_ITEMS_QUERY = """
query ($cursor: String!) {
  next_items_page (limit: 500, cursor: $cursor) {
    cursor
    items {
      id
      column_values (types: [people]) { id type value }
    }
  }
}
"""

USERS_QUERY = """
query ($ids: [ID!]) {
  users (ids: $ids) { id name photo_thumb_small time_zone_identifier }
}
"""


class MondayClient:
    """
    Minimal monday.com GraphQL client used as the people directory.

    Responsibilities
    ----------------
    - Issue authenticated GraphQL POSTs and surface transport or GraphQL
      errors as DirectoryClientError.
    - List the people assigned through People columns on a board.
    - Resolve user ids to display names for the overrides table.

    Notes
    -----
    - The underlying httpx.AsyncClient is created on first use and must be
      released with `aclose()`; the application lifespan owns that call.
    - Malformed items are skipped (and logged) rather than failing the
      whole listing.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = "https://api.monday.com/v2",
        api_version: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not api_token:
            raise ValueError("api_token is required")

        self._api_token = api_token
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version
        self._timeout_seconds = timeout_seconds

        self._http: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["MondayClient"]:
        """
        Build a client from settings, or None when no API token is configured.
        """
        if not settings.MONDAY_API_TOKEN:
            return None
        return cls(
            api_token=settings.MONDAY_API_TOKEN,
            base_url=str(settings.MONDAY_API_URL),
            api_version=settings.MONDAY_API_VERSION,
            timeout_seconds=settings.DIRECTORY_TIMEOUT_SECONDS,
        )

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": self._api_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._api_version:
            headers["API-Version"] = self._api_version
        return headers

    async def post_graphql(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query and return its `data` object.

        Raises DirectoryClientError on network failures, non-2xx responses,
        or a non-empty `errors` array in the payload.
        """
        body = {"query": query, "variables": variables or {}}

        try:
            resp = await self._client().post(
                self._base_url,
                headers=self._headers(),
                json=body,
            )
        except httpx.HTTPError as exc:
            raise DirectoryClientError(f"Directory request failed: {exc}") from exc

        if resp.status_code // 100 != 2:
            raise DirectoryClientError(
                f"Directory query failed (status={resp.status_code}): {resp.text}"
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise DirectoryClientError("Directory returned a non-JSON response") from exc

        if not isinstance(payload, dict):
            raise DirectoryClientError("Directory returned an unexpected payload shape")

        errors = payload.get("errors")
        if errors:
            raise DirectoryClientError(f"Directory query returned errors: {errors}")

        data = payload.get("data")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise DirectoryClientError("Directory returned a non-object data field")
        return data

    async def list_assigned_persons(self, board_id: str) -> List[Person]:
        """
        Return the people assigned through any People column on the board,
        in first-seen order.

        Items are read page by page, following `next_items_page` cursors
        until the board is exhausted. A malformed board entry is skipped; a
        malformed follow-up page fails the whole listing.
        """
        data = await self.post_graphql(BOARD_PEOPLE_QUERY, {"boardId": [str(board_id)]})

        boards = data.get("boards") or []
        if not isinstance(boards, list):
            raise DirectoryClientError("Directory returned an unexpected boards shape")

        items: List[Any] = []
        for board in boards:
            try:
                page_items, cursor = _read_items_page(board, "items_page")
            except MalformedDirectoryPayloadError as exc:
                logger.warning("MalformedDirectoryPayload, skipping board entry: %s", exc)
                continue
            items.extend(page_items)

            seen_cursors = set()
            while cursor:
                if cursor in seen_cursors:
                    raise DirectoryClientError(f"Directory repeated items cursor {cursor!r}")
                seen_cursors.add(cursor)

                next_data = await self.post_graphql(NEXT_ITEMS_QUERY, {"cursor": cursor})
                try:
                    page_items, cursor = _read_items_page(next_data, "next_items_page")
                except MalformedDirectoryPayloadError as exc:
                    raise DirectoryClientError(f"Directory returned a malformed items page: {exc}") from exc
                items.extend(page_items)

        ids = extract_person_ids(items)
        if not ids:
            return []

        users_data = await self.post_graphql(USERS_QUERY, {"ids": ids})
        users = parse_users(_users_of(users_data))

        # keep board order rather than whatever order the API returns
        by_id = {p.id: p for p in users}
        return [by_id[i] for i in ids if i in by_id]

    async def lookup_user_names(self, ids: Iterable[str]) -> Dict[str, str]:
        """
        Map numeric user ids to display names. Non-numeric keys are ignored.
        """
        numeric = [str(i) for i in ids if str(i).isdigit()]
        if not numeric:
            return {}
        data = await self.post_graphql(USERS_QUERY, {"ids": numeric})
        return {p.id: p.name for p in parse_users(_users_of(data))}


def _read_items_page(container: Any, field: str) -> Tuple[List[Any], Optional[str]]:
    """
    Pull `(items, cursor)` out of an `items_page` / `next_items_page` object.

    The cursor is None on the last page.
    """
    if not isinstance(container, dict):
        raise MalformedDirectoryPayloadError(f"expected an object holding {field}, got {container!r}")

    page = container.get(field)
    if page is None:
        return [], None
    if not isinstance(page, dict):
        raise MalformedDirectoryPayloadError(f"{field} is not an object")

    items = page.get("items") or []
    if not isinstance(items, list):
        raise MalformedDirectoryPayloadError(f"{field}.items is not a list")

    cursor = page.get("cursor")
    return items, (str(cursor) if cursor else None)


def _users_of(data: Dict[str, Any]) -> List[Any]:
    users = data.get("users") or []
    if not isinstance(users, list):
        raise DirectoryClientError("Directory returned an unexpected users shape")
    return users



def _person_ids_from_value(raw_value: Any) -> List[str]:
    """
    Parse one People column value, e.g.
    '{"personsAndTeams": [{"id": 123, "kind": "person"}]}'.
    """
    if raw_value is None or raw_value == "":
        return []

    try:
        value = json.loads(raw_value) if isinstance(raw_value, str) else raw_value
    except ValueError as exc:
        raise MalformedDirectoryPayloadError(f"column value is not JSON: {exc}") from exc

    if value is None:
        return []
    if not isinstance(value, dict):
        raise MalformedDirectoryPayloadError("column value is not an object")

    entries = value.get("personsAndTeams") or []
    if not isinstance(entries, list):
        raise MalformedDirectoryPayloadError("personsAndTeams is not a list")

    ids: List[str] = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("id") is None:
            raise MalformedDirectoryPayloadError(f"bad personsAndTeams entry: {entry!r}")
        if entry.get("kind", "person") == "person":
            ids.append(str(entry["id"]))
    return ids


def extract_person_ids(items: Iterable[Any]) -> List[str]:
    """
    Collect unique person ids from board items' People columns.

    An item whose column value cannot be parsed is skipped with a warning;
    the other items are still processed.
    """
    seen: Dict[str, None] = {}

    for item in items:
        try:
            if not isinstance(item, dict):
                raise MalformedDirectoryPayloadError("item is not an object")
            item_ids: List[str] = []
            for column in item.get("column_values") or []:
                if not isinstance(column, dict):
                    raise MalformedDirectoryPayloadError("column value entry is not an object")
                item_ids.extend(_person_ids_from_value(column.get("value")))
        except MalformedDirectoryPayloadError as exc:
            item_ref = item.get("id") if isinstance(item, dict) else item
            logger.warning("MalformedDirectoryPayload, skipping item %r: %s", item_ref, exc)
            continue

        for person_id in item_ids:
            seen.setdefault(person_id, None)

    return list(seen)


def parse_users(users: Iterable[Any]) -> List[Person]:
    """
    Convert `users` entries into Person records, skipping malformed ones.
    """
    persons: List[Person] = []
    for user in users:
        if not isinstance(user, dict) or user.get("id") is None:
            logger.warning("MalformedDirectoryPayload, skipping user %r", user)
            continue
        persons.append(
            Person(
                id=str(user["id"]),
                name=str(user.get("name") or ""),
                avatar_url=user.get("photo_thumb_small") or None,
                timezone=user.get("time_zone_identifier") or None,
            )
        )
    return persons
