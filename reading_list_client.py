"""Reading List API client.

A thin wrapper around the HTTP/JSON contract of the reading list
service, built on ``requests``.  It exposes one method per endpoint:

* :meth:`get_version` – deployed version and build time.
* :meth:`create_account`, :meth:`login`, :meth:`get_account`,
  :meth:`list_accounts`, :meth:`set_role` – accounts.
* :meth:`list_announcements`, :meth:`create_announcement`,
  :meth:`delete_announcement` – announcements.
* :meth:`list_loans`, :meth:`create_loan`, :meth:`delete_loan` – loans.

Every method returns a tuple ``(data, error)``.  On success ``error`` is
``None``; on failure ``data`` is ``None`` (or an empty list for the
listing methods) and ``error`` is a dictionary with keys
``status_code`` and ``message``.  ``status_code`` is ``None`` when the
server could not be reached at all, which callers use to decide
whether to fall back to cached data.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class ReadingListAPI:
    """Client for the reading list service."""

    def __init__(
        self,
        *,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``http://localhost:3000``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Per request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request against the service.

        Returns:
            A tuple ``(data, error)`` as described in the module docstring.
            Error messages are taken from the ``error`` key of the
            service's JSON error body when present.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("error") or err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}
        except ValueError as exc:
            logger.error("API returned invalid JSON: %s", exc)
            return None, {"status_code": None, "message": f"Invalid JSON response: {exc}"}

    def _list(self, path: str, key: str) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", path)
        if error:
            return [], error
        if isinstance(data, dict) and isinstance(data.get(key), list):
            return data[key], None
        if isinstance(data, list):
            return data, None
        return [], None

    # ------------------------------------------------------------------
    # Version
    # ------------------------------------------------------------------
    def get_version(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", "/api/version")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------
    def create_account(self, username: str, password: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Register an account.  ``data["role"]`` holds the assigned role."""
        return self._request(
            "POST", "/api/account/create", json_body={"username": username, "password": password}
        )

    def login(self, username: str, password: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request(
            "POST", "/api/account/login", json_body={"username": username, "password": password}
        )

    def get_account(self, username: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Fetch ``{username, role, createdAt}`` for an account."""
        return self._request("GET", "/api/account/me", params={"username": username.lower()})

    def list_accounts(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        return self._list("/api/accounts", "accounts")

    def set_role(self, username: str, role: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        path = f"/api/account/{quote(username.lower(), safe='')}/role"
        return self._request("PUT", path, json_body={"role": role})

    # ------------------------------------------------------------------
    # Announcements
    # ------------------------------------------------------------------
    def list_announcements(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        return self._list("/api/announcements", "announcements")

    def create_announcement(
        self, title: str, body: str, *, username: Optional[str] = None
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        payload: Dict[str, Any] = {"title": title, "body": body}
        if username:
            payload["username"] = username
        return self._request("POST", "/api/announcements", json_body=payload)

    def delete_announcement(self, announcement_id: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("DELETE", f"/api/announcements/{quote(str(announcement_id), safe='')}")
        return error is None, error

    # ------------------------------------------------------------------
    # Loans
    # ------------------------------------------------------------------
    def list_loans(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        return self._list("/api/loans", "loans")

    def create_loan(
        self, book_id: str, username: str, title: str, author: str
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        payload = {"id": str(book_id), "username": username, "title": title, "author": author}
        return self._request("POST", "/api/loans", json_body=payload)

    def delete_loan(self, book_id: str, *, username: Optional[str] = None) -> Tuple[bool, Optional[Error]]:
        params = {"username": username.lower()} if username else None
        _, error = self._request("DELETE", f"/api/loans/{quote(str(book_id), safe='')}", params=params)
        return error is None, error
