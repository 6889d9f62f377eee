import logging
import os
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

from ..draw.participant import Participant
from ..errors import RegistrationSourceError

logger = logging.getLogger(__name__)

SOURCE_NAME = "remote registration service"


class RegistrationClient:
    """HTTP client for the remote registration desk (e.g. the QR sign-up page)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        url = base_url or os.getenv("REGISTRATION_API_URL")
        if not url:
            raise ValueError("Environment variable 'REGISTRATION_API_URL' is not set")

        self.base_url = url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token = os.getenv("REGISTRATION_API_TOKEN")

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        if self.token:
            return {"Accept": "application/json", "Authorization": f"Bearer {self.token}"}
        return {"Accept": "application/json"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        try:
            r = self.session.request(
                method=method.upper(),
                url=url,
                headers=self.headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
            r.raise_for_status()
            return r.json() if r.content else None
        except requests.RequestException as e:
            logger.error(f"{method.upper()} {path} failed: {e}")
            raise RegistrationSourceError(SOURCE_NAME, str(e), cause=e) from e
        except ValueError as e:
            # Body was not JSON
            raise RegistrationSourceError(SOURCE_NAME, "malformed response", cause=e) from e

    # -------- API callers --------
    def list_registrations(self, since: int = 0) -> list[dict]:
        """Registrations with a row id above ``since``, oldest first."""
        payload = self._request(
            "GET", "/api/v1/registrations", params={"since": since}
        )
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RegistrationSourceError(
                SOURCE_NAME, f"expected a list of registrations, got {type(payload).__name__}"
            )
        return payload

    def submit_registration(self, first_name: str, last_name: str) -> dict:
        """Register someone through the remote desk and return the stored record."""
        return self._request(
            "POST",
            "/api/v1/registrations",
            json={"first_name": first_name, "last_name": last_name},
        )


def participant_from_payload(payload: Mapping[str, Any]) -> Participant:
    """Build a :class:`Participant` from a registration record served by the API.

    Raises
    ------
    RegistrationSourceError
        If the record lacks the names or carries unusable values.
    """

    try:
        first_name = payload["first_name"]
        last_name = payload["last_name"]
        return Participant.from_names(
            first_name,
            last_name,
            participant_id=payload.get("participant_id"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise RegistrationSourceError(
            SOURCE_NAME, f"malformed registration record: {e}", cause=e
        ) from e


__all__ = ["RegistrationClient", "participant_from_payload"]
