from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import List, Optional

from idlemmo.domain.models.character import CharacterInfo
from idlemmo.domain.models.location import Location
from idlemmo.errors import SessionStateError


@dataclass
class SessionState:
    """Cached view of the game for the account currently being processed.

    ``html`` and ``csrf_token`` always come from the same page fetch and are
    only ever written together through ``replace_snapshot``. Everything that
    discovers endpoints reads ``page_text``, which refuses to hand out a page
    that was never fetched.
    """

    html: str = ""
    csrf_token: str = ""
    character_info: CharacterInfo = field(default_factory=CharacterInfo)
    locations: List[Location] = field(default_factory=list)
    refreshed_at: Optional[datetime] = None

    @property
    def has_snapshot(self) -> bool:
        return self.refreshed_at is not None

    @property
    def page_text(self) -> str:
        if not self.has_snapshot:
            raise SessionStateError("World state has not been refreshed yet")
        return self.html

    def replace_snapshot(self, html: str, csrf_token: str) -> None:
        self.html = html
        self.csrf_token = csrf_token
        self.refreshed_at = datetime.now(UTC)

    def reset(self) -> None:
        self.html = ""
        self.csrf_token = ""
        self.character_info = CharacterInfo()
        self.locations = []
        self.refreshed_at = None
