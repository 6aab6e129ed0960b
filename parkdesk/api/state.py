from __future__ import annotations

from dataclasses import dataclass

from parkdesk.client import ParkDeskClient


@dataclass
class AppState:
    client: ParkDeskClient
