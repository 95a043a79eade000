"""A UI resource declaring two content sources."""

from typing import Literal

from declmcp.contracts import IUI


class DashboardUI(IUI):
    uri: Literal["ui://dashboard"]
    name: Literal["Dashboard"]
    html: Literal["<div>Dashboard</div>"]
    externalUrl: Literal["https://example.com/dashboard"]
