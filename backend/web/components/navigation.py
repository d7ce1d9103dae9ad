"""
Navigation Component for PhenoFarm

Role-based sidebar that adapts to the user type (admin/grower/dispensary).
The active link is chosen by best prefix match on the current path.
"""

from typing import Optional, Dict, Any, List, Tuple
from .base import Component

NavItem = Tuple[str, str]  # (href, label)

NAV_BY_ROLE: Dict[str, List[NavItem]] = {
    "admin": [
        ("/admin", "Overview"),
        ("/admin/growers", "Growers"),
        ("/admin/dispensaries", "Dispensaries"),
        ("/admin/users", "Users"),
    ],
    "grower": [
        ("/dashboard", "Dashboard"),
    ],
    "dispensary": [
        ("/dashboard", "Dashboard"),
    ],
}

ROLE_LABELS = {"admin": "Admin", "grower": "Grower", "dispensary": "Dispensary"}


class Navigation(Component):
    """Navigation component with role-based menu items"""

    def __init__(self, user: Optional[Dict[str, Any]] = None, current_path: str = "/"):
        """
        Args:
            user: User dict with 'role' and 'name' keys (optional)
            current_path: The current URL path for active link highlighting
        """
        self.user = user
        self.current_path = current_path

    def items(self) -> List[NavItem]:
        role = (self.user or {}).get("role") or ""
        return list(NAV_BY_ROLE.get(role, []))

    def active_href(self) -> Optional[str]:
        """Return the href with the longest prefix match for the current path."""
        best: Optional[str] = None
        for href, _ in self.items():
            if self.current_path == href or self.current_path.startswith(href.rstrip("/") + "/"):
                if best is None or len(href) > len(best):
                    best = href
        return best

    def render(self) -> str:
        if not self.user:
            return ""
        active = self.active_href()
        links = []
        for href, label in self.items():
            is_active = href == active
            attrs = self.attributes(
                href=href,
                class_=self.classes("nav-link", active=is_active),
                aria_current="page" if is_active else None,
            )
            links.append(f"<a {attrs}>{self.escape(label)}</a>")

        role = self.user.get("role") or ""
        name = self.user.get("name") or ""
        return (
            '<aside class="sidebar" id="sidebar" aria-label="Sidebar">'
            '<nav class="sidebar-nav" role="navigation" aria-label="Main navigation">'
            '<div class="sidebar-header"><span class="sidebar-title">PhenoFarm</span>'
            f'<span class="sidebar-subtitle">{self.escape(ROLE_LABELS.get(role, role))}</span></div>'
            f'<div class="sidebar-items">{"".join(links)}</div>'
            '<div class="sidebar-footer">'
            f'<div class="user-name">{self.escape(name)}</div>'
            '<form method="post" action="/auth/logout" class="logout-form">'
            '<button type="submit" class="btn btn-link">Sign out</button>'
            "</form>"
            "</div>"
            "</nav>"
            "</aside>"
        )
