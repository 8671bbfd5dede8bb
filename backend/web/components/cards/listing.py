"""
ListingCard and DataTable components.

Cards show one listing (produce, tool, truck, waste lot, cooperative) with a
badge, a short metadata list and the row actions. Tables show histories such
as bookings and orders.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..base import Component


@dataclass
class MetaItem:
    """Key/value pair shown in the card's definition list."""

    label: str
    value: str


class ListingCard(Component):
    """
    Args:
        title: Card heading (escaped).
        meta_items: Label/value pairs (values escaped).
        badge: Optional status badge, e.g. "available" or "rented".
        actions_html: Pre-rendered buttons or forms for the footer.
        body_html: Optional extra pre-rendered content.
    """

    def __init__(
        self,
        title: str,
        *,
        meta_items: Optional[Sequence[MetaItem]] = None,
        badge: Optional[str] = None,
        actions_html: str = "",
        body_html: str = "",
    ) -> None:
        self.title = title
        self.meta_items = list(meta_items) if meta_items else []
        self.badge = badge
        self.actions_html = actions_html
        self.body_html = body_html

    def render(self) -> str:
        badge_html = (
            f'<span class="badge badge--{self.escape(self.badge.replace(" ", "-"))}">{self.escape(self.badge)}</span>'
            if self.badge
            else ""
        )
        meta_html = ""
        if self.meta_items:
            rows = "".join(
                f"<dt>{self.escape(item.label)}</dt><dd>{self.escape(item.value)}</dd>" for item in self.meta_items
            )
            meta_html = f'<dl class="card-meta">{rows}</dl>'
        actions = f'<div class="card-actions">{self.actions_html}</div>' if self.actions_html else ""
        return f"""
        <article class="card listing-card">
            <header class="card-header"><h3 class="card-title">{self.escape(self.title)}</h3>{badge_html}</header>
            {meta_html}{self.body_html}{actions}
        </article>"""


class CardGrid(Component):
    def __init__(self, cards: Iterable[Component], *, empty_text: str = "Nothing here yet.") -> None:
        self.cards = list(cards)
        self.empty_text = empty_text

    def render(self) -> str:
        if not self.cards:
            return f'<p class="empty-state text-muted">{self.escape(self.empty_text)}</p>'
        return f'<div class="card-grid">{"".join(c.render() for c in self.cards)}</div>'


class DataTable(Component):
    """Simple table; `rows` hold plain text except for the optional last `actions` column."""

    def __init__(
        self,
        headers: Sequence[str],
        rows: Iterable[Sequence[str]],
        *,
        actions: Optional[Sequence[str]] = None,
        empty_text: str = "No entries.",
    ) -> None:
        self.headers = list(headers)
        self.rows: List[Sequence[str]] = [list(r) for r in rows]
        self.actions = list(actions) if actions is not None else None
        self.empty_text = empty_text

    def render(self) -> str:
        if not self.rows:
            return f'<p class="empty-state text-muted">{self.escape(self.empty_text)}</p>'
        head = "".join(f'<th scope="col">{self.escape(h)}</th>' for h in self.headers)
        if self.actions is not None:
            head += '<th scope="col"><span class="sr-only">Actions</span></th>'
        body = []
        for index, row in enumerate(self.rows):
            cells = "".join(f"<td>{self.escape(c)}</td>" for c in row)
            if self.actions is not None:
                cells += f"<td>{self.actions[index] if index < len(self.actions) else ''}</td>"
            body.append(f"<tr>{cells}</tr>")
        return f'<table class="data-table"><thead><tr>{head}</tr></thead><tbody>{"".join(body)}</tbody></table>'
