"""Shared fakes for browser-free tests."""
from types import SimpleNamespace
from typing import Optional

import pytest
from selectolax.parser import HTMLParser

from purchase_importer.errors import BrowserError
from purchase_importer.parse.models import ImportCredentials

LOGIN_URL = "https://www.walmart.com/account/login"
ORDERS_URL = "https://www.walmart.com/orders"

LOGIN_HTML = """
<html><body>
  <form>
    <input name="email" type="email">
    <input name="password" type="password">
    <button type="submit">Sign in</button>
  </form>
</body></html>
"""


class FakePage:
    """
    A tiny HTML-backed page implementing the PageDriver methods.

    routes: html served by goto(url)
    after_submit: (url, html) reached by submitting the login form
    more_pages: html revealed by each successive "load more" click
    fail_on: method name -> exception raised when that method is called
    """

    def __init__(
        self,
        routes: Optional[dict] = None,
        after_submit: Optional[tuple] = None,
        more_pages: Optional[list] = None,
        fail_on: Optional[dict] = None,
    ):
        self.routes = routes or {}
        self.after_submit = after_submit
        self.more_pages = list(more_pages or [])
        self.fail_on = fail_on or {}
        self.url = "about:blank"
        self.html = ""
        self.fills: dict[str, str] = {}
        self.visited: list[str] = []
        self.clicks: list[str] = []
        self.close_count = 0

    def _maybe_fail(self, name: str) -> None:
        exc = self.fail_on.get(name)
        if exc is not None:
            raise exc

    def _tree(self) -> HTMLParser:
        return HTMLParser(self.html or "<html><body></body></html>")

    async def goto(self, url: str, timeout_ms: int) -> None:
        self._maybe_fail("goto")
        self.visited.append(url)
        self.url = url
        self.html = self.routes.get(url, "<html><body></body></html>")

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        tree = self._tree()
        return any(tree.css_first(part.strip()) is not None for part in selector.split(","))

    async def has_selector(self, selector: str) -> bool:
        return self._tree().css_first(selector) is not None

    async def fill(self, selector: str, value: str) -> None:
        self.fills[selector] = value

    async def click(self, selector: str) -> None:
        self._maybe_fail("click")
        self.clicks.append(selector)
        if not self.more_pages:
            raise BrowserError(f"Could not click {selector}")
        self.html = self.more_pages.pop(0)

    async def click_and_wait_for_navigation(self, selector: str, timeout_ms: int) -> None:
        self._maybe_fail("submit")
        self.clicks.append(selector)
        self.url, self.html = self.after_submit

    async def text_of(self, selector: str) -> Optional[str]:
        node = self._tree().css_first(selector)
        return node.text(strip=True) if node is not None else None

    async def body_text(self) -> str:
        body = self._tree().body
        return body.text(separator=" ") if body is not None else ""

    async def content(self) -> str:
        self._maybe_fail("content")
        return self.html

    async def close(self) -> None:
        self.close_count += 1


def orders_html(cards: list[str], load_more: bool = False) -> str:
    button = '<button class="load-more">Load more</button>' if load_more else ""
    return (
        '<html><body><div data-testid="orders-list">'
        + "".join(cards)
        + "</div>"
        + button
        + "</body></html>"
    )


def order_card(name: str = "", price: str = "", date: str = "", order_id: str = "", img: str = "") -> str:
    parts = ['<div class="order-card">']
    if name:
        parts.append(f'<span class="product-name">{name}</span>')
    if price:
        parts.append(f'<span class="price">{price}</span>')
    if date:
        parts.append(f'<span class="order-date">{date}</span>')
    if order_id:
        parts.append(f'<span class="order-id">{order_id}</span>')
    if img:
        parts.append(f'<img src="{img}">')
    parts.append("</div>")
    return "".join(parts)


@pytest.fixture
def credentials() -> ImportCredentials:
    return ImportCredentials(retailer="walmart", username="shopper@example.com", password="hunter22")


class FakeQuery:
    """Chainable stand-in for a supabase-py table query."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table = table
        self.op = None
        self.payload = None

    def select(self, *args, **kwargs):
        self.op = "select"
        return self

    def eq(self, *args):
        return self

    def limit(self, *args):
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def upsert(self, row, on_conflict=None):
        self.op = "upsert"
        self.payload = row
        self.client.on_conflict = on_conflict
        return self

    def execute(self):
        if self.op == "select":
            return SimpleNamespace(data=list(self.client.rows.get(self.table, [])))
        if self.op == "insert":
            if self.client.insert_error is not None:
                raise self.client.insert_error
            stored = [{**row, "id": f"row-{len(self.client.inserted) + i}"} for i, row in enumerate(self.payload)]
            self.client.inserted.extend(stored)
            return SimpleNamespace(data=stored)
        if self.op == "upsert":
            self.client.upserts.append(self.payload)
            return SimpleNamespace(data=[self.payload])
        raise AssertionError(f"unexpected query op {self.op}")


class FakeAuth:
    def __init__(self, tokens: dict):
        self.tokens = tokens

    def get_user(self, token: str):
        if token not in self.tokens:
            raise ValueError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))


class FakeSupabaseClient:
    """In-memory supabase client recording inserts and upserts."""

    def __init__(self, rows: Optional[dict] = None, insert_error: Optional[Exception] = None):
        self.rows = rows or {}
        self.insert_error = insert_error
        self.inserted: list[dict] = []
        self.upserts: list[dict] = []
        self.on_conflict = None
        self.auth = FakeAuth({"good-token": "user-1"})

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()
