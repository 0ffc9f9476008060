from __future__ import annotations

import logging
import queue
from typing import TYPE_CHECKING, Any, Callable

from playwright.sync_api import Error as PlaywrightError

from .action_catalog import format_selection
from .config import DEFAULT_CONFIG, LOG_DIR, EngineConfig
from .dom import Document, Node
from .dom_extractor import capture_key
from .injector import BINDING_NAME, install_picker, remove_picker, show_info
from .locator_generator import DEFAULT_CLASSIFIER
from .models import PickResult
from .selection_log import SelectionLog
from .selector_rules import StabilityClassifier
from .ui_state import (
    PickerSession,
    arm_session,
    complete_session,
    describe_element,
    on_click,
    on_escape,
    on_hover,
)

if TYPE_CHECKING:
    from playwright.sync_api import Page

PickCallback = Callable[[PickResult, str], None]
StatusCallback = Callable[[str], None]
SnapshotFn = Callable[["Page", int], "tuple[Document, Node | None]"]

_MISSING_BROWSER_ERROR_HINTS = (
    "executable doesn't exist",
    "executable does not exist",
    "download new browsers",
    "playwright install",
    "could not find browser",
    "failed to launch chromium because executable",
)


def is_missing_browser_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return any(hint in message for hint in _MISSING_BROWSER_ERROR_HINTS)


def normalize_url(raw_url: str) -> str:
    url = raw_url.strip()
    if not url:
        return ""
    if url.startswith(("http://", "https://", "file://")):
        return url
    return f"https://{url}"


def coalesce_hovers(events: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Collapses runs of hover events into the last one of each run."""
    result: list[dict[str, Any]] = []
    for event in events:
        if result and event.get("kind") == "hover" and result[-1].get("kind") == "hover":
            result[-1] = event
        else:
            result.append(event)
    return result


def build_logger() -> logging.Logger:
    logger = logging.getLogger("xpathpicker.ui")
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(LOG_DIR / "picker.log", encoding="utf-8")
    except OSError:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


class BrowserPicker:
    """Runs picking sessions against a live Chromium page.

    Page hooks only report ``hover``/``click``/``escape`` events with an element
    key; every event is turned into a fresh snapshot so the engine always sees
    the tree as it is at that moment.
    """

    def __init__(
        self,
        on_pick: PickCallback,
        on_status: StatusCallback,
        *,
        config: EngineConfig = DEFAULT_CONFIG,
        classifier: StabilityClassifier = DEFAULT_CLASSIFIER,
        headless: bool = False,
        snapshot: SnapshotFn = capture_key,
    ) -> None:
        self._on_pick = on_pick
        self._on_status = on_status
        self.config = config
        self.classifier = classifier
        self.headless = headless
        self._snapshot = snapshot
        self.logger = logging.getLogger("xpathpicker.ui")

        self.session = PickerSession()
        self.selections = SelectionLog()
        self._events: queue.Queue[dict[str, Any]] = queue.Queue()
        self._page: Page | None = None
        self._running = False
        self._picks = 0
        self._max_picks: int | None = None

    def run(self, url: str, *, max_picks: int | None = None) -> None:
        target_url = normalize_url(url)
        if not target_url:
            self._on_status("Please enter a URL.")
            return

        from playwright.sync_api import sync_playwright

        with sync_playwright() as playwright:
            try:
                browser = playwright.chromium.launch(headless=self.headless)
            except PlaywrightError as exc:
                if is_missing_browser_error(exc):
                    self._on_status("Chromium not installed. Run: python -m playwright install chromium")
                else:
                    self._on_status(f"Failed to launch Chromium: {exc}")
                return

            try:
                page = browser.new_page()
                page.expose_binding(BINDING_NAME, self._on_binding)
                page.on("close", lambda _page: self.stop())
                page.on("domcontentloaded", lambda _page: self._reinstall_hooks())
                self._on_status(f"Opening {target_url}")
                page.goto(target_url, wait_until="domcontentloaded")
                self.attach(page, max_picks=max_picks)
                self._event_loop()
            except PlaywrightError as exc:
                self.logger.exception("Picker session failed.")
                self._on_status(f"Browser error: {exc}")
            finally:
                self._page = None
                browser.close()

    def attach(self, page: Page, *, max_picks: int | None = None) -> None:
        self._page = page
        self._max_picks = max_picks
        self._picks = 0
        self._running = True
        self.start_picking()

    def start_picking(self) -> None:
        if not self._page:
            self._on_status("Open a page first.")
            return
        self.session = arm_session(self.session)
        install_picker(self._page, True)
        self.logger.info("Picker armed.")
        self._on_status("Element picker active. Click an element to select it, or press ESC to cancel.")

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def handle_event(self, event: dict[str, Any]) -> None:
        page = self._page
        if page is None:
            return

        kind = str(event.get("kind") or "")
        if kind == "escape":
            self.session = on_escape(self.session)
            remove_picker(page)
            self.logger.info("Picker cancelled.")
            self._on_status("Picker cancelled.")
            self.stop()
            return

        key = event.get("key")
        if kind not in ("hover", "click") or not isinstance(key, int) or key < 0:
            return

        _document, node = self._snapshot(page, key)
        if node is None:
            self.logger.info("Element %s is no longer part of the page.", key)
            return

        if kind == "hover":
            self.session = on_hover(self.session, node, config=self.config, classifier=self.classifier)
            show_info(page, describe_element(node, self.session.preview))
            return

        self.session = on_click(self.session, node, config=self.config, classifier=self.classifier)
        self.session, result = complete_session(self.session)
        if result is None:
            return
        self._record(result)

    def _record(self, result: PickResult) -> None:
        selection = format_selection(result.locator.expression, result.action)
        _added, message = self.selections.add(selection)
        self.logger.info("Picked %s (%s, unique=%s): %s", selection, result.locator.category, result.locator.unique, message)
        self._on_pick(result, selection)
        self._on_status(message)
        self._picks += 1

        if self._max_picks is not None and self._picks >= self._max_picks:
            if self._page is not None:
                remove_picker(self._page)
            self.stop()
            return
        self.start_picking()

    def _on_binding(self, _source: Any, payload: Any = None) -> None:
        if isinstance(payload, dict):
            self._events.put(payload)

    def _reinstall_hooks(self) -> None:
        if self._running and self.session.active and self._page is not None:
            install_picker(self._page, True)

    def _event_loop(self) -> None:
        while self._running:
            events = self._drain_events()
            if not events:
                self._pump_events()
                continue
            for event in events:
                if not self._running:
                    break
                try:
                    self.handle_event(event)
                except PlaywrightError as exc:
                    self.logger.warning("Event %s failed: %s", event.get("kind"), exc)
                    self._on_status(f"Capture failed: {exc}")

    def _drain_events(self) -> list[dict[str, Any]]:
        events: list[dict[str, Any]] = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return coalesce_hovers(events)

    def _pump_events(self) -> None:
        if not self._page:
            self.stop()
            return
        try:
            self._page.wait_for_timeout(50)
        except PlaywrightError:
            self.stop()
