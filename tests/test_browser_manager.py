from typing import Any

from xpathpicker.browser_manager import (
    BrowserPicker,
    coalesce_hovers,
    is_missing_browser_error,
    normalize_url,
)
from xpathpicker.dom import Document, Node
from xpathpicker.models import PickResult

PAGE = """
<html><body>
  <form id="login">
    <input id="username" type="text">
    <button>Sign in</button>
  </form>
</body></html>
"""


class FakePage:
    def __init__(self) -> None:
        self.scripts: list[tuple[str, Any]] = []

    def evaluate(self, script: str, arg: Any = None) -> Any:
        self.scripts.append((script, arg))
        return None

    def info_lines(self) -> list[list[str]]:
        return [arg for script, arg in self.scripts if "ShowInfo" in script and isinstance(arg, list)]


class Recorder:
    def __init__(self) -> None:
        self.picks: list[tuple[PickResult, str]] = []
        self.statuses: list[str] = []

    def on_pick(self, result: PickResult, selection: str) -> None:
        self.picks.append((result, selection))

    def on_status(self, message: str) -> None:
        self.statuses.append(message)


def _picker(max_picks: int | None = None) -> tuple[BrowserPicker, FakePage, Recorder, dict[int, Node]]:
    document = Document.from_html(PAGE)
    nodes = {
        1: document.select_one("//input"),
        2: document.select_one("//button"),
    }
    recorder = Recorder()
    picker = BrowserPicker(
        recorder.on_pick,
        recorder.on_status,
        snapshot=lambda _page, key: (document, nodes.get(key)),
    )
    page = FakePage()
    picker.attach(page, max_picks=max_picks)  # type: ignore[arg-type]
    return picker, page, recorder, nodes


def test_attach_arms_picker() -> None:
    picker, page, recorder, _nodes = _picker()
    assert picker.running
    assert picker.session.state == "Armed"
    assert any("__xpathpickerSetEnabled" in script for script, _arg in page.scripts)
    assert recorder.statuses[-1].startswith("Element picker active.")


def test_hover_updates_preview_panel() -> None:
    picker, page, _recorder, nodes = _picker()
    picker.handle_event({"kind": "hover", "key": 1})
    assert picker.session.state == "Highlighted"
    assert picker.session.highlighted is nodes[1]
    assert page.info_lines()[-1][1] == 'Likely XPath: //input[@id="username"]'


def test_click_records_selection_and_rearms() -> None:
    picker, _page, recorder, _nodes = _picker()
    picker.handle_event({"kind": "hover", "key": 2})
    picker.handle_event({"kind": "click", "key": 2})

    assert len(recorder.picks) == 1
    result, selection = recorder.picks[0]
    assert result.locator.expression == '//button[text()="Sign in"]'
    assert selection == '//button[text()="Sign in"] → click()'
    assert list(picker.selections) == [selection]
    assert recorder.statuses[-1].startswith("Element picker active.")
    assert picker.session.state == "Armed"
    assert picker.running

    picker.handle_event({"kind": "click", "key": 2})
    assert "Selector already added!" in recorder.statuses
    assert len(picker.selections) == 1


def test_max_picks_stops_session() -> None:
    picker, page, recorder, _nodes = _picker(max_picks=1)
    picker.handle_event({"kind": "click", "key": 1})
    assert not picker.running
    assert recorder.picks[0][1] == '//input[@id="username"] → fill()'
    assert "__xpathpickerSetEnabled(false)" in page.scripts[-1][0]


def test_escape_cancels_session() -> None:
    picker, _page, recorder, _nodes = _picker()
    picker.handle_event({"kind": "hover", "key": 2})
    picker.handle_event({"kind": "escape"})
    assert picker.session.state == "Idle"
    assert not picker.running
    assert recorder.statuses[-1] == "Picker cancelled."


def test_unknown_or_stale_events_are_ignored() -> None:
    picker, page, recorder, _nodes = _picker()
    before = len(page.scripts)
    picker.handle_event({"kind": "scroll", "key": 1})
    picker.handle_event({"kind": "click", "key": "2"})
    picker.handle_event({"kind": "click", "key": 99})
    assert picker.session.state == "Armed"
    assert recorder.picks == []
    assert len(page.scripts) == before


def test_coalesce_hovers_keeps_last_of_each_run() -> None:
    events = [
        {"kind": "hover", "key": 1},
        {"kind": "hover", "key": 2},
        {"kind": "click", "key": 2},
        {"kind": "hover", "key": 3},
        {"kind": "hover", "key": 4},
    ]
    assert coalesce_hovers(events) == [
        {"kind": "hover", "key": 2},
        {"kind": "click", "key": 2},
        {"kind": "hover", "key": 4},
    ]


def test_normalize_url() -> None:
    assert normalize_url("  example.com ") == "https://example.com"
    assert normalize_url("http://localhost:8000") == "http://localhost:8000"
    assert normalize_url("file:///tmp/page.html") == "file:///tmp/page.html"
    assert normalize_url("   ") == ""


def test_missing_browser_error_detection() -> None:
    assert is_missing_browser_error(Exception("Executable doesn't exist at /ms-playwright/chromium"))
    assert is_missing_browser_error(Exception("Please run the following command to download new browsers"))
    assert not is_missing_browser_error(Exception("net::ERR_NAME_NOT_RESOLVED"))
