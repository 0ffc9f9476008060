import pytest

from xpathpicker.config import EngineConfig
from xpathpicker.dom import Document
from xpathpicker.models import Locator
from xpathpicker.locator_generator import (
    DomAnalyzer,
    build_anchor_expression,
    build_direct_expression,
    build_full_path,
    build_relative_path,
    compute_locator,
    find_anchor,
    generate_candidates,
)
from xpathpicker.validation import resolves_uniquely_to


def _doc(body: str) -> Document:
    return Document.from_html(f"<html><body>{body}</body></html>")


def test_text_candidate_for_plain_span() -> None:
    document = _doc('<div><span id="x1">Hello</span><span>World</span></div>')
    target = document.select_one("//div/span[2]")

    locator = compute_locator(target)
    assert locator.expression == '//span[text()="World"]'
    assert locator.category == "Text"
    assert locator.unique


def test_id_locator_resolves_back_to_target() -> None:
    document = _doc('<form><input id="submitBtn" type="submit" value="Send"></form>')
    target = document.select_one("//input")

    locator = compute_locator(target)
    assert locator.expression == '//input[@id="submitBtn"]'
    assert locator.category == "Direct"
    assert resolves_uniquely_to(locator.expression, target)


def test_text_outranks_direct() -> None:
    document = _doc('<button id="saveButton">Save</button><button id="cancelButton">Cancel</button>')
    target = document.select_one("//button[@id='saveButton']")

    categories = {candidate.category: candidate.expression for candidate in generate_candidates(target)}
    assert categories["Direct"] == '//button[@id="saveButton"]'
    assert categories["Text"] == '//button[text()="Save"]'
    assert compute_locator(target).category == "Text"


def test_generated_id_never_used() -> None:
    document = _doc('<div id="row-482913"></div>')
    target = document.select_one("//div")

    candidates = generate_candidates(target)
    assert all("482913" not in candidate.expression for candidate in candidates)
    locator = compute_locator(target)
    assert locator.category == "FullPath"
    assert locator.expression == "//html/body/div"


def test_anchor_within_hop_bound() -> None:
    document = _doc('<section id="checkout"><div><div><input type="text"></div></div></section>')
    target = document.select_one("//input")
    section = document.select_one("//section")

    anchor = find_anchor(target)
    assert anchor.node is section
    assert anchor.hops == 3

    locator = compute_locator(target)
    assert locator.expression == '//section[@id="checkout"]/div/div/input'
    assert locator.category == "Relative"


def test_anchor_beyond_hop_bound_falls_back() -> None:
    document = _doc('<section id="checkout"><div><div><div><div><input type="text"></div></div></div></div></section>')
    target = document.select_one("//input")
    section = document.select_one("//section")

    anchor = find_anchor(target)
    assert anchor.node is target
    assert anchor.hops == 0
    assert find_anchor(target, max_hops=5).node is section

    categories = [candidate.category for candidate in generate_candidates(target)]
    assert "Relative" not in categories
    locator = compute_locator(target)
    assert locator.category == "FullPath"
    assert locator.expression == '//section[@id="checkout"]/div/div/div/div/input'


def test_anchor_hop_bound_is_configurable() -> None:
    document = _doc('<section id="checkout"><div><div><input type="text"></div></div></section>')
    target = document.select_one("//input")

    config = EngineConfig(max_hops=2)
    assert find_anchor(target, config=config).node is target
    assert compute_locator(target, config=config).category == "FullPath"


def test_full_path_uses_sibling_positions() -> None:
    document = _doc('<div><div><input type="text"></div><div><input type="text"></div></div>')
    first = document.select_one("(//input)[1]")
    second = document.select_one("(//input)[2]")

    assert build_full_path(first) == "//html/body/div/div[1]/input"
    assert build_full_path(second) == "//html/body/div/div[2]/input"
    locator = compute_locator(second)
    assert locator.expression == "//html/body/div/div[2]/input"
    assert locator.category == "FullPath"
    assert locator.unique


def test_full_path_depth_bound() -> None:
    document = _doc('<div><div><input type="text"></div><div><input type="text"></div></div>')
    target = document.select_one("(//input)[2]")
    assert build_full_path(target, max_depth=2) == "//div[2]/input"


def test_text_with_double_quotes_is_escaped() -> None:
    document = _doc('<p>He said "hi"</p>')
    target = document.select_one("//p")

    locator = compute_locator(target)
    assert locator.expression == "//p[text()='He said \"hi\"']"
    assert locator.category == "Text"
    assert resolves_uniquely_to(locator.expression, target)


def test_text_with_both_quote_kinds_evaluates() -> None:
    document = _doc("<p>It's \"x\"</p><p>Other</p>")
    target = document.select_one("//p[1]")

    locator = compute_locator(target)
    assert locator.expression == "//p[text()=concat(\"It's \", '\"', \"x\", '\"', \"\")]"
    assert locator.category == "Text"
    assert locator.unique


def test_control_characters_in_text_do_not_break_inference() -> None:
    document = _doc("<span>Hello\x0cthere</span><span>World</span>")
    target = document.select_one("//span[2]")
    assert compute_locator(target).expression == '//span[text()="World"]'

    tricky = document.select_one("//span[1]")
    locator = compute_locator(tricky)
    assert isinstance(locator, Locator)
    assert locator.category == "FullPath"
    assert not locator.unique


def test_control_characters_in_anchor_attribute_do_not_break_inference() -> None:
    document = _doc('<div title="a\x0bbc"><input type="text"></div>')
    target = document.select_one("//input")

    assert build_anchor_expression(document.select_one("//div")) is None
    locator = compute_locator(target)
    assert isinstance(locator, Locator)
    assert locator.category == "FullPath"
    assert "Relative" not in [candidate.category for candidate in generate_candidates(target)]


def test_full_path_stops_at_mixed_content_text() -> None:
    document = _doc('<p><a href="#">Read <b>more</b></a></p>')
    target = document.select_one("//a")

    locator = compute_locator(target)
    assert locator.expression == '//a[text()="Read more"]'
    assert locator.category == "FullPath"
    assert not locator.unique


def test_long_text_uses_contains_prefix() -> None:
    text = "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do"
    document = _doc(f"<p>{text}</p><p>Other</p>")
    target = document.select_one("//p[1]")

    locator = compute_locator(target)
    assert locator.expression == f'//p[contains(text(),"{text[:40]}")]'
    assert locator.category == "Text"


def test_duplicate_text_degrades_to_non_unique() -> None:
    document = _doc('<ul><li><button>Delete</button></li></ul><ul><li><button>Delete</button></li></ul>')
    target = document.select_one("(//button)[2]")

    categories = [candidate.category for candidate in generate_candidates(target)]
    assert "Text" not in categories
    locator = compute_locator(target)
    assert locator.expression == '//button[text()="Delete"]'
    assert not locator.unique


def test_relative_path_segments_from_anchor() -> None:
    document = _doc(
        '<div id="orders"><ul><li><a>Open</a></li><li><a>Close</a></li></ul></div>'
        '<div id="archive"><ul><li><a>Open</a></li></ul></div>'
    )
    anchor = document.select_one("//div[@id='orders']")
    item = document.select_one("//div[@id='orders']//li[2]")
    link = document.select_one("//div[@id='orders']//li[2]/a")

    assert build_anchor_expression(anchor) == '//div[@id="orders"]'
    assert build_relative_path(anchor, item) == '//div[@id="orders"]/ul/li[2]'
    assert build_relative_path(anchor, link) == '//div[@id="orders"]/ul/li[2]/a[text()="Close"]'


def test_relative_path_requires_ancestor() -> None:
    document = _doc('<div id="left"><span>a</span></div><div id="right"><span>b</span></div>')
    left = document.select_one("//div[@id='left']")
    right_span = document.select_one("//div[@id='right']/span")
    assert build_relative_path(left, right_span) is None


def test_relative_path_to_self_is_anchor_expression() -> None:
    document = _doc('<nav aria-label="Primary"><a>Home</a></nav>')
    nav = document.select_one("//nav")
    assert build_relative_path(nav, nav) == '//nav[@aria-label="Primary"]'


def test_direct_expression_priority() -> None:
    document = _doc('<input name="email" placeholder="Your email" class="field">')
    target = document.select_one("//input")
    assert build_direct_expression(target) == '//input[@placeholder="Your email"]'

    bare = _doc("<input>").select_one("//input")
    assert build_direct_expression(bare) is None


def test_analyzer_position_segment() -> None:
    document = _doc("<ul><li>a</li><li>b</li></ul><p>c</p>")
    second = document.select_one("//li[2]")
    paragraph = document.select_one("//p")
    assert DomAnalyzer(second).position_segment() == "li[2]"
    assert DomAnalyzer(paragraph).position_segment() == "p"
    assert DomAnalyzer(document.root).position_segment() == "html"


def test_inference_is_deterministic() -> None:
    document = _doc('<section id="checkout"><div><div><input type="text"></div></div></section>')
    target = document.select_one("//input")
    assert generate_candidates(target) == generate_candidates(target)
    assert compute_locator(target) == compute_locator(target)


def test_compute_locator_rejects_non_nodes() -> None:
    with pytest.raises(ValueError):
        compute_locator("//div")  # type: ignore[arg-type]
