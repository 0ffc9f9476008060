from __future__ import annotations

from pathlib import Path

import click
from lxml import etree

from . import __version__
from .browser_manager import BrowserPicker, build_logger
from .config import load_engine_config
from .dom import Document
from .locator_generator import compute_locator
from .models import PickResult
from .selector_rules import HeuristicStabilityClassifier, ScoredStabilityClassifier, StabilityClassifier


def _classifier(strict: bool) -> StabilityClassifier:
    return ScoredStabilityClassifier() if strict else HeuristicStabilityClassifier()


@click.group()
@click.version_option(version=__version__, prog_name="xpathpicker")
def cli() -> None:
    """Infer stable, unique XPath locators for page elements."""


@cli.command()
@click.argument("html_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("xpath")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Engine config file (default: ~/.xpathpicker/config.json)")
@click.option("--strict", is_flag=True, help="Also reject high-entropy and framework-generated values")
def locate(html_file: Path, xpath: str, config_path: Path | None, strict: bool) -> None:
    """Compute the locator for the element XPATH selects in HTML_FILE.

    \b
    Example:

        xpathpicker locate page.html "/html/body/div[2]/button"
    """
    try:
        markup = html_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(f"Could not read {html_file}: {exc}") from exc

    try:
        document = Document.from_html(markup)
    except (etree.ParserError, ValueError) as exc:
        raise click.ClickException(f"Could not parse {html_file}: {exc}") from exc

    try:
        target = document.select_one(xpath)
    except etree.XPathError as exc:
        raise click.ClickException(f"Invalid XPath {xpath!r}: {exc}") from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    config = load_engine_config(config_path)
    locator = compute_locator(target, config=config, classifier=_classifier(strict))
    click.echo(locator.expression)
    click.echo(f"category: {locator.category}")
    click.echo(f"unique: {'yes' if locator.unique else 'no'}")


@cli.command()
@click.argument("url")
@click.option("--headless/--headed", default=False, help="Run browser in headless mode")
@click.option("--max-picks", default=None, type=click.IntRange(min=1),
              help="Stop after this many picked elements")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Engine config file (default: ~/.xpathpicker/config.json)")
@click.option("--strict", is_flag=True, help="Also reject high-entropy and framework-generated values")
def pick(url: str, headless: bool, max_picks: int | None, config_path: Path | None, strict: bool) -> None:
    """Open URL in Chromium and print a locator for every clicked element.

    Hover to preview, click to pick, press ESC to stop.
    """
    logger = build_logger()

    def report_pick(result: PickResult, selection: str) -> None:
        suffix = "" if result.locator.unique else "  (not unique)"
        click.echo(f"{selection}{suffix}")

    def report_status(message: str) -> None:
        click.echo(message, err=True)

    picker = BrowserPicker(
        report_pick,
        report_status,
        config=load_engine_config(config_path),
        classifier=_classifier(strict),
        headless=headless,
    )
    logger.info("Starting picker for %s", url)
    picker.run(url, max_picks=max_picks)

    if picker.selections:
        click.echo("")
        click.echo("Selections:")
        for entry in picker.selections:
            click.echo(f"  {entry}")


if __name__ == "__main__":
    cli()
