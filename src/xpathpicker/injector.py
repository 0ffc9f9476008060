from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from playwright.sync_api import Error as PlaywrightError

if TYPE_CHECKING:
    from playwright.sync_api import Page

BINDING_NAME = "__xpathpickerReport"

logger = logging.getLogger("xpathpicker.ui")

INJECT_SCRIPT = r"""
(() => {
  if (window.__xpathpickerInstalled) {
    return;
  }

  const state = {
    enabled: false,
    overlay: null,
    notice: null,
    info: null,
    highlighted: null,
    handlers: null,
  };

  function elementKey(el) {
    return Array.prototype.indexOf.call(document.getElementsByTagName('*'), el);
  }

  function isPickerElement(el) {
    return !!el && typeof el.id === 'string' && el.id.startsWith('__xpathpicker');
  }

  function report(payload) {
    if (typeof window.__xpathpickerReport === 'function') {
      window.__xpathpickerReport(payload);
    }
  }

  function ensureChrome() {
    if (!state.overlay) {
      const overlay = document.createElement('div');
      overlay.id = '__xpathpicker_overlay';
      overlay.style.cssText = 'position:fixed;pointer-events:none;z-index:2147483647;'
        + 'border:2px solid #6366f1;background:rgba(99,102,241,0.10);display:none;';
      document.documentElement.appendChild(overlay);
      state.overlay = overlay;
    }
    if (!state.notice) {
      const notice = document.createElement('div');
      notice.id = '__xpathpicker_notice';
      notice.textContent = 'Element picker active. Click on an element to select it, or press ESC to cancel.';
      notice.style.cssText = 'position:fixed;top:0;left:0;right:0;background:#6366f1;color:white;'
        + 'padding:10px;z-index:2147483647;text-align:center;pointer-events:none;';
      document.documentElement.appendChild(notice);
      state.notice = notice;
    }
    if (!state.info) {
      const info = document.createElement('div');
      info.id = '__xpathpicker_info';
      info.style.cssText = 'position:fixed;bottom:0;left:0;right:0;background:rgba(0,0,0,0.8);color:white;'
        + 'padding:10px;z-index:2147483647;font-family:monospace;max-height:150px;overflow:auto;'
        + 'pointer-events:none;white-space:pre-wrap;';
      document.documentElement.appendChild(info);
      state.info = info;
    }
  }

  function removeChrome() {
    for (const el of [state.overlay, state.notice, state.info]) {
      if (el && el.parentNode) {
        el.parentNode.removeChild(el);
      }
    }
    state.overlay = null;
    state.notice = null;
    state.info = null;
    state.highlighted = null;
  }

  function positionOverlay(el) {
    if (!state.overlay || !el || !el.getBoundingClientRect) {
      return;
    }
    const rect = el.getBoundingClientRect();
    state.overlay.style.display = 'block';
    state.overlay.style.left = `${rect.left}px`;
    state.overlay.style.top = `${rect.top}px`;
    state.overlay.style.width = `${rect.width}px`;
    state.overlay.style.height = `${rect.height}px`;
    state.highlighted = el;
  }

  function block(event) {
    if (!state.enabled) return;
    event.preventDefault();
    event.stopPropagation();
    event.stopImmediatePropagation();
  }

  function attachListeners() {
    if (state.handlers) {
      return;
    }
    const handlers = {
      mouseover: (event) => {
        if (!state.enabled || isPickerElement(event.target)) return;
        block(event);
        positionOverlay(event.target);
        report({ kind: 'hover', key: elementKey(event.target) });
      },
      click: (event) => {
        if (!state.enabled || isPickerElement(event.target)) return;
        block(event);
        report({ kind: 'click', key: elementKey(event.target) });
      },
      mousedown: block,
      submit: block,
      keydown: (event) => {
        if (!state.enabled || event.key !== 'Escape') return;
        block(event);
        report({ kind: 'escape' });
      },
    };
    for (const [name, handler] of Object.entries(handlers)) {
      document.addEventListener(name, handler, true);
    }
    state.handlers = handlers;
    document.documentElement.style.cursor = 'crosshair';
  }

  function detachListeners() {
    if (!state.handlers) {
      return;
    }
    for (const [name, handler] of Object.entries(state.handlers)) {
      document.removeEventListener(name, handler, true);
    }
    state.handlers = null;
    document.documentElement.style.cursor = '';
  }

  window.__xpathpickerSetEnabled = (enabled) => {
    state.enabled = !!enabled;
    if (state.enabled) {
      ensureChrome();
      attachListeners();
      return;
    }
    detachListeners();
    removeChrome();
  };

  window.__xpathpickerShowInfo = (lines) => {
    if (state.info) {
      state.info.textContent = (lines || []).join('\n');
    }
  };

  window.__xpathpickerInstalled = true;
})();
"""


def install_picker(page: Page, enabled: bool = True) -> bool:
    try:
        page.evaluate(INJECT_SCRIPT)
        page.evaluate("(isEnabled) => window.__xpathpickerSetEnabled(!!isEnabled)", enabled)
    except PlaywrightError as exc:
        logger.warning("Could not install picker hooks: %s", exc)
        return False
    return True


def show_info(page: Page, lines: Sequence[str]) -> None:
    try:
        page.evaluate(
            "(lines) => window.__xpathpickerShowInfo && window.__xpathpickerShowInfo(lines)",
            list(lines),
        )
    except PlaywrightError as exc:
        logger.debug("Could not update picker info panel: %s", exc)


def remove_picker(page: Page) -> None:
    try:
        page.evaluate("() => window.__xpathpickerSetEnabled && window.__xpathpickerSetEnabled(false)")
    except PlaywrightError as exc:
        logger.debug("Could not remove picker hooks: %s", exc)
