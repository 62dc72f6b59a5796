"""DOM snapshot capture — one in-page script that serializes what the rules inspect."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Page
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Attributes that bind a click handler declaratively (inline, Angular, Vue).
CLICK_BINDING_ATTRIBUTES = ("onclick", "ng-click", "@click", "v-on:click")


class AnchorInfo(BaseModel):
    href_attr: Optional[str] = None  # raw attribute, None when absent
    href: str = ""                   # resolved by the browser
    text: str = ""


class ImageInfo(BaseModel):
    src: str = ""
    alt: Optional[str] = None
    complete: bool = True
    natural_width: int = 0


class ButtonInfo(BaseModel):
    text: str = ""
    type: str = "submit"  # resolved button.type, defaults to submit per HTML
    has_onclick: bool = False
    in_form: bool = False
    bindings: dict[str, str] = Field(default_factory=dict)


class FormControl(BaseModel):
    tag: str
    type_attr: Optional[str] = None


class FormInfo(BaseModel):
    action_attr: Optional[str] = None
    action: str = ""  # resolved form.action
    controls: list[FormControl] = Field(default_factory=list)


class DomSnapshot(BaseModel):
    page_url: str = ""
    anchors: list[AnchorInfo] = Field(default_factory=list)
    images: list[ImageInfo] = Field(default_factory=list)
    buttons: list[ButtonInfo] = Field(default_factory=list)
    forms: list[FormInfo] = Field(default_factory=list)


_SNAPSHOT_SCRIPT = """(bindingAttrs) => {
    const text = el => (el.textContent || '').trim();

    const anchors = Array.from(document.querySelectorAll('a')).map(a => ({
        href_attr: a.getAttribute('href'),
        href: a.href || '',
        text: text(a),
    }));

    const images = Array.from(document.querySelectorAll('img')).map(img => ({
        src: img.src || '',
        alt: img.getAttribute('alt'),
        complete: img.complete,
        natural_width: img.naturalWidth || 0,
    }));

    const buttons = Array.from(document.querySelectorAll('button')).map(btn => {
        const bindings = {};
        for (const name of bindingAttrs) {
            const value = btn.getAttribute(name);
            if (value !== null) bindings[name] = value;
        }
        return {
            text: text(btn),
            type: (btn.type || '').toLowerCase(),
            has_onclick: typeof btn.onclick === 'function',
            in_form: !!btn.closest('form'),
            bindings: bindings,
        };
    });

    const forms = Array.from(document.querySelectorAll('form')).map(form => ({
        action_attr: form.getAttribute('action'),
        action: form.action || '',
        controls: Array.from(form.querySelectorAll('input, button')).map(c => ({
            tag: c.tagName.toLowerCase(),
            type_attr: c.getAttribute('type'),
        })),
    }));

    return {
        page_url: window.location.href,
        anchors: anchors,
        images: images,
        buttons: buttons,
        forms: forms,
    };
}"""


async def capture_snapshot(page: Page) -> DomSnapshot:
    """Serialize anchors, images, buttons and forms of the loaded page."""
    raw = await page.evaluate(_SNAPSHOT_SCRIPT, list(CLICK_BINDING_ATTRIBUTES))
    snapshot = DomSnapshot(**raw)
    logger.debug(
        "Snapshot of %s: %d anchors, %d images, %d buttons, %d forms",
        snapshot.page_url, len(snapshot.anchors), len(snapshot.images),
        len(snapshot.buttons), len(snapshot.forms),
    )
    return snapshot
