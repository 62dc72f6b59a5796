"""Finding rules — pure functions from a DomSnapshot to finding records.

Each rule inspects one category and knows nothing about the browser, so the
whole table can be exercised against hand-built snapshots.
"""

from __future__ import annotations

from sitecrawl.models.job import DeadButton, FormIssue, MissingAlt, MissingImage

from .dom_snapshot import ButtonInfo, DomSnapshot, FormControl, FormInfo

NON_NAVIGABLE_PREFIXES = ("javascript:", "mailto:", "tel:")
DEAD_HREFS = frozenset({"#", "javascript:void(0)", "javascript:;"})
NON_DEAD_BUTTON_TYPES = frozenset({"submit", "reset"})

NO_ALT_SENTINEL = "(no alt)"
EMPTY_TEXT_SENTINEL = "(empty)"
NO_HREF_SENTINEL = "(none)"

ISSUE_NO_ACTION = "No action attribute"
ISSUE_NO_SUBMIT = "No submit button"


def _truncate(text: str, limit: int) -> str:
    return text.strip()[:limit] or EMPTY_TEXT_SENTINEL


def extract_links(snapshot: DomSnapshot) -> list[str]:
    """Navigable anchor targets. Duplicates are kept; callers deduplicate."""
    links = []
    for anchor in snapshot.anchors:
        if anchor.href_attr is None or not anchor.href:
            continue
        if anchor.href.startswith(NON_NAVIGABLE_PREFIXES):
            continue
        links.append(anchor.href)
    return links


def find_missing_images(snapshot: DomSnapshot) -> list[MissingImage]:
    return [
        MissingImage(src=img.src, alt=img.alt or NO_ALT_SENTINEL)
        for img in snapshot.images
        if not img.complete or img.natural_width == 0
    ]


def find_missing_alt(snapshot: DomSnapshot) -> list[MissingAlt]:
    return [
        MissingAlt(src=img.src)
        for img in snapshot.images
        if not img.alt or not img.alt.strip()
    ]


def _is_dead_button(button: ButtonInfo) -> bool:
    if button.has_onclick or button.in_form:
        return False
    if button.type in NON_DEAD_BUTTON_TYPES:
        return False
    return not any(button.bindings.values())


def find_dead_elements(snapshot: DomSnapshot, text_limit: int = 50) -> list[DeadButton]:
    """Anchors that go nowhere and buttons with nothing bound to them."""
    dead = []
    for anchor in snapshot.anchors:
        href = anchor.href_attr
        if not href or href in DEAD_HREFS:
            dead.append(DeadButton(
                type="link",
                text=_truncate(anchor.text, text_limit),
                href=href or NO_HREF_SENTINEL,
            ))
    for button in snapshot.buttons:
        if _is_dead_button(button):
            dead.append(DeadButton(type="button", text=_truncate(button.text, text_limit)))
    return dead


def _is_submit_control(control: FormControl) -> bool:
    type_attr = control.type_attr.strip().lower() if control.type_attr is not None else None
    if control.tag == "input":
        return type_attr == "submit"
    if control.tag == "button":
        return type_attr is None or type_attr == "submit"
    return False


def _has_no_action(form: FormInfo, page_url: str) -> bool:
    return not form.action_attr or not form.action or form.action == page_url


def find_form_issues(snapshot: DomSnapshot) -> list[FormIssue]:
    issues = []
    for index, form in enumerate(snapshot.forms, start=1):
        label = f"Form #{index}"
        if _has_no_action(form, snapshot.page_url):
            issues.append(FormIssue(form=label, issue=ISSUE_NO_ACTION))
        if not any(_is_submit_control(c) for c in form.controls):
            issues.append(FormIssue(form=label, issue=ISSUE_NO_SUBMIT))
    return issues
