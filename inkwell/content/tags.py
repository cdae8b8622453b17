"""Turn the admin editor's comma separated tag field into tag drafts."""

from __future__ import annotations

from typing import Callable, List

from inkwell.content.models import TagDraft


def tags_from_comma_string(text: str, slug_generator: Callable[[str], str]) -> List[TagDraft]:
    """Split ``"a, b,,c"`` into tag drafts named ``a``, ``b`` and ``c``.

    Blank entries are dropped. Slugs come from ``slug_generator``, which is
    responsible for making them unique.
    """
    names = [part.strip() for part in text.split(",")]
    return [TagDraft(name=name, slug=slug_generator(name)) for name in names if name]
