"""Search-and-replace patch engine for patch_file."""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from webgen.constants import PATCH_PREVIEW_CHARS


class SearchReplace(BaseModel):
    """One search-and-replace edit."""

    search: str = Field(description="Exact text to find (first occurrence)")
    replace: str = Field("", description="Text to replace the match with")


@dataclass
class PatchOutcome:
    """Result of applying a batch of patches."""

    content: str
    log: list[str] = field(default_factory=list)
    applied: int = 0

    @property
    def summary(self) -> str:
        return "\n".join(self.log)


def preview(text: str, limit: int = PATCH_PREVIEW_CHARS) -> str:
    """Truncate text for a log line."""
    return text[:limit] + "…" if len(text) > limit else text


def _coerce(raw: Any) -> tuple[Optional[SearchReplace], Optional[str]]:
    if isinstance(raw, SearchReplace):
        return raw, None
    try:
        return SearchReplace.model_validate(raw), None
    except ValidationError:
        return None, "invalid patch (expected {search, replace} strings)"


def apply_patches(content: str, patches: list[Any]) -> PatchOutcome:
    """Apply patches in order, each against the output of the previous ones.

    Each patch replaces only the first plain-substring occurrence of its
    search text. A patch that does not match is logged and skipped; the
    remaining patches are still attempted.

    Args:
        content: Original file content
        patches: SearchReplace models or {search, replace} dicts

    Returns:
        PatchOutcome with the new content and one log line per patch
    """
    outcome = PatchOutcome(content=content)

    for number, raw in enumerate(patches, start=1):
        patch, error = _coerce(raw)
        if patch is None:
            outcome.log.append(f"patch #{number}: ✗ {error}")
            continue

        idx = outcome.content.find(patch.search)
        if idx >= 0:
            outcome.content = (
                outcome.content[:idx] + patch.replace + outcome.content[idx + len(patch.search):]
            )
            outcome.applied += 1
            outcome.log.append(f"patch #{number}: ✓ applied")
        else:
            outcome.log.append(f'patch #{number}: ✗ not found — "{preview(patch.search)}"')

    return outcome
