"""Alias classification.

Categories are a display aid only: they are derived from the alias text on
every parse and never written back to disk.
"""

from shellcraft.models import AliasCategory

# Checked in order; the first category with a matching needle wins.
_RULES: list[tuple[AliasCategory, tuple[str, ...]]] = [
    (AliasCategory.GIT, ("git", "gco", "gst")),
    (AliasCategory.NAVIGATION, ("cd ", "ls", "..")),
    (AliasCategory.DOCKER, ("docker", "dps", "dex")),
    (AliasCategory.SYSTEM, ("brew", "sudo", "kill")),
    (AliasCategory.NETWORK, ("curl", "ssh", "ping")),
]


def infer_category(name: str, expansion: str) -> AliasCategory:
    """Guess a category from the alias name and expansion (case-insensitive)."""
    combined = f"{name} {expansion}".lower()
    for category, needles in _RULES:
        if any(needle in combined for needle in needles):
            return category
    return AliasCategory.GENERAL
