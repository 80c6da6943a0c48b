"""Builtin skill catalog and prompt resolution for project skills."""

from __future__ import annotations

import logging
from pathlib import Path

from agentmine.exceptions import SkillLoadError
from agentmine.models.config import SkillDefinition, SkillSource

logger = logging.getLogger(__name__)

BUILTIN_SKILLS: dict[str, SkillDefinition] = {
    "commit": SkillDefinition(
        name="commit",
        description="Create a git commit",
        source=SkillSource.BUILTIN,
        prompt="Run /commit to create a conventional commit for the current changes.",
    ),
    "test": SkillDefinition(
        name="test",
        description="Run the test suite",
        source=SkillSource.BUILTIN,
        prompt="Run the test suite and fix any failing tests.",
    ),
    "review": SkillDefinition(
        name="review",
        description="Review code",
        source=SkillSource.BUILTIN,
        prompt=(
            "Review the recent changes and provide feedback on code quality, "
            "potential bugs, and improvements."
        ),
    ),
    "debug": SkillDefinition(
        name="debug",
        description="Help debug an issue",
        source=SkillSource.BUILTIN,
        prompt="Analyze the error and help debug the issue.",
    ),
}


def resolve_prompt(skill: SkillDefinition, skills_root: Path) -> str:
    """Return the prompt text a skill runs with.

    Lookup order: inline ``prompt``, then the file at ``path`` (relative
    paths resolve against the project's skills directory), then
    ``<skills_root>/<name>.md``.

    Raises:
        SkillLoadError: If the skill is remote, or no prompt can be found.
    """
    if skill.prompt:
        return skill.prompt

    if skill.source == SkillSource.REMOTE:
        raise SkillLoadError(
            f'Skill "{skill.name}" is remote ({skill.url or "no url"}); '
            "remote skills are not fetched"
        )

    candidates: list[Path] = []
    if skill.path:
        path = Path(skill.path)
        candidates.append(path if path.is_absolute() else skills_root / path)
    candidates.append(skills_root / f"{skill.name}.md")

    for candidate in candidates:
        if candidate.is_file():
            logger.debug("Loading skill %s from %s", skill.name, candidate)
            try:
                text = candidate.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise SkillLoadError(f"Cannot read {candidate}: {e}") from e
            if text:
                return text

    raise SkillLoadError(
        f'Skill "{skill.name}" has no prompt; looked in '
        + ", ".join(str(c) for c in candidates)
    )
