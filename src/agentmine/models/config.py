"""Configuration models for agentmine.

AgentmineConfig mirrors ``.agentmine/config.yaml``.  Agents and skills are
keyed by name in the file; the key is copied onto each definition's ``name``
field during validation so definitions can travel on their own.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_CLIENT = "claude-code"
DEFAULT_MODEL = "claude-sonnet"
DEFAULT_UI_PORT = 3333


class SkillSource(str, enum.Enum):
    """Where a skill's prompt comes from."""

    BUILTIN = "builtin"
    LOCAL = "local"
    REMOTE = "remote"

    def __str__(self) -> str:
        return self.value


class AgentDefinition(BaseModel):
    """An AI worker that can be run with a prompt."""

    model_config = {"extra": "ignore"}

    name: str = ""
    description: str = ""
    client: str = DEFAULT_CLIENT
    model: str = DEFAULT_MODEL
    tools: list[str] = []
    skills: list[str] = []
    system_prompt: Optional[str] = None


class SkillDefinition(BaseModel):
    """A named, runnable prompt."""

    model_config = {"extra": "ignore"}

    name: str = ""
    description: str = ""
    source: SkillSource = SkillSource.LOCAL
    path: Optional[str] = None
    url: Optional[str] = None
    prompt: Optional[str] = None


class ProjectSection(BaseModel):
    name: str = ""
    description: str = ""


class GitSection(BaseModel):
    base_branch: str = "main"
    branch_prefix: str = "task-"
    auto_pr: bool = True


class UISection(BaseModel):
    port: int = Field(default=DEFAULT_UI_PORT, ge=1, le=65535)


class AgentmineConfig(BaseModel):
    """Project configuration stored in ``.agentmine/config.yaml``."""

    model_config = {"extra": "ignore"}

    project: ProjectSection = ProjectSection()
    agents: dict[str, AgentDefinition] = {}
    skills: dict[str, SkillDefinition] = {}
    git: GitSection = GitSection()
    ui: UISection = UISection()

    @field_validator("agents", "skills", mode="before")
    @classmethod
    def _name_entries(cls, v: object) -> object:
        """Copy mapping keys onto entries; ``None`` entries become empty definitions."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        named: dict[str, object] = {}
        for key, entry in v.items():
            if entry is None:
                entry = {}
            if isinstance(entry, dict):
                entry = {**entry, "name": str(key)}
            named[str(key)] = entry
        return named

    def to_yaml_dict(self) -> dict:
        """Plain dict for YAML output, without the redundant ``name`` keys."""
        data = self.model_dump(mode="json", exclude_none=True)
        for section in ("agents", "skills"):
            for entry in data[section].values():
                entry.pop("name", None)
        return data


def default_config(project_name: str) -> AgentmineConfig:
    """Starter configuration written by ``agentmine init``."""
    return AgentmineConfig(
        project=ProjectSection(name=project_name),
        agents={
            "coder": {
                "description": "Implements code changes",
                "client": DEFAULT_CLIENT,
                "model": DEFAULT_MODEL,
                "tools": ["Read", "Write", "Edit", "Bash", "Grep", "Glob"],
                "skills": ["commit", "test", "debug"],
            },
            "reviewer": {
                "description": "Reviews code changes",
                "client": DEFAULT_CLIENT,
                "model": "claude-haiku",
                "tools": ["Read", "Grep", "Glob"],
                "skills": ["review"],
            },
        },
        skills={
            "commit": {"source": "builtin"},
            "test": {"source": "builtin"},
            "review": {"source": "builtin"},
            "debug": {"source": "builtin"},
        },
    )
