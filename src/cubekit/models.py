"""Data models shared by the extractor, the patch engine and the CLI."""

from enum import StrEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BuildConfig(BaseModel):
    """Configuration recovered from a CubeMX-generated Makefile.

    `includes` and `defines` never contain a repeated entry; every other list
    keeps each occurrence in file order.
    """

    model_config = ConfigDict(frozen=True)

    target: Optional[str] = None
    build_dir: Optional[str] = None
    c_sources: list[str] = Field(default_factory=list)
    asm_sources: list[str] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)
    defines: list[str] = Field(default_factory=list)
    cflags: list[str] = Field(default_factory=list)
    asflags: list[str] = Field(default_factory=list)
    ldflags: list[str] = Field(default_factory=list)
    libs: list[str] = Field(default_factory=list)
    ldscript: Optional[str] = None

    @property
    def sources(self) -> list[str]:
        return [*self.c_sources, *self.asm_sources]


class AppendPatch(BaseModel):
    """Insert `insert` below every line containing `after`, unless `marker` is present."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["append"] = "append"
    file: str
    after: str
    insert: str
    marker: str


class ReplacePatch(BaseModel):
    """Replace every literal `find` with `insert`, unless `insert` is present."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["replace"] = "replace"
    file: str
    find: str
    insert: str


class RegexReplacePatch(BaseModel):
    """Replace every match of `pattern` with `insert` (group references allowed)."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["regex_replace"] = "regex_replace"
    file: str
    pattern: str
    insert: str


PatchSpec = Annotated[
    Union[AppendPatch, ReplacePatch, RegexReplacePatch],
    Field(discriminator="mode"),
]


class PatchOutcome(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"


class ProjectConfig(BaseModel):
    """Declarative project configuration: directories to create and patches to apply."""

    directories: list[str] = Field(default_factory=list)
    patches: list[PatchSpec] = Field(default_factory=list)


class ProjectContext(BaseModel):
    """Template context for the user-code scaffolding files."""

    author: str
    date: str
    year: str


class EideContext(BaseModel):
    """Template context for the EIDE project descriptor."""

    project_name: str
    ld_file_path: str
    src_dirs: list[str]
    include_list: list[str]
    define_list: list[str]
    src_files: list[str]
