"""Build the EIDE project descriptor context from an extracted BuildConfig."""

from pathlib import PurePosixPath

from .models import BuildConfig, EideContext


def source_dirs(config: BuildConfig) -> list[str]:
    """Sorted, unique parent directories of every C and assembly source."""
    dirs = {str(PurePosixPath(source).parent) for source in config.sources}
    return sorted(dirs)


def eide_context(
    config: BuildConfig, project_name: str | None = None, fallback_name: str = ""
) -> EideContext:
    """Create the template context for `.eide/eide.yml`.

    Args:
        config: Configuration extracted from the project Makefile.
        project_name: Explicit project name, overrides `config.target`.
        fallback_name: Used when neither of the above is set.
    """
    return EideContext(
        project_name=project_name or config.target or fallback_name,
        ld_file_path=config.ldscript or "",
        src_dirs=source_dirs(config),
        include_list=list(config.includes),
        define_list=list(config.defines),
        src_files=config.sources,
    )
