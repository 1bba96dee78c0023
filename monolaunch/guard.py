"""Target directory collision check."""

from __future__ import annotations

from pathlib import Path

from monolaunch.config import RunConfig
from monolaunch.utils import Output


class DirectoryExistsError(Exception):
    """The target directory exists and ``--force`` was not given."""

    def __init__(self, project_name: str, path: Path) -> None:
        self.project_name = project_name
        self.path = path
        super().__init__(f"Directory '{project_name}' already exists. Use --force to overwrite.")


def check_target_directory(config: RunConfig, output: Output) -> Path:
    """Return the target path if provisioning may write into it.

    An existing directory is only accepted with ``force``; its contents are
    left as they are and the external generators decide how to overwrite.

    Raises:
        DirectoryExistsError: The directory exists and ``force`` is off.
    """
    target = config.target_path
    if not target.exists():
        return target
    if not config.force:
        raise DirectoryExistsError(config.project_name, target)
    if config.verbose and not config.quiet:
        output.warning(
            f"Directory '{config.project_name}' exists, but --force flag provided. Will overwrite."
        )
    return target
