"""Monolaunch scaffolder -- provisions the project tree.

Given a resolved ``RunConfig``, the orchestrator runs an ordered list of
provisioning steps: external generators (``create-next-app``,
``create-expo-app``, the Supabase and UI component CLIs) plus file writes
rendered from the Jinja2 templates shipped in ``templates/``.

Quick usage::

    from monolaunch.config import Architecture, RunConfig, TemplateType
    from monolaunch.scaffolder import ProjectGenerator

    config = RunConfig(
        project_name="my-app",
        architecture=Architecture.SINGLE_APP,
        template_type=TemplateType.BARE,
    )
    results = await ProjectGenerator(config).generate()
"""

from monolaunch.scaffolder.orchestrator import ProjectGenerator
from monolaunch.scaffolder.steps import (
    CommandFailedError,
    MigrationNotFoundError,
    ProvisioningError,
    ProvisioningStep,
    StepError,
    StepResult,
)
from monolaunch.scaffolder.templates import TemplateRenderer

__all__ = [
    "CommandFailedError",
    "MigrationNotFoundError",
    "ProjectGenerator",
    "ProvisioningError",
    "ProvisioningStep",
    "StepError",
    "StepResult",
    "TemplateRenderer",
]
