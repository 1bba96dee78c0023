"""Configuration resolution.

Fills in a ``RunConfig`` one field at a time, strictly in the order
project name -> architecture -> template type, taking each value from its
command-line flag, else from an interactive prompt, else failing (quiet mode
never prompts).  Cancelling a prompt aborts the whole resolution.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from monolaunch.config import (
    ARCHITECTURE_CHOICES,
    TEMPLATE_CHOICES,
    Architecture,
    RunConfig,
    TemplateType,
)
from monolaunch.utils import Output

ARCHITECTURE_OPTIONS: dict[str, tuple[str, str]] = {
    Architecture.MONOREPO.value: (
        "Full Stack Monorepo",
        "Next.js web app + React Native Expo mobile app + Supabase backend",
    ),
    Architecture.SINGLE_APP.value: (
        "Web App Only",
        "Next.js web application with Supabase backend integration",
    ),
}

TEMPLATE_OPTIONS: dict[str, tuple[str, str]] = {
    TemplateType.BARE.value: (
        "Bare",
        "Only basic Next.js and React Native apps - no extra libraries or tooling",
    ),
    TemplateType.OPINIONATED.value: (
        "Opinionated",
        "Adds extra libraries: Zod, ShadCN, Legend State, ESLint, Prettier & more",
    ),
}


class ConfigValidationError(Exception):
    """A flag value is invalid or a required value is missing."""


class ResolutionCancelled(Exception):
    """The user dismissed a prompt."""


class Prompter(Protocol):
    """Source of interactive answers."""

    def ask_text(self, message: str, placeholder: str) -> str: ...

    def ask_choice(self, message: str, options: dict[str, tuple[str, str]]) -> str: ...

    def confirm(self, message: str, default: bool = True) -> bool: ...


class RichPrompter:
    """Prompts on the terminal with ``rich.prompt``.

    Ctrl-C and end-of-input are reported as ``ResolutionCancelled``.
    """

    def __init__(self, output: Output) -> None:
        self.output = output

    def ask_text(self, message: str, placeholder: str) -> str:
        try:
            return Prompt.ask(f"{message} [dim](e.g. {placeholder})[/dim]", console=self.output.out)
        except (KeyboardInterrupt, EOFError):
            raise ResolutionCancelled() from None

    def ask_choice(self, message: str, options: dict[str, tuple[str, str]]) -> str:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Option", style="cyan", no_wrap=True)
        table.add_column("Name")
        table.add_column("Description", style="dim")
        for value, (label, hint) in options.items():
            table.add_row(value, label, hint)
        self.output.out.print(table)
        try:
            return Prompt.ask(
                message,
                choices=list(options),
                default=next(iter(options)),
                console=self.output.out,
            )
        except (KeyboardInterrupt, EOFError):
            raise ResolutionCancelled() from None

    def confirm(self, message: str, default: bool = True) -> bool:
        try:
            return Confirm.ask(message, default=default, console=self.output.out)
        except (KeyboardInterrupt, EOFError):
            raise ResolutionCancelled() from None


class ConfigResolver:
    """Turns parsed flags into a frozen ``RunConfig``."""

    def __init__(self, output: Output, prompter: Prompter | None = None) -> None:
        self.output = output
        self.prompter = prompter or RichPrompter(output)

    def resolve(
        self,
        project_name: str | None,
        architecture: str | None,
        template: str | None,
        *,
        force: bool = False,
        dry_run: bool = False,
        base_dir: Path | None = None,
    ) -> RunConfig:
        """Resolve every field, prompting where allowed.

        Raises:
            ConfigValidationError: Invalid flag value, empty name, or a value
                missing in quiet mode.
            ResolutionCancelled: A prompt was dismissed.
        """
        name = self.resolve_project_name(project_name)
        arch = self.resolve_architecture(architecture)
        template_type = self.resolve_template(template)
        all_components = self.resolve_all_ui_components(arch, template_type)

        return RunConfig(
            project_name=name,
            architecture=arch,
            template_type=template_type,
            quiet=self.output.quiet,
            verbose=self.output.verbose,
            force=force,
            dry_run=dry_run,
            all_ui_components=all_components,
            base_dir=base_dir or Path.cwd(),
        )

    # ------------------------------------------------------------------
    # Individual fields
    # ------------------------------------------------------------------

    def resolve_project_name(self, value: str | None) -> str:
        if value is None:
            if self.output.quiet:
                raise ConfigValidationError("app-name is required in quiet mode")
            self.output.info("Let's start by setting up your project name.")
            self.output.info(
                "This will be used as the folder name and package name for your project."
            )
            value = self.prompter.ask_text("What is your app name?", "my-awesome-app")

        name = value.strip()
        if not name:
            raise ConfigValidationError("Project name must not be empty.")
        self.output.info(f"[green]✓[/green] Project name set to: [bold]{escape(name)}[/bold]\n")
        return name

    def resolve_architecture(self, value: str | None) -> Architecture:
        if value is None:
            if self.output.quiet:
                raise ConfigValidationError(
                    f"--architecture is required in quiet mode ({'|'.join(ARCHITECTURE_CHOICES)})"
                )
            self.output.info("Next, let's decide what to build.")
            value = self.prompter.ask_choice("What would you like to create?", ARCHITECTURE_OPTIONS)

        if value not in ARCHITECTURE_CHOICES:
            raise ConfigValidationError(
                f"Invalid architecture type: {value}. Must be {_either(ARCHITECTURE_CHOICES)}."
            )
        self.output.info(f"[green]✓[/green] Architecture selected: [bold]{value}[/bold]\n")
        return Architecture(value)

    def resolve_template(self, value: str | None) -> TemplateType:
        if value is None:
            if self.output.quiet:
                raise ConfigValidationError(
                    f"--template is required in quiet mode ({'|'.join(TEMPLATE_CHOICES)})"
                )
            self.output.info("Finally, let's choose your template configuration.")
            value = self.prompter.ask_choice("Pick a template type.", TEMPLATE_OPTIONS)

        if value not in TEMPLATE_CHOICES:
            raise ConfigValidationError(
                f"Invalid template type: {value}. Must be {_either(TEMPLATE_CHOICES)}."
            )
        self.output.info(f"[green]✓[/green] Template type set to: [bold]{value}[/bold]\n")
        return TemplateType(value)

    def resolve_all_ui_components(
        self, architecture: Architecture, template_type: TemplateType
    ) -> bool:
        """Ask whether to install every web UI component.

        Only a single opinionated web app asks; quiet mode takes the default.
        """
        if architecture is not Architecture.SINGLE_APP or template_type is not TemplateType.OPINIONATED:
            return True
        if self.output.quiet:
            return True
        return self.prompter.confirm("Install all ShadCN UI components?", default=True)


def _either(choices: tuple[str, ...]) -> str:
    return " or ".join(f"'{c}'" for c in choices)
