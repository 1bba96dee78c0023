"""Provisioning orchestrator.

Turns a resolved ``RunConfig`` into an ordered list of ``ProvisioningStep``
objects, one list per architecture, and runs them strictly in order:

* **single app** -- ``create-next-app`` at the target path, Supabase wiring,
  optional UI kit and opinionated extras, initial migration and config
  patch, documentation, manifest scripts and a standalone build config;
* **monorepo** -- a pnpm workspace with a shared package, the same web
  steps anchored at ``apps/web``, an Expo Router app at ``apps/mobile``,
  shared-package links, a workspace install, then migration and docs.

Failure policy: a required step that raises stops the run with a
``ProvisioningError`` (files already written stay on disk; re-running with
``--force`` is the recovery path).  A non-required step that raises is
reported as a warning and the run continues.  Every step receives absolute
paths derived from the configuration; the process working directory is
never changed.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path

from monolaunch.config import RunConfig, ToolConfig
from monolaunch.utils import Output, detect_package_manager

from .docs_gen import DocsGenerator, docs_context
from .fallback import MobileUIInstaller
from .manifest import update_scripts
from .mobile_gen import MobileGenerator
from .steps import ProvisioningError, ProvisioningStep, StepResult, ToolRunner
from .supabase_gen import MOBILE, WEB, SupabaseGenerator
from .templates import TemplateRenderer
from .web_gen import WebGenerator
from .workspace_gen import WorkspaceGenerator, shared_package_name


class ProjectGenerator:
    """Builds and runs the step list for one scaffolding run."""

    def __init__(
        self,
        config: RunConfig,
        tools: ToolConfig | None = None,
        output: Output | None = None,
    ) -> None:
        self.config = config
        self.tools = tools or ToolConfig()
        self.output = output or Output(quiet=config.quiet, verbose=config.verbose)
        self.renderer = TemplateRenderer()
        self.runner = ToolRunner(self.tools, self.output)
        self.supabase = SupabaseGenerator(self.renderer, self.runner)
        self.web = WebGenerator(self.renderer, self.runner, self.output)
        self.mobile = MobileGenerator(self.renderer, self.runner, self.output)
        self.mobile_ui = MobileUIInstaller(self.renderer, self.runner, self.output, self.mobile)
        self.workspace = WorkspaceGenerator(self.renderer)
        self.docs = DocsGenerator(self.renderer)

    # -- Public API --------------------------------------------------------

    def build_steps(self) -> list[ProvisioningStep]:
        """Ordered steps for the configured architecture."""
        if self.config.is_monorepo:
            return self.monorepo_steps()
        return self.single_app_steps()

    async def generate(self) -> list[StepResult]:
        """Run every step in order.

        Returns:
            One ``StepResult`` per executed step.

        Raises:
            ProvisioningError: When a required step fails.
        """
        cfg = self.config
        if cfg.is_monorepo:
            self.output.header(f"Creating monorepo: {cfg.project_name}")
        else:
            self.output.header(f"Creating web app: {cfg.project_name}")
            if not self.output.quiet:
                manager = await detect_package_manager(cfg.base_dir)
                self.output.info(f"Detected package manager: [bold]{manager}[/bold]")
        self.output.info(f"Template type: [bold]{cfg.template_type.value}[/bold]")

        results = await self.run_steps(self.build_steps())
        self._print_next_steps()
        return results

    async def run_steps(self, steps: list[ProvisioningStep]) -> list[StepResult]:
        """Execute *steps* in order, applying the required/non-required policy."""
        results: list[StepResult] = []
        for step in steps:
            self.output.step(step.name)
            try:
                await step.action()
            except Exception as exc:
                results.append(
                    StepResult(name=step.name, required=step.required, success=False, error=str(exc))
                )
                if step.required:
                    raise ProvisioningError(step.name, self.config.target_path, exc) from exc
                self.output.warning(f"{step.name} failed, continuing: {exc}")
                continue
            results.append(StepResult(name=step.name, required=step.required, success=True))
        return results

    # ------------------------------------------------------------------
    # Flow A: single web app
    # ------------------------------------------------------------------

    def single_app_steps(self) -> list[ProvisioningStep]:
        cfg = self.config
        root = cfg.target_path
        context = self._docs_context()

        steps = [ProvisioningStep("Create Next.js app", partial(self.web.create_next_app, root))]
        steps += self._web_app_steps(root)
        steps += [
            ProvisioningStep(
                "Create initial Supabase migration", partial(self.supabase.create_migration, root)
            ),
            ProvisioningStep(
                "Patch supabase/config.toml",
                partial(self.supabase.patch_config, root, self.tools.site_url),
                required=False,
            ),
            ProvisioningStep(
                "Write COOLIFY_DEPLOYMENT.md",
                partial(self.docs.write_deployment_guide, root, context),
            ),
            ProvisioningStep("Add package.json scripts", partial(update_scripts, root, WEB)),
            ProvisioningStep("Write README.md", partial(self.docs.write_readme, root, context)),
            ProvisioningStep("Write CLAUDE.md", partial(self.docs.write_ai_context, root, context)),
            ProvisioningStep(
                "Configure standalone build", partial(self.web.write_next_config, root)
            ),
        ]
        return steps

    # ------------------------------------------------------------------
    # Flow B: monorepo
    # ------------------------------------------------------------------

    def monorepo_steps(self) -> list[ProvisioningStep]:
        cfg = self.config
        root = cfg.target_path
        web = cfg.web_app_path
        mobile = cfg.mobile_app_path
        name = cfg.project_name
        context = self._docs_context()

        steps = [
            ProvisioningStep(
                "Create pnpm workspace", partial(self.workspace.write_workspace, root, name)
            ),
            ProvisioningStep(
                "Create shared package", partial(self.workspace.write_shared_package, root, name)
            ),
            ProvisioningStep(
                "Write root tsconfig.json", partial(self.workspace.write_root_tsconfig, root)
            ),
            ProvisioningStep("Create app directories", partial(self.workspace.create_app_dirs, root)),
            ProvisioningStep("Create Next.js app", partial(self.web.create_next_app, web)),
        ]
        steps += self._web_app_steps(web)
        steps += [
            ProvisioningStep("Create Expo app", partial(self.mobile.create_expo_app, mobile)),
            ProvisioningStep("Set up Expo Router", partial(self.mobile.setup_router, mobile, name)),
        ]
        steps += self._mobile_app_steps(mobile)
        steps += [
            ProvisioningStep(
                "Link shared package (web)", partial(self._link_web, web)
            ),
            ProvisioningStep(
                "Link shared package (mobile)", partial(self._link_mobile, mobile)
            ),
            ProvisioningStep(
                "Install workspace dependencies",
                partial(self.runner.run_tool, "package_manager", "install", cwd=root),
            ),
            ProvisioningStep(
                "Create initial Supabase migration",
                partial(self.supabase.create_migration, web),
                required=False,
            ),
            ProvisioningStep(
                "Patch supabase/config.toml",
                partial(self.supabase.patch_config, web, self.tools.site_url),
                required=False,
            ),
            ProvisioningStep(
                "Write COOLIFY_DEPLOYMENT.md",
                partial(self.docs.write_deployment_guide, root, context),
            ),
            ProvisioningStep("Add workspace scripts", partial(update_scripts, root, "root")),
            ProvisioningStep("Add web app scripts", partial(update_scripts, web, WEB)),
            ProvisioningStep("Add mobile app scripts", partial(update_scripts, mobile, MOBILE)),
            ProvisioningStep("Write README.md", partial(self.docs.write_readme, root, context)),
            ProvisioningStep("Write CLAUDE.md", partial(self.docs.write_ai_context, root, context)),
        ]
        return steps

    # ------------------------------------------------------------------
    # Shared step groups
    # ------------------------------------------------------------------

    def _web_app_steps(self, app: Path) -> list[ProvisioningStep]:
        """Supabase wiring and template extras for a Next.js app at *app*."""
        cfg = self.config
        steps = [
            ProvisioningStep("Initialise Supabase", partial(self.supabase.init_project, app)),
            ProvisioningStep(
                "Install Supabase client libraries", partial(self.web.install_backend_deps, app)
            ),
        ]
        if cfg.is_opinionated:
            steps += [
                ProvisioningStep(
                    "Set up ShadCN UI",
                    partial(self.web.setup_shadcn, app, cfg.all_ui_components),
                    required=False,
                ),
                ProvisioningStep("Install Zod", partial(self.web.install_schema_validation, app)),
            ]
        steps += [
            ProvisioningStep("Write .env.local", partial(self.supabase.write_env_file, app, WEB)),
            ProvisioningStep(
                "Write Supabase clients", partial(self.supabase.write_clients, app, WEB)
            ),
            ProvisioningStep("Write middleware.ts", partial(self.supabase.write_middleware, app)),
            ProvisioningStep("Write database types", partial(self.supabase.write_types, app)),
        ]
        if cfg.is_opinionated:
            steps += self._opinionated_extras(app, WEB)
        return steps

    def _mobile_app_steps(self, app: Path) -> list[ProvisioningStep]:
        """Supabase wiring and template extras for the Expo app at *app*."""
        cfg = self.config
        steps = [
            ProvisioningStep(
                "Install mobile Supabase libraries", partial(self.mobile.install_supabase_deps, app)
            ),
        ]
        if cfg.is_opinionated:
            steps += [
                ProvisioningStep(
                    "Install mobile UI components",
                    partial(self.mobile_ui.install, app, cfg.project_name),
                ),
                ProvisioningStep(
                    "Install Zod (mobile)",
                    partial(self.web.install_schema_validation, app, MOBILE),
                ),
            ]
        steps += [
            ProvisioningStep(
                "Initialise Supabase (mobile)", partial(self.supabase.init_project, app)
            ),
            ProvisioningStep("Write mobile .env", partial(self.supabase.write_env_file, app, MOBILE)),
            ProvisioningStep(
                "Write mobile Supabase client", partial(self.supabase.write_clients, app, MOBILE)
            ),
            ProvisioningStep("Write mobile database types", partial(self.supabase.write_types, app)),
        ]
        if cfg.is_opinionated:
            steps += self._opinionated_extras(app, MOBILE)
        return steps

    def _opinionated_extras(self, app: Path, kind: str) -> list[ProvisioningStep]:
        suffix = " (mobile)" if kind == MOBILE else ""
        return [
            ProvisioningStep(
                f"Set up Legend State store{suffix}",
                partial(self.web.setup_state_store, app, kind),
                required=False,
            ),
            ProvisioningStep(
                f"Set up Prettier{suffix}",
                partial(self.web.setup_lint_format, app, kind),
                required=False,
            ),
        ]

    # ------------------------------------------------------------------
    # Composite actions
    # ------------------------------------------------------------------

    async def _link_web(self, app: Path) -> None:
        await self.workspace.link_shared_package(app, WEB, self.config.project_name)
        await self.web.write_next_config(
            app, transpile_packages=[shared_package_name(self.config.project_name)]
        )

    async def _link_mobile(self, app: Path) -> None:
        await self.workspace.link_shared_package(app, MOBILE, self.config.project_name)
        await self.mobile.write_metro_config(
            app,
            shared_package=shared_package_name(self.config.project_name),
            nativewind=self.config.is_opinionated,
        )

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def _docs_context(self) -> dict:
        cfg = self.config
        return docs_context(cfg.project_name, cfg.is_monorepo, cfg.is_opinionated, self.tools.site_url)

    def _print_next_steps(self) -> None:
        cfg = self.config
        if cfg.is_monorepo:
            lines = [
                "1. Start Supabase locally: [bold]pnpm supabase:start[/bold]",
                "2. Run the web app: [bold]cd apps/web && pnpm dev[/bold]",
                "3. Run the mobile app: [bold]cd apps/mobile && npx expo start[/bold]",
                "4. See COOLIFY_DEPLOYMENT.md for deployment instructions",
            ]
        else:
            lines = [
                "1. Start Supabase locally: [bold]pnpm supabase:start[/bold]",
                "2. Copy the printed keys into [bold].env.local[/bold]",
                "3. Start the development server: [bold]pnpm dev[/bold]",
                "4. See COOLIFY_DEPLOYMENT.md for deployment instructions",
            ]
        self.output.panel(
            f"cd {cfg.project_name}\n" + "\n".join(lines),
            title="Next steps",
            style="bright_green",
        )
