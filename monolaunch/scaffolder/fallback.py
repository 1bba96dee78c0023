"""Two-tier installation of the mobile UI component kit.

1. **Primary** -- one-shot ``react-native-reusables add --all`` through the
   component CLI.
2. **Fallback** -- when the primary fails for any reason: install a minimal
   NativeWind dependency set and write hand-made ``Text``/``Button``
   components plus the Tailwind, CSS and Babel configuration they need.

A primary failure is a warning and always triggers the fallback.  A fallback
failure propagates, and the orchestrator treats it as a required failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from monolaunch.utils import Output

from .mobile_gen import MobileGenerator
from .steps import StepError, ToolRunner
from .templates import TemplateRenderer


class UIInstallStrategy(str, Enum):
    """Which tier produced the mobile UI kit."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass
class UIInstallResult:
    """Outcome of :meth:`MobileUIInstaller.install`."""

    strategy: UIInstallStrategy
    primary_error: str | None = None
    files_written: list[Path] = field(default_factory=list)


FALLBACK_PACKAGES: list[str] = [
    "nativewind",
    "tailwindcss",
    "tailwindcss-animate",
    "class-variance-authority",
    "clsx",
    "tailwind-merge",
    "react-native-svg",
    "lucide-react-native",
    "@rn-primitives/portal",
]


class MobileUIInstaller:
    """Installs the React Native Reusables kit, falling back to local stubs."""

    def __init__(
        self,
        renderer: TemplateRenderer,
        runner: ToolRunner,
        output: Output,
        mobile: MobileGenerator,
    ) -> None:
        self.renderer = renderer
        self.runner = runner
        self.output = output
        self.mobile = mobile

    async def install(self, app_path: Path, project_name: str) -> UIInstallResult:
        """Run the primary strategy; on failure, run the fallback."""
        try:
            await self.install_primary(app_path)
        except StepError as exc:
            self.output.warning(
                f"Component CLI failed ({exc}); installing a minimal NativeWind kit instead"
            )
            files = await self.install_fallback(app_path, project_name)
            return UIInstallResult(
                strategy=UIInstallStrategy.FALLBACK,
                primary_error=str(exc),
                files_written=files,
            )
        return UIInstallResult(strategy=UIInstallStrategy.PRIMARY)

    async def install_primary(self, app_path: Path) -> None:
        await self.runner.run_tool("mobile_ui", "add", "--all", "--yes", cwd=app_path)

    async def install_fallback(self, app_path: Path, project_name: str) -> list[Path]:
        """Install the minimal dependency set and write the stub components."""
        await self.runner.expo_install(FALLBACK_PACKAGES, cwd=app_path)
        written = await self.renderer.render_tree("mobile/ui", app_path)
        written.append(await self.mobile.write_babel_config(app_path, nativewind=True))
        written += await self.mobile.write_router_files(app_path, project_name, nativewind=True)
        return written
