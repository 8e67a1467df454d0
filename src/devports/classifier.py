"""Dev/system classification of listening ports."""

from collections.abc import Iterable, Mapping

from .models import Category

DEFAULT_PORT_LABELS: dict[int, str] = {
    1313: "Hugo",
    3000: "React/Next.js",
    3001: "React (alt)",
    3030: "Meteor",
    4200: "Angular",
    5000: "Flask/.NET",
    5173: "Vite",
    8000: "Django/Python",
    8080: "Spring Boot/Tomcat",
    8888: "Jupyter",
}

# Process name fragments of developer tools and runtimes
DEV_PROCESS_HINTS: tuple[str, ...] = (
    "node",
    "npm",
    "pnpm",
    "yarn",
    "vite",
    "webpack",
    "ng",
    "next",
    "nuxt",
    "python",
    "gunicorn",
    "uvicorn",
    "django",
    "flask",
    "dotnet",
    "java",
    "php",
    "rails",
)

# Command line fragments of dev-tool invocations
DEV_COMMAND_HINTS: tuple[str, ...] = (
    "webpack",
    "vite",
    "nodemon",
    "ts-node",
    "next",
    "nuxt",
    "parcel",
    "rollup",
    "esbuild",
    "dev-server",
    "hot-reload",
    "live-server",
    "npm run dev",
    "yarn dev",
    "pnpm dev",
    "django runserver",
    "manage.py runserver",
    "flask run",
    "uvicorn --reload",
    "rails server",
    "dotnet run",
    "dotnet watch",
)


def merge_port_labels(overrides: Mapping[int, str] | None = None) -> dict[int, str]:
    """Merge user label overrides over the built-in table.

    Args:
        overrides: User-configured port labels

    Returns:
        Combined mapping, user entries taking precedence
    """
    labels = dict(DEFAULT_PORT_LABELS)
    labels.update(overrides or {})
    return labels


def classify(
    port: int,
    process_name: str,
    command_line: str,
    labels: Mapping[int, str] | None = None,
    workspace_roots: Iterable[str] = (),
    strict_workspace: bool = False,
) -> Category:
    """Classify a listening port as dev or system.

    Decision order:
    1. Labeled port (built-in or user override) → dev
    2. Dev process name AND (dev command hint OR workspace path in command) → dev
    3. Strict workspace mode without a workspace match → system
    4. Otherwise → system

    A recognized runtime alone is not enough: "node" serving production
    traffic stays a system port without a dev hint or workspace tie-in.

    Args:
        port: Local port number
        process_name: Owning process name
        command_line: Owning process command line
        labels: Port labels, see merge_port_labels(). Defaults to built-ins.
        workspace_roots: Open workspace root paths
        strict_workspace: Require a workspace tie-in

    Returns:
        Category.DEV or Category.SYSTEM
    """
    if labels is None:
        labels = DEFAULT_PORT_LABELS
    if labels.get(port):
        return Category.DEV

    process_lower = (process_name or "").lower()
    command_lower = (command_line or "").lower()

    is_dev_process = any(hint in process_lower for hint in DEV_PROCESS_HINTS)
    has_dev_command = any(hint in command_lower for hint in DEV_COMMAND_HINTS)
    in_workspace = any(
        root and root.lower() in command_lower for root in workspace_roots
    )

    if is_dev_process and (has_dev_command or in_workspace):
        return Category.DEV

    if strict_workspace and not in_workspace:
        return Category.SYSTEM

    return Category.SYSTEM
