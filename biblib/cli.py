"""
biblib CLI – preview templates and citekeys from the terminal.

Commands:
  biblib render <template>        – render a template against data or sample data
  biblib citekey <data.json>      – generate a citation key
  biblib normalize <text>         – repair a front matter array literal
  biblib explain <template>       – show how a field lands in YAML front matter
  biblib note <data.json>         – compose a full literature note
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

app = typer.Typer(
    name="biblib",
    help="Template and citekey engine for literature notes.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


# ---------------------------------------------------------------------------
# render
# ---------------------------------------------------------------------------

@app.command()
def render(
    template: str = typer.Argument(..., help="Template text, e.g. '{{title|upper}}'."),
    data: Optional[Path] = typer.Option(
        None, "--data", "-d", help="CSL-JSON file used as variables (sample data if omitted)."
    ),
    citekey_safe: bool = typer.Option(
        False, "--citekey", help="Sanitize the output as a Pandoc citekey."
    ),
    yaml_array: bool = typer.Option(
        False, "--yaml-array", help="Repair bracketed output into a JSON array."
    ),
) -> None:
    """Render a template and print the result."""
    from biblib.template.engine import RenderOptions, render as render_template

    variables = _variables(data, mode="frontmatter" if yaml_array else "normal")
    result = render_template(
        template,
        variables,
        RenderOptions(sanitize_for_citekey=citekey_safe, yaml_array=yaml_array),
    )
    console.print(result, markup=False, highlight=False)


# ---------------------------------------------------------------------------
# citekey
# ---------------------------------------------------------------------------

@app.command()
def citekey(
    data: Path = typer.Argument(..., help="CSL-JSON file with one citation."),
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help="Citekey template (engine or [bracket] syntax)."
    ),
    min_length: Optional[int] = typer.Option(
        None, "--min-length", help="Minimum key length before a random suffix is added."
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to biblib.yaml."),
) -> None:
    """Generate a citation key for a CSL-JSON record."""
    from biblib.citations.citekey import CitekeyOptions, generate

    options = _load_cfg(config).citekey if config else CitekeyOptions()
    if template is not None:
        options.citekey_template = template
    if min_length is not None:
        options.min_citekey_length = min_length

    key = generate(_read_citation(data), options)
    if key.startswith("error_"):
        err_console.print(f"[red]Citekey generation failed: {key}[/red]")
        raise typer.Exit(1)
    console.print(key, markup=False, highlight=False)


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------

@app.command()
def normalize(
    text: str = typer.Argument(..., help="Array literal, e.g. '[\"a\",\"b\",]'."),
) -> None:
    """Repair an almost-valid JSON array literal."""
    from biblib.frontmatter.yaml_array import normalize_yaml_array

    console.print(normalize_yaml_array(text), markup=False, highlight=False)


# ---------------------------------------------------------------------------
# explain
# ---------------------------------------------------------------------------

@app.command()
def explain(
    template: str = typer.Argument(..., help="Custom front matter field template."),
    data: Optional[Path] = typer.Option(None, "--data", "-d", help="CSL-JSON file."),
) -> None:
    """Show how a custom field template is stored in YAML front matter."""
    from biblib.frontmatter.yaml_array import analyze_yaml_output, is_array_template
    from biblib.template.engine import RenderOptions, render as render_template

    variables = _variables(data, mode="frontmatter")
    rendered = render_template(
        template, variables, RenderOptions(yaml_array=is_array_template(template))
    )
    analysis = analyze_yaml_output(template, rendered)

    console.print(Panel(Text(rendered or "(empty)"), title="Rendered"))
    console.print(Syntax(analysis.yaml_representation, "yaml"))
    console.print(f"[dim]{analysis.explanation}[/dim]")


# ---------------------------------------------------------------------------
# note
# ---------------------------------------------------------------------------

@app.command()
def note(
    data: Path = typer.Argument(..., help="CSL-JSON file with one citation."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to biblib.yaml."),
    attachment: list[str] = typer.Option([], "--attachment", "-a", help="Attachment path."),
    link: list[str] = typer.Option([], "--link", "-l", help="Related note path."),
) -> None:
    """Compose a literature note and print it."""
    from biblib.config import BiblibConfig
    from biblib.notes.composer import compose_note

    cfg = _load_cfg(config) if config else BiblibConfig()
    draft = compose_note(
        _read_citation(data),
        cfg,
        attachment_paths=attachment,
        related_note_paths=link,
    )
    console.print(Text(draft.filename, style="bold"))
    console.print(Syntax(draft.content, "markdown"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_citation(path: Path) -> dict:
    if not path.exists():
        err_console.print(f"[red]Data file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        err_console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    if isinstance(raw, list) and len(raw) == 1:
        raw = raw[0]
    if not isinstance(raw, dict):
        err_console.print("[red]Expected a single CSL-JSON object.[/red]")
        raise typer.Exit(1)
    return raw


def _variables(data: Optional[Path], mode: str) -> dict:
    if data is None:
        from biblib.notes.sample import sample_data
        return sample_data(mode)  # type: ignore[arg-type]

    from biblib.notes.variables import build_variables
    return build_variables(_read_citation(data))


def _load_cfg(config_path: Path):
    from biblib.config import load_config
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        err_console.print(f"[red]Config error: {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
