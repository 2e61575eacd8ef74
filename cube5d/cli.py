"""
cube5d/cli.py - Command Line Interface

    cube5d templates
    cube5d run TEMPLATE [--config FILE] [--seed S] [--csv FILE] [--receipts FILE] [-o rich|json]
    cube5d stability TEMPLATE [--steps N] [-o rich|json]
    cube5d ensemble TEMPLATE [-n N] [--scale S] [--workers W] [-o rich|json]

Exit codes: 0 ok, 1 pipeline error, 2 bad usage or config.
"""

import json
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .constants import GateDecision
from .ensemble import run_ensemble
from .errors import PipelineError
from .export import output_to_json, trajectory_to_csv, write_receipts
from .pipeline import PipelineOrchestrator
from .stability import classify, largest_lyapunov
from .templates import TEMPLATES, Template, get_template
from .types_config import CONFIG_DEFAULT, ConfigError, PipelineConfig, load

console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def _load_config(path: Optional[str], output: str) -> PipelineConfig:
    if path is None:
        return CONFIG_DEFAULT
    try:
        return load(path)
    except ConfigError as e:
        _fail(f"Invalid config: {e}", output, 2)


def _template(name: str, output: str) -> Template:
    try:
        return get_template(name)
    except KeyError as e:
        _fail(str(e.args[0]), output, 2)


def _fail(message: str, output: str, code: int) -> None:
    if output == "json":
        click.echo(json.dumps({"error": message}))
    else:
        print_error(message)
    sys.exit(code)


@click.group()
def cube5d():
    """Deterministic 5D trajectory pipeline."""
    pass


# --- templates ---

@cube5d.command("templates")
def templates_cmd() -> None:
    """List the built-in system templates."""
    table = Table(title="Templates")
    table.add_column("name", style="cyan")
    table.add_column("coupling")
    table.add_column("description")
    for name, template in TEMPLATES.items():
        table.add_row(name, template.coupling.coupling_type.value, template.description)
    console.print(table)


# --- run ---

@cube5d.command("run")
@click.argument("template_name")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML/JSON config")
@click.option("--seed", "-s", default=None, help="Seed (defaults to the config seed)")
@click.option("--identifier", "-i", default="", help="Owner identifier")
@click.option("--csv", "csv_path", type=click.Path(), help="Write the trajectory as CSV")
@click.option("--receipts", "receipts_path", type=click.Path(), help="Append receipts as JSONL")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def run_cmd(template_name: str, config_path: Optional[str], seed: Optional[str], identifier: str,
            csv_path: Optional[str], receipts_path: Optional[str], output: str) -> None:
    """Run the pipeline once on a template."""
    config = _load_config(config_path, output)
    template = _template(template_name, output)
    inp = template.to_input(identifier=identifier, seed=seed or config.seed)

    try:
        out = PipelineOrchestrator(config).run(inp)
    except PipelineError as e:
        _fail(f"{e.kind.value}: {e}", output, 1)

    if csv_path:
        h = config.step_size if inp.step_size is None else inp.step_size
        with open(csv_path, "w", newline="", encoding="utf-8") as fh:
            trajectory_to_csv(out.trajectory, h, fh)
    if receipts_path:
        with open(receipts_path, "a", encoding="utf-8") as fh:
            write_receipts(out, fh)

    if output == "json":
        click.echo(output_to_json(out))
        return

    color = "green" if out.decision is GateDecision.FIRE else "yellow"
    content = (
        f"samples:   {len(out.trajectory)}\n"
        f"psi:       {out.signature.psi:.6f}\n"
        f"rho:       {out.signature.rho:.6f}\n"
        f"omega:     {out.signature.omega:.6f}\n"
        f"route:     {out.route.route_id} (score {out.route.score:.4f})\n"
        f"delta_pi:  {out.proof.delta_pi:.6g}\n"
        f"phi:       {out.proof.phi:.6f}\n"
        f"delta_v:   {out.proof.delta_v:.6g}\n"
        f"decision:  [{color}]{out.decision.value}[/{color}]\n"
        f"digest:    {out.knowledge.commit.digest}"
    )
    console.print(Panel(content, title=f"[bold]{template.name}[/bold]", border_style=color))
    if out.committed:
        print_success(f"Committed {out.knowledge.identifier}")


# --- stability ---

@cube5d.command("stability")
@click.argument("template_name")
@click.option("--steps", "-n", default=1000, show_default=True, help="Lyapunov steps")
@click.option("--step-size", "-h", "step_size", default=0.01, show_default=True)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def stability_cmd(template_name: str, steps: int, step_size: float, output: str) -> None:
    """Linear stability and Lyapunov estimate at the template's initial state."""
    template = _template(template_name, output)
    field = template.vector_field()
    try:
        report = classify(field, template.initial_state)
        lyapunov = largest_lyapunov(field, template.initial_state, step_size, steps)
    except (PipelineError, ValueError) as e:
        _fail(str(e), output, 1)

    if output == "json":
        click.echo(json.dumps({**report.to_dict(), "lyapunov": lyapunov}, indent=2))
        return

    table = Table(title=f"Stability: {template.name}")
    table.add_column("re", justify="right")
    table.add_column("im", justify="right")
    for z in report.eigenvalues:
        table.add_row(f"{z.real:.6f}", f"{z.imag:.6f}")
    console.print(table)
    console.print(f"kind: [bold]{report.kind}[/bold]  lyapunov: {lyapunov:.6f}")


# --- ensemble ---

@cube5d.command("ensemble")
@click.argument("template_name")
@click.option("--size", "-n", default=16, show_default=True, help="Ensemble members")
@click.option("--scale", default=0.01, show_default=True, help="Perturbation std dev")
@click.option("--workers", "-w", default=1, show_default=True, help="Thread pool size")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True))
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def ensemble_cmd(template_name: str, size: int, scale: float, workers: int,
                 config_path: Optional[str], output: str) -> None:
    """Run perturbed copies of a template and report the FIRE rate."""
    config = _load_config(config_path, output)
    template = _template(template_name, output)
    try:
        result = run_ensemble(PipelineOrchestrator(config), template.to_input(seed=config.seed),
                              size, scale=scale, max_workers=workers)
    except (PipelineError, ValueError) as e:
        _fail(str(e), output, 1)

    if output == "json":
        click.echo(json.dumps({
            "n_members": size,
            "fire_count": result.fire_count,
            "fire_rate": result.fire_rate,
            "digest_root": result.digest_root,
        }, indent=2))
        return

    table = Table(title=f"Ensemble: {template.name}")
    table.add_column("member", style="cyan")
    table.add_column("decision")
    table.add_column("delta_v", justify="right")
    for o in result.outputs:
        table.add_row(o.knowledge.owner_id, o.decision.value, f"{o.proof.delta_v:.6g}")
    console.print(table)
    console.print(f"fire rate: {result.fire_rate:.0%} ({result.fire_count}/{size})")


def main() -> None:
    cube5d()


if __name__ == "__main__":
    main()
