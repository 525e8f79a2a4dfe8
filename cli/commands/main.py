"""Main CLI interface using Typer."""

import typer
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from blocktrans.core.pipeline import TranslationPipeline
from blocktrans.core.exceptions import BlockTransError
from blocktrans.storage.credentials import ENV_VARS
from blocktrans.utils.config_loader import load_config
from blocktrans.utils.logger import setup_logger

app = typer.Typer(
    name="blocktrans",
    help="blocktrans: block-structure-preserving translation with LLMs",
    add_completion=False
)

keys_app = typer.Typer(help="Manage provider API keys")
app.add_typer(keys_app, name="keys")

console = Console()

USER_CONFIG_PATH = Path.home() / ".blocktrans" / "config.yaml"

_state = {"config_path": None, "debug": False, "pipeline": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable debug logging"),
):
    """Translate block documents and review the results."""
    _state["config_path"] = config
    _state["debug"] = debug
    _state["pipeline"] = None


def _config_path() -> Optional[Path]:
    if _state["config_path"]:
        return _state["config_path"]
    if USER_CONFIG_PATH.exists():
        return USER_CONFIG_PATH
    return None


def _get_pipeline() -> TranslationPipeline:
    if _state["pipeline"] is None:
        path = _config_path()
        config = load_config(str(path)) if path else load_config()
        logging_section = config.get("logging", {})
        setup_logger(
            level="DEBUG" if _state["debug"] else logging_section.get("level", "INFO"),
            log_file=logging_section.get("file")
        )
        save_path = str(_state["config_path"] or USER_CONFIG_PATH)
        _state["pipeline"] = TranslationPipeline.from_config(config, config_path=save_path)
    return _state["pipeline"]


def _fail(error: BlockTransError):
    console.print(f"[red]Error: {error.message}[/red]")
    if error.suggestion:
        console.print(f"[dim]{error.suggestion}[/dim]")
    raise typer.Exit(1)


def _score_style(score: float) -> str:
    if score >= 70:
        return "green"
    if score >= 40:
        return "yellow"
    return "red"


@app.command()
def translate(
    document_id: str = typer.Argument(..., help="Document id in the document store"),
    target_lang: str = typer.Option(..., "-t", "--target", help="Target language code"),
    provider: Optional[str] = typer.Option(None, "-p", "--provider", help="Provider (openai/claude/deepseek)"),
    evaluate: bool = typer.Option(False, "--evaluate/--no-evaluate", help="Run the back-translation quality loop and store the result as pending"),
    show_changes: bool = typer.Option(False, "--changes", help="Print the change-log"),
):
    """Translate a stored document."""
    pipeline = _get_pipeline()

    try:
        if evaluate:
            result, report = pipeline.translate_with_quality(document_id, target_lang, provider)
        else:
            result = pipeline.translate_post_blocks(document_id, target_lang, provider)
            report = None
    except BlockTransError as e:
        _fail(e)

    console.print(f"[bold blue]Document {document_id}[/bold blue] → {target_lang} ({result.provider})")
    if result.translated_title:
        console.print(f"Title: {result.translated_title}")
    console.print(Panel(result.translated_content, title="Translated content"))

    if show_changes:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Block", style="cyan")
        table.add_column("Attribute", style="dim")
        table.add_column("Original")
        table.add_column("Translated")
        for entry in result.change_log:
            table.add_row(entry.block_type or "-", entry.attribute or "", entry.original, entry.translated)
        console.print(table)

    if report is not None:
        style = _score_style(report.quality_score)
        console.print(f"\nQuality score: [{style}]{report.quality_score:.1f}[/{style}]")
        console.print(Panel(report.back_translated_text, title="Back-translation"))
        if report.back_translation_error:
            console.print(f"[yellow]Back-translation failed: {report.back_translation_error}[/yellow]")
        console.print(f"[dim]Stored as pending. Approve with: blocktrans approve {document_id}[/dim]")


@app.command()
def compare(
    document_id: str = typer.Argument(..., help="Document id in the document store"),
    target_lang: str = typer.Option(..., "-t", "--target", help="Target language code"),
):
    """Run an A/B comparison of two providers on a document."""
    pipeline = _get_pipeline()

    try:
        comparison = pipeline.run_ab_comparison(document_id, target_lang)
    except BlockTransError as e:
        _fail(e)

    table = Table(title=f"A/B comparison {comparison.comparison_id}", show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan")
    table.add_column("Score")
    table.add_column("Result")
    for provider, result in comparison.results.items():
        if result.is_error:
            table.add_row(provider, "-", f"[red]{result.error}[/red]")
        else:
            style = _score_style(result.quality_score)
            table.add_row(
                provider,
                f"[{style}]{result.quality_score:.1f}[/{style}]",
                result.translation.get("translated_content", "")[:80]
            )
    console.print(table)
    console.print(f"[dim]Select with: blocktrans select {comparison.comparison_id} <provider>[/dim]")


@app.command()
def select(
    comparison_id: str = typer.Argument(..., help="Comparison id returned by 'compare'"),
    provider: str = typer.Argument(..., help="Provider whose result to keep"),
):
    """Select one provider's result from an A/B comparison."""
    pipeline = _get_pipeline()

    try:
        pending = pipeline.select_ab_result(comparison_id, provider)
    except BlockTransError as e:
        _fail(e)

    console.print(f"[green]✓ Selected {provider}[/green] (score {pending.quality_score:.1f})")


@app.command()
def approve(
    document_id: str = typer.Argument(..., help="Document id"),
    target_lang: Optional[str] = typer.Option(None, "-t", "--target", help="Only approve a pending translation in this language"),
):
    """Approve the pending translation of a document."""
    pipeline = _get_pipeline()

    try:
        approved = pipeline.approve_translation(document_id, target_lang)
    except BlockTransError as e:
        _fail(e)

    console.print(
        f"[green]✓ Approved {approved.target_language} translation of {document_id}[/green] ({approved.provider})"
    )


@app.command()
def providers():
    """List providers that have an API key."""
    pipeline = _get_pipeline()
    available = pipeline.get_available_providers()

    console.print("\n[bold]Translation providers[/bold]\n")
    for key in ENV_VARS:
        if key in available:
            console.print(f"[green]✓ Available[/green] {key} ({available[key]})")
        else:
            console.print(f"[yellow]✗ Not configured[/yellow] {key}")


@app.command()
def usage():
    """Show quota usage."""
    stats = _get_pipeline().get_usage_stats()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Period", style="cyan")
    table.add_column("Used")
    table.add_column("Limit")
    table.add_row("Today", str(stats.daily_usage), str(stats.daily_limit))
    table.add_row("This month", str(stats.monthly_usage), str(stats.monthly_limit))
    console.print(table)


@app.command("license")
def license_command(
    action: str = typer.Argument("info", help="Action: info, deliver, extend"),
):
    """Show or change the license expiry."""
    gate = _get_pipeline().license_gate

    try:
        if action == "deliver":
            gate.mark_delivery_completed()
            console.print("[green]✓ Delivery completed; expiry countdown started[/green]")
        elif action == "extend":
            gate.extend_expiry()
            console.print("[green]✓ Expiry extended by 30 days[/green]")
        elif action != "info":
            console.print(f"[red]Unknown action: {action}[/red]")
            console.print("Valid actions: info, deliver, extend")
            raise typer.Exit(1)
    except BlockTransError as e:
        _fail(e)

    info = gate.get_expiry_info()
    remaining = info["remaining_days"]
    console.print(f"Remaining days: {remaining if remaining is not None else 'no expiry set'}")
    console.print(f"Extension used: {'yes' if info['extension_used'] else 'no'}")
    console.print(f"Features available: {'yes' if gate.is_feature_available() else 'no'}")


@app.command()
def stop(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Emergency stop: delete all API keys and the expiry state."""
    if not yes:
        typer.confirm("Delete all API keys and stop translation?", abort=True)
    _get_pipeline().emergency_stop()
    console.print("[red]✓ Emergency stop completed[/red]")


@keys_app.command("list")
def keys_list():
    """Show which providers have keys."""
    credentials = _get_pipeline().credentials

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Provider", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Key", style="dim")
    for provider, env_var in ENV_VARS.items():
        masked = credentials.masked_key(provider)
        status = "✓ Set" if masked else "✗ Not set"
        table.add_row(provider, status, masked or f"(set {env_var} or use 'keys set')")
    console.print(table)


@keys_app.command("set")
def keys_set(
    provider: str = typer.Argument(..., help="Provider (openai/claude/deepseek)"),
    key: str = typer.Argument(..., help="API key value"),
):
    """Store an API key in the config file."""
    if provider not in ENV_VARS:
        console.print(f"[red]Unknown provider: {provider}[/red]")
        console.print(f"Known providers: {', '.join(ENV_VARS)}")
        raise typer.Exit(1)

    pipeline = _get_pipeline()
    pipeline.set_api_key(provider, key)
    credentials = pipeline.credentials
    console.print(f"[green]✓ API key saved for {provider}[/green]")
    console.print(f"  Key: {credentials.masked_key(provider)}")


@keys_app.command("delete")
def keys_delete(
    provider: str = typer.Argument(..., help="Provider (openai/claude/deepseek)"),
):
    """Delete a stored API key."""
    if provider not in ENV_VARS:
        console.print(f"[red]Unknown provider: {provider}[/red]")
        raise typer.Exit(1)

    _get_pipeline().credentials.delete_key(provider)
    console.print(f"[green]✓ API key deleted for {provider}[/green]")


def cli():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
