"""CLI entry point for the choreography studio."""

import base64
import logging
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .errors import StudioError
from .models import JobKind, JobState, PollResult, StoryboardSnapshot
from .studio import Studio

app = typer.Typer(
    name="choreo-studio",
    help="Action-sequence storyboarding with AI video generation",
    no_args_is_help=True
)

DEFAULT_STORYBOARD = Path("storyboard.yaml")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"choreo-studio version {__version__}")
        raise typer.Exit()


def _fail(message: str) -> None:
    typer.echo(f"❌ {message}")
    raise typer.Exit(1)


def _load_studio(storyboard: Path) -> tuple[Studio, str]:
    """Create a studio, restoring nodes from an existing storyboard file."""
    studio = Studio()
    project_name = storyboard.stem
    if storyboard.exists():
        try:
            snapshot = StoryboardSnapshot.from_yaml(storyboard)
            studio.store.load_snapshot(snapshot)
        except (OSError, ValueError, StudioError) as e:
            _fail(f"Error loading storyboard: {e}")
        project_name = snapshot.project_name
    return studio, project_name


def _save_studio(studio: Studio, storyboard: Path, project_name: str) -> None:
    try:
        storyboard.parent.mkdir(parents=True, exist_ok=True)
        studio.store.snapshot(project_name).to_yaml(storyboard)
    except OSError as e:
        _fail(f"Error saving storyboard: {e}")
    typer.echo(f"\n✅ Storyboard saved: {storyboard}")


def _print_progress(result: PollResult) -> None:
    typer.echo(f"   ⏳ {result.status.value} ({result.progress:.0f}%)")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Choreo Studio - Storyboard action sequences and render them with AI."""
    pass


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run the studio HTTP API."""
    from .api.main import run

    setup_logging(verbose)
    run(host=host, port=port, reload=reload)


@app.command()
def status() -> None:
    """Show which vendor integrations are configured."""
    report = Studio().status_report()

    typer.echo("🔌 APIs:")
    for api in report["apis"].values():
        icon = "✅" if api["configured"] else "⚠️ "
        typer.echo(f"   {icon} {api['name']} ({api['endpoint']})")

    typer.echo(f"\n   Base URL: {report['environment']['comfyui_base_url']}")

    if report["setup_needed"]:
        typer.echo("\n🛠️  Setup needed:")
        for item in report["setup_needed"]:
            typer.echo(f"   - {item}")
    typer.echo(f"\n{report['message']}")


@app.command()
def ingest(
    text: str = typer.Argument(..., help='Action text, e.g. "@Joey punches @Bill kicks"'),
    scene: str = typer.Option("scene-1", "--scene", "-s", help="Scene to add nodes to"),
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-o", help="Storyboard YAML file (appended to if present)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Break @Name mentions into storyboard nodes."""
    setup_logging(verbose)
    studio, project_name = _load_studio(storyboard)

    try:
        report = studio.ingest_text(scene, text)
    except StudioError as e:
        _fail(e.message)

    if not report.created and not report.failures:
        _fail('No "@Name action" mentions found')

    typer.echo(f"🎬 Scene {scene}: {len(report.created)} node(s) created")
    for node in report.created:
        typer.echo(f"   • [{node.position}] {', '.join(node.characters)}: {node.action}")
    for failure in report.failures:
        typer.echo(f"   ❌ entry {failure.index} ({failure.character}): {failure.message}")

    _save_studio(studio, storyboard, project_name)


@app.command()
def show(
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD,
        "--storyboard",
        "-s",
        help="Storyboard YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    scene: Optional[str] = typer.Option(None, "--scene", help="Only show this scene"),
) -> None:
    """Print a storyboard."""
    try:
        snapshot = StoryboardSnapshot.from_yaml(storyboard)
    except (OSError, ValueError) as e:
        _fail(f"Error loading storyboard: {e}")

    typer.echo(f"📁 Project: {snapshot.project_name}")
    typer.echo(f"   Scenes: {len(snapshot.scenes)}, nodes: {snapshot.node_count}")

    for scene_id, nodes in snapshot.scenes.items():
        if scene and scene_id != scene:
            continue
        total = sum(node.duration for node in nodes)
        typer.echo(f"\n📽️  {scene_id} ({total:.1f}s)")
        for node in nodes:
            typer.echo(
                f"   [{node.position}] {', '.join(node.characters)}: {node.action} "
                f"({node.camera.value}, {node.lighting.value}, {node.duration}s)"
            )


@app.command()
def analyze(
    text: str = typer.Argument(..., help="Action sequence description"),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Extra scene context"),
    scene: Optional[str] = typer.Option(
        None, "--scene", "-s", help="Add the analysed actions to this scene"
    ),
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD, "--storyboard", "-o", help="Storyboard YAML file used with --scene"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Analyze an action description with Claude."""
    setup_logging(verbose)
    studio, project_name = _load_studio(storyboard) if scene else (Studio(), "")

    typer.echo("🧠 Analyzing scene...")
    try:
        analysis, job_id, report = studio.analyze(text, scene_id=scene, context=context)
    except StudioError as e:
        _fail(e.message)

    typer.echo(f"   Job: {job_id}")
    for action in analysis.parsed_actions:
        typer.echo(f"   • {action.character}: {action.action} [{action.intent}, {action.intensity}]")
    if analysis.scene_analysis:
        summary = analysis.scene_analysis
        typer.echo(f"\n   Tone: {summary.overall_tone}, pacing: {summary.pacing}")
    if analysis.enhanced_description:
        typer.echo(f"\n   {analysis.enhanced_description}")
    for suggestion in analysis.storyboard_suggestions:
        typer.echo(f"   💡 {suggestion}")

    if report is not None:
        typer.echo(f"\n🎬 Added {len(report.created)} node(s) to {scene}")
        for failure in report.failures:
            typer.echo(f"   ❌ entry {failure.index} ({failure.character}): {failure.message}")
        _save_studio(studio, storyboard, project_name)


@app.command()
def render(
    scene: str = typer.Argument(..., help="Scene to render"),
    storyboard: Path = typer.Option(
        DEFAULT_STORYBOARD,
        "--storyboard",
        "-s",
        help="Storyboard YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    wait: bool = typer.Option(False, "--wait", "-w", help="Wait for the render to finish"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Submit a Framepack stitch job for a storyboard scene."""
    setup_logging(verbose)
    studio, _ = _load_studio(storyboard)

    try:
        job_id = studio.render_scene(scene)
        typer.echo(f"🎞️  Render submitted: {job_id}")
        if not wait:
            return
        record = studio.finish_render(job_id, on_progress=_print_progress)
    except StudioError as e:
        _fail(e.message)

    if record.state != JobState.COMPLETED:
        _fail(f"Render {record.state.value}: {record.error_message or 'no result'}")
    typer.echo(f"✅ Render complete: {record.result}")


@app.command()
def poll(
    kind: JobKind = typer.Argument(..., help="Job kind"),
    job_id: str = typer.Argument(..., help="Job id"),
) -> None:
    """Check a job's status once."""
    try:
        result = Studio().poll_job(kind, job_id)
    except StudioError as e:
        _fail(e.message)

    typer.echo(f"📡 {result.job_id}: {result.status.value} ({result.progress:.0f}%)")
    if result.endpoint:
        typer.echo(f"   Endpoint: {result.endpoint}")
    if result.result is not None:
        typer.echo(f"   Result: {result.result}")


@app.command()
def portrait(
    name: str = typer.Argument(..., help="Character name"),
    description: str = typer.Argument(..., help="Appearance and fighting style"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output PNG path (defaults to ./assets/<name>.png)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate a character portrait with Google Imagen."""
    setup_logging(verbose)
    output = output or Path("assets") / f"{name.lower()}.png"

    typer.echo(f"🎨 Generating portrait of {name}")
    try:
        character, _ = Studio().add_character(name, description)
    except StudioError as e:
        _fail(e.message)

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(base64.b64decode(character.image_base64))
    except OSError as e:
        _fail(f"Error saving portrait: {e}")
    typer.echo(f"✅ Portrait saved: {output}")


if __name__ == "__main__":
    app()
