import asyncio
import click
from pathlib import Path

from . import __version__
from .config import Config
from .errors import PreconditionViolation
from .export import save_audio, save_image
from .models import AdvanceOutcome, AspectRatio, Operation, VoiceProfile
from .orchestrator import SceneSession
from .utils.logger import setup_logger


def build_session(config: Config) -> SceneSession:
    """Create a session backed by the Gemini service."""
    from .service.gemini import GeminiSceneService

    service = GeminiSceneService.from_config(config)
    return SceneSession(service, config.generation)


def _failure(session: SceneSession, operation: Operation) -> click.ClickException:
    error = session.error_for(operation)
    message = error.message if error else f"{operation.value} failed"
    return click.ClickException(message)


def _open_session(ctx: click.Context) -> SceneSession:
    try:
        return build_session(ctx.obj['config'])
    except ValueError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option('--config', '-c', type=click.Path(), default='config.yaml',
              help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx: click.Context, config: str, verbose: bool):
    """Scripture Scenes - illustrated, narrated scripture scenes with Gemini."""
    ctx.ensure_object(dict)

    config_path = Path(config)
    if config_path.exists():
        ctx.obj['config'] = Config.from_yaml(config_path)
    else:
        ctx.obj['config'] = Config()

    log_level = "DEBUG" if verbose else ctx.obj['config'].log_level
    logger = setup_logger(log_level)
    ctx.obj['logger'] = logger

    logger.info(f"Scripture Scenes v{__version__}")
    if config_path.exists():
        logger.info(f"Config loaded from: {config_path}")


@cli.command()
@click.argument('reference')
@click.option('--aspect-ratio', '-a', type=click.Choice([r.value for r in AspectRatio]),
              help='Image aspect ratio')
@click.option('--output', '-o', type=click.Path(), help='Override output directory')
@click.pass_context
def scene(ctx: click.Context, reference: str, aspect_ratio: str, output: str):
    """Generate the scene prompt and image for REFERENCE."""
    config = ctx.obj['config']
    logger = ctx.obj['logger']
    output_dir = Path(output) if output else config.generation.output_dir

    async def run() -> Path:
        async with _open_session(ctx) as session:
            result = await session.generate_prompt(reference)
            if result is None:
                raise _failure(session, Operation.PROMPT)

            for name, description in result.character_descriptions.items():
                logger.info(f"Character {name}: {description}")

            image = await session.generate_image(result.scene_prompt, aspect_ratio)
            if image is None:
                raise _failure(session, Operation.IMAGE)
            return save_image(image, output_dir, session.current_reference_text)

    try:
        path = asyncio.run(run())
    except PreconditionViolation as e:
        raise click.ClickException(str(e))

    click.echo(str(path))
    logger.success(f"Scene saved to {path}")


@cli.command()
@click.argument('reference')
@click.option('--aspect-ratio', '-a', type=click.Choice([r.value for r in AspectRatio]),
              help='Image aspect ratio')
@click.option('--output', '-o', type=click.Path(), help='Override output directory')
@click.option('--max-verses', type=int, help='Stop after this many scenes')
@click.pass_context
def chapter(ctx: click.Context, reference: str, aspect_ratio: str, output: str, max_verses: int):
    """Illustrate REFERENCE and every following verse until the chapter ends."""
    from .utils.progress import create_progress, describe_step

    config = ctx.obj['config']
    logger = ctx.obj['logger']
    output_dir = Path(output) if output else config.generation.output_dir
    limit = max_verses or config.generation.max_verses

    async def run() -> list[Path]:
        saved: list[Path] = []
        async with _open_session(ctx) as session:
            with create_progress() as progress:
                task_id = progress.add_task(f"Generating {reference}", total=None)

                result = await session.generate_prompt(reference)
                if result is None:
                    raise _failure(session, Operation.PROMPT)
                describe_step(progress, task_id, session.current_reference_text, "image")
                image = await session.generate_image(result.scene_prompt, aspect_ratio)
                if image is None:
                    raise _failure(session, Operation.IMAGE)
                saved.append(save_image(image, output_dir, session.current_reference_text))
                progress.update(task_id, advance=1)

                while len(saved) < limit:
                    if session.continuity.is_empty:
                        logger.warning("Scene has no characters to carry forward; stopping")
                        break
                    describe_step(progress, task_id, session.current_reference_text, "next verse")
                    outcome = await session.advance()
                    if outcome is AdvanceOutcome.CHAPTER_ENDED:
                        logger.info(session.error_for(Operation.ADVANCE).message)
                        break
                    if outcome is AdvanceOutcome.FAILED:
                        raise _failure(session, Operation.ADVANCE)
                    saved.append(save_image(session.state.image, output_dir, session.current_reference_text))
                    progress.update(task_id, advance=1)
        return saved

    try:
        saved = asyncio.run(run())
    except PreconditionViolation as e:
        raise click.ClickException(str(e))

    for path in saved:
        click.echo(str(path))
    logger.success(f"Generated {len(saved)} scene(s)")


@cli.command()
@click.argument('reference')
@click.option('--language', '-l', help='Language code (pt-BR, en-US, es-ES, fr-FR, de-DE)')
@click.pass_context
def verse(ctx: click.Context, reference: str, language: str):
    """Print the text of REFERENCE."""

    async def run() -> str:
        async with _open_session(ctx) as session:
            text = await session.fetch_verse_text(reference, language)
            if text is None:
                raise _failure(session, Operation.VERSE)
            return text

    try:
        click.echo(asyncio.run(run()))
    except PreconditionViolation as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option('--text', '-t', help='Text to narrate')
@click.option('--reference', '-r', help='Narrate the text of this reference')
@click.option('--voice', type=click.Choice([v.value for v in VoiceProfile]), help='Voice profile')
@click.option('--language', '-l', help='Language of the verse text')
@click.option('--output', '-o', type=click.Path(), required=True, help='Output WAV file')
@click.pass_context
def narrate(ctx: click.Context, text: str, reference: str, voice: str, language: str, output: str):
    """Narrate text (or a verse) into a WAV file."""
    if not text and not reference:
        raise click.ClickException("Provide --text or --reference")
    logger = ctx.obj['logger']

    async def run() -> Path:
        async with _open_session(ctx) as session:
            narration_text = text
            if narration_text is None:
                narration_text = await session.fetch_verse_text(reference, language)
                if narration_text is None:
                    raise _failure(session, Operation.VERSE)

            narration = await session.generate_narration(narration_text, voice)
            if narration is None:
                raise _failure(session, Operation.NARRATION)
            return save_audio(narration.handle.read(), Path(output))

    try:
        path = asyncio.run(run())
    except PreconditionViolation as e:
        raise click.ClickException(str(e))

    click.echo(str(path))
    logger.success(f"Narration saved to {path}")


@cli.command()
@click.option('--host', default='127.0.0.1', help='Bind address')
@click.option('--port', type=int, default=8000, help='Port')
def serve(host: str, port: int):
    """Launch the HTTP API."""
    import uvicorn
    uvicorn.run("scripture_scenes.api:app", host=host, port=port)


def main():
    cli()


if __name__ == '__main__':
    main()
