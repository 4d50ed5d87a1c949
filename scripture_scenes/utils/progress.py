from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from typing import Optional


def create_progress(transient: bool = False) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TextColumn("[cyan]{task.completed} scene(s)"),
        TimeElapsedColumn(),
        transient=transient,
    )


def describe_step(progress: Progress, task_id, reference: str, step: Optional[str] = None) -> None:
    """Update the spinner text for the verse currently being generated."""
    text = f"Generating {reference}"
    if step:
        text += f" ({step})"
    progress.update(task_id, description=text)
