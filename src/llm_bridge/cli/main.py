"""llm-bridge CLI entry point."""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import click

from llm_bridge._base64 import guess_image_type
from llm_bridge.errors import SDKError
from llm_bridge.providers.router import ProviderRouter
from llm_bridge.types.config import ProviderSettings
from llm_bridge.types.content import ContentPart
from llm_bridge.types.messages import Message
from llm_bridge.types.streaming import GroundingEvent, ReasoningEvent, TextEvent, UsageEvent


def _router(ctx: click.Context) -> ProviderRouter:
    obj = ctx.obj
    try:
        settings = ProviderSettings.from_env(obj["provider"])
        overrides = {k: v for k, v in obj["overrides"].items() if v is not None}
        if overrides:
            settings = dataclasses.replace(settings, **overrides)
        return ProviderRouter(settings, obj.get("services"))
    except SDKError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("--provider", envvar="LLM_BRIDGE_PROVIDER", help="Provider name, e.g. openrouter")
@click.option("--model", envvar="LLM_BRIDGE_MODEL", help="Model id")
@click.option("--api-key", envvar="LLM_BRIDGE_API_KEY", help="API key")
@click.option("--base-url", envvar="LLM_BRIDGE_BASE_URL", help="Override the vendor base URL")
@click.option("--verbose/--quiet", default=False, help="Log requests and usage to stderr")
@click.pass_context
def cli(
    ctx: click.Context,
    provider: str | None,
    model: str | None,
    api_key: str | None,
    base_url: str | None,
    verbose: bool,
) -> None:
    """llm-bridge: talk to LLM vendors through one streaming interface."""
    ctx.ensure_object(dict)
    ctx.obj["provider"] = provider
    ctx.obj["overrides"] = {"model_id": model, "api_key": api_key, "base_url": base_url}
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.pass_context
def models(ctx: click.Context) -> None:
    """List the models the provider offers and show the active one."""
    router = _router(ctx)
    try:
        catalog = router.refresh_models()
        current = router.current_model()
    except SDKError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        router.close()
    for model_id in sorted(catalog):
        info = catalog[model_id]
        marker = "*" if model_id == current.id else " "
        click.echo(f"{marker} {model_id}  context={info.context_window}")
    click.echo(f"Active: {current.id} ({current.display_name}), context={current.context_window}")


@cli.command()
@click.argument("prompt")
@click.option("--system", "system_prompt", default="", help="System prompt")
@click.option(
    "--image",
    "images",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Attach an image (repeatable)",
)
@click.option("--no-stream", is_flag=True, help="Use the single-shot endpoint")
@click.option("--show-reasoning", is_flag=True, help="Print reasoning to stderr")
@click.pass_context
def chat(
    ctx: click.Context,
    prompt: str,
    system_prompt: str,
    images: tuple[str, ...],
    no_stream: bool,
    show_reasoning: bool,
) -> None:
    """Send PROMPT and print the reply."""
    if no_stream and (images or system_prompt):
        raise click.UsageError("--no-stream takes a bare prompt; drop --image and --system")

    router = _router(ctx)
    try:
        if no_stream:
            click.echo(router.complete_once(prompt))
            return

        content: str | tuple[ContentPart, ...] = prompt
        if images:
            content = tuple(
                ContentPart.of_image(Path(p).read_bytes(), guess_image_type(p)) for p in images
            ) + (ContentPart.of_text(prompt),)

        for event in router.stream_completion(system_prompt, [Message.user(content)]):
            if isinstance(event, TextEvent):
                click.echo(event.text, nl=False)
            elif isinstance(event, ReasoningEvent) and show_reasoning:
                click.secho(event.text, nl=False, dim=True, err=True)
            elif isinstance(event, GroundingEvent):
                click.echo()
                for i, source in enumerate(event.sources, start=1):
                    click.echo(f"[{i}] {source.title}: {source.url}")
            elif isinstance(event, UsageEvent):
                click.echo()
                cost = f"${event.total_cost:.6f}" if event.total_cost is not None else "unknown"
                click.echo(
                    f"tokens: in={event.input_tokens} out={event.output_tokens} "
                    f"cache_read={event.cache_read_tokens} cache_write={event.cache_write_tokens} "
                    f"cost={cost}",
                    err=True,
                )
    except SDKError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        router.close()


@cli.command("count-tokens")
@click.argument("text")
@click.pass_context
def count_tokens(ctx: click.Context, text: str) -> None:
    """Count the tokens in TEXT for the active model."""
    router = _router(ctx)
    try:
        click.echo(router.count_tokens(text))
    finally:
        router.close()
