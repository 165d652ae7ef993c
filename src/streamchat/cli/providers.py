"""Provider factory functions for CLI.

Centralizes creation of settings and the LLM provider from environment
variables and command-line overrides.
"""

from rich.console import Console

from ..config import API_KEY_ENV, ChatSettings
from ..llm import LLMProvider, create_llm_provider

# Default console for output
_console = Console()


def get_settings(
    provider: str | None = None,
    model: str | None = None,
    timeout: float | None = None,
) -> ChatSettings:
    """Load settings from the environment and apply CLI overrides.

    Args:
        provider: Provider override
        model: Model override
        timeout: Stream timeout override in seconds

    Returns:
        Chat settings

    Raises:
        pydantic.ValidationError: If an override is out of range
    """
    settings = ChatSettings.from_env(provider=provider)
    overrides: dict[str, object] = {}
    if model:
        overrides["model"] = model
    if timeout is not None:
        overrides["timeout"] = timeout
    return ChatSettings.model_validate({**settings.model_dump(), **overrides})


def get_llm(settings: ChatSettings, console: Console | None = None) -> LLMProvider:
    """Create the LLM provider, asking for an API key if none is configured.

    The key entered at the prompt lives only for this session. An empty
    answer leaves the provider without a credential.

    Args:
        settings: Chat settings
        console: Optional Rich console for output

    Returns:
        LLM provider instance

    Raises:
        ValueError: If the provider type is not supported
    """
    import typer

    con = console or _console
    llm = create_llm_provider(settings.provider, **settings.provider_config())

    if not llm.has_credential:
        env_var = API_KEY_ENV.get(settings.provider, "OPENAI_API_KEY")
        con.print(f"[yellow]{env_var} not set.[/yellow]")
        api_key = typer.prompt("API key", default="", hide_input=True, show_default=False)
        llm.set_api_key(api_key.strip() or None)

    return llm
