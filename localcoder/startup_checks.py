# localcoder/startup_checks.py
import httpx
from rich.panel import Panel

from localcoder.logger import get_logger

logger = get_logger(__name__)


def check_model_server(api_base: str, console_obj, timeout: float = 3.0) -> bool:
    """
    Checks that the model server answers at api_base.
    Prints a warning panel when it does not; the session still starts, since the
    server may come up later or a remote provider may be configured.
    """
    if not api_base:
        return True
    try:
        response = httpx.get(api_base, timeout=timeout)
        logger.debug("Model server %s answered %s", api_base, response.status_code)
        return True
    except httpx.HTTPError as e:
        message = (
            f"Could not reach the model server at {api_base}:\n  {e}\n\n"
            "Start it first, for example:\n"
            "  ollama serve\n\n"
            "or point local-coder elsewhere with LITELLM_API_BASE, [model] api_base in config.toml,\n"
            "or '/set api_base <url>'."
        )
        console_obj.print(Panel(message, title="[bold yellow]Model Server Check Failed[/bold yellow]", border_style="yellow", expand=False))
        return False
