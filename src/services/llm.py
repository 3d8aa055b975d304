import time
import asyncio
import logging
from typing import Dict, Any, List, Optional, Protocol

from langchain_ollama import ChatOllama
from langchain_core.messages import HumanMessage
import httpx

logger = logging.getLogger(__name__)


class JudgeClient(Protocol):
    """
    Anything that can answer a scoring prompt. ``evaluate`` must return a
    dict with at least a ``content`` string.
    """

    async def evaluate(self, prompt: str) -> Dict[str, Any]:
        ...


class JudgeUnavailableError(RuntimeError):
    """The judge could not be reached or did not answer in time."""


def _native_base_url(base_url: str) -> str:
    # ChatOllama talks to Ollama's native API, not the OpenAI-compatible /v1 one
    base_url = base_url.rstrip("/")
    if base_url.endswith("/v1"):
        base_url = base_url[:-3]
    return base_url


class OllamaClient:
    """
    Scores prompts against a local Ollama model through LangChain.

    One call per prompt. Retrying is left to the batch scorer so attempts are
    counted and backed off in one place.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        timeout: float = 300.0,  # a full batch of 20 items
        num_ctx: int = 8192,
    ):
        self.base_url = _native_base_url(base_url)
        self.model = model
        self.timeout = timeout

        self.llm = ChatOllama(
            base_url=self.base_url,
            model=model,
            temperature=temperature,
            num_ctx=num_ctx,
        )

    async def evaluate(self, prompt: str) -> Dict[str, Any]:
        """
        Send one scoring prompt and return the answer with its latency.

        Raises:
            TimeoutError: The model did not answer within ``timeout``
            JudgeUnavailableError: The Ollama server refused the connection
        """
        start = time.time()

        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Judge request timed out after {self.timeout}s") from None
        except (httpx.ConnectError, ConnectionError) as e:
            raise JudgeUnavailableError(
                f"Cannot reach Ollama at {self.base_url} (model={self.model}): {e}"
            ) from e

        return {
            "raw": response,
            "content": response.content,
            "latency_ms": int((time.time() - start) * 1000),
            "model": self.model,
        }

    async def list_models(self) -> Optional[List[str]]:
        """Names of the models pulled on the server, or None if it is unreachable."""
        url = f"{self.base_url}/api/tags"
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                return [m.get("name", "") for m in resp.json().get("models", [])]
        except Exception as e:
            logger.error(f"Ollama health check error: {e} (url={url})")
            return None

    async def health_check(self) -> bool:
        """
        True when the server answers and the configured model is available.
        """
        models = await self.list_models()
        if models is None:
            return False

        # "llama3.1" is served as "llama3.1:latest"
        wanted = self.model if ":" in self.model else f"{self.model}:latest"
        if wanted not in models:
            logger.error(f"Model {self.model} is not pulled on {self.base_url} (available: {models})")
            return False
        return True
