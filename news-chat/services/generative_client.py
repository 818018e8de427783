#!/usr/bin/env python3
"""
Generative model providers: prompt text in, completion text out.
"""
import asyncio
from typing import AsyncIterator, Optional

from config.llama_strategy import LlamaParamStrategy
from config.settings import LLM_PATH, LLM_TIMEOUT, OLLAMA_MODEL, USE_OLLAMA
from models.errors import GenerationError
from utils.logging_config import setup_logging

log = setup_logging("generative_client.log")

_DONE = object()


class GenerativeClient:
    """Base class: timeouts and empty-response checks around a provider call."""

    provider = "base"

    def __init__(self, timeout: float = LLM_TIMEOUT):
        self.timeout = timeout

    async def _complete(self, prompt: str) -> str:
        raise NotImplementedError()

    def _stream(self, prompt: str) -> AsyncIterator[str]:
        raise NotImplementedError()

    async def complete(self, prompt: str) -> str:
        try:
            text = await asyncio.wait_for(self._complete(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise GenerationError(f"{self.provider} generation timed out after {self.timeout}s") from e
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"{self.provider} generation failed: {e}") from e

        text = (text or "").strip()
        if not text:
            raise GenerationError(f"{self.provider} returned an empty response")
        return text

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Yield completion chunks as they arrive.

        The timeout covers the whole stream, not each chunk. A stream that ends
        without any text raises GenerationError.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        iterator = self._stream(prompt).__aiter__()
        produced = False
        while True:
            remaining = deadline - loop.time()
            try:
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                chunk = await asyncio.wait_for(iterator.__anext__(), timeout=remaining)
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError as e:
                raise GenerationError(f"{self.provider} stream timed out after {self.timeout}s") from e
            except GenerationError:
                raise
            except Exception as e:
                raise GenerationError(f"{self.provider} stream failed: {e}") from e
            if chunk:
                produced = produced or bool(chunk.strip())
                yield chunk
        if not produced:
            raise GenerationError(f"{self.provider} returned an empty response")

    def describe(self) -> dict:
        return {"provider": self.provider}


class ChatModelGenerativeClient(GenerativeClient):
    """Wraps a langchain chat model (ChatOllama in production)."""

    provider = "ollama"

    def __init__(self, llm, model_name: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.llm = llm
        self.model_name = model_name

    @staticmethod
    def _text(message) -> str:
        content = getattr(message, "content", message)
        if isinstance(content, list):
            # Some chat models return content blocks
            return "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
        return str(content or "")

    async def _complete(self, prompt: str) -> str:
        return self._text(await self.llm.ainvoke(prompt))

    async def _stream(self, prompt: str) -> AsyncIterator[str]:
        async for chunk in self.llm.astream(prompt):
            yield self._text(chunk)

    def describe(self) -> dict:
        return {"provider": self.provider, "model": self.model_name}


class LlamaCppGenerativeClient(GenerativeClient):
    """Runs a local GGUF model through llama_cpp on a worker thread."""

    provider = "llama_cpp"

    def __init__(self, model, sampling_params: Optional[dict] = None, **kwargs):
        super().__init__(**kwargs)
        self.model = model
        self.sampling_params = sampling_params or {}

    async def _complete(self, prompt: str) -> str:
        result = await asyncio.to_thread(self.model.create_completion, prompt, **self.sampling_params)
        return result["choices"][0]["text"]

    async def _stream(self, prompt: str) -> AsyncIterator[str]:
        chunks = await asyncio.to_thread(self.model.create_completion, prompt, stream=True, **self.sampling_params)
        iterator = iter(chunks)
        while True:
            part = await asyncio.to_thread(next, iterator, _DONE)
            if part is _DONE:
                break
            yield part["choices"][0]["text"]

    def describe(self) -> dict:
        return {"provider": self.provider, "model": LLM_PATH}


def create_generative_client() -> GenerativeClient:
    """Build the configured generative client."""
    strategy = LlamaParamStrategy()
    if USE_OLLAMA:
        from langchain_ollama import ChatOllama

        log.info(f"LLM: ollama ({OLLAMA_MODEL})")
        return ChatModelGenerativeClient(ChatOllama(**strategy.get_ollama_params()), model_name=OLLAMA_MODEL)

    from llama_cpp import Llama

    log.info(f"LLM: llama_cpp ({LLM_PATH})")
    return LlamaCppGenerativeClient(Llama(**strategy.get_model_params()), sampling_params=strategy.get_sampling_params())
