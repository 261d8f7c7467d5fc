"""Chat model loading and the capability helpers nodes use to talk to it."""

import asyncio
import json
import logging
import re
from typing import Any, Optional, Protocol, Sequence, Set, Tuple, Type, TypeVar, runtime_checkable

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, ValidationError

from ..config.settings import DEFAULT_PROVIDER, DEFAULT_TEMPERATURE, GEMINI_API_KEY, GEMINI_MODEL_CONFIG
from .errors import CollaboratorInvocationError, CollaboratorTimeout, StructuredOutputError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

# Timed-out calls still running; the event loop only keeps weak references to tasks
_late_calls: Set["asyncio.Task[Any]"] = set()


@runtime_checkable
class StructuredGenerator(Protocol):
    """A model that can be constrained to return a schema-shaped value."""

    def with_structured_output(self, schema: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class ToolCaller(Protocol):
    """A model that can be bound to a set of tools."""

    def bind_tools(self, tools: Sequence[Any], **kwargs: Any) -> Any: ...


def split_model_name(fully_specified_name: str) -> Tuple[str, str]:
    """Split ``"<provider>/<model>"``; a bare model name uses the default provider."""
    provider, sep, model = fully_specified_name.partition("/")
    if not sep:
        return DEFAULT_PROVIDER, fully_specified_name
    return provider, model


def load_chat_model(
    fully_specified_name: str,
    temperature: float = DEFAULT_TEMPERATURE,
    api_key: Optional[str] = None,
) -> BaseChatModel:
    """Initialize the chat model named ``"<provider>/<model>"``."""
    provider, model = split_model_name(fully_specified_name)
    try:
        if provider == "google_genai":
            llm = ChatGoogleGenerativeAI(
                model=model,
                google_api_key=api_key or GEMINI_API_KEY,
                **{**GEMINI_MODEL_CONFIG, "temperature": temperature},
            )
        else:
            llm = init_chat_model(model, model_provider=provider, temperature=temperature)
        logging.info(f"Chat model '{provider}/{model}' initialized successfully.")
        return llm
    except Exception as e:
        logging.error(f"Failed to initialize chat model '{fully_specified_name}': {e}", exc_info=True)
        raise CollaboratorInvocationError(f"Could not initialize chat model '{fully_specified_name}': {e}") from e


def get_text_content(content: Any) -> str:
    """Flatten message content that may be a string or a list of content parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(str(item.get("text", "")))
        return " ".join(parts)
    return ""


def bind_tools_if_supported(model: Any, tools: Sequence[Any]) -> Any:
    """Bind ``tools`` when the model supports tool calling, otherwise return it unchanged."""
    if isinstance(model, ToolCaller):
        try:
            return model.bind_tools(tools)
        except NotImplementedError:
            logging.warning(f"{type(model).__name__} does not support tool binding; invoking without tools.")
    return model


def _discard_late_result(task: "asyncio.Task[Any]") -> None:
    _late_calls.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logging.debug(f"Late chat model call failed after its timeout: {task.exception()}")


async def ainvoke_with_timeout(model: Any, messages: Sequence[BaseMessage], timeout: float) -> Any:
    """Invoke ``model`` and give up after ``timeout`` seconds.

    On timeout the call is not cancelled: it keeps running in the background
    and whatever it eventually returns is discarded.
    """
    task = asyncio.ensure_future(model.ainvoke(list(messages)))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if not done:
        _late_calls.add(task)
        task.add_done_callback(_discard_late_result)
        logging.warning(f"Chat model did not answer within {timeout}s; the late reply will be ignored.")
        raise CollaboratorTimeout(timeout)

    try:
        return task.result()
    except Exception as e:
        raise CollaboratorInvocationError(f"LLM invocation failed: {e}") from e


def extract_json_object(text: str, schema: Type[SchemaT]) -> SchemaT:
    """Parse the first brace-delimited span of ``text`` into ``schema``."""
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise ValueError("Response does not contain a JSON object")
    return schema.model_validate(json.loads(match.group(0)))


async def invoke_structured(
    model: Any,
    messages: Sequence[BaseMessage],
    schema: Type[SchemaT],
    fallback_messages: Optional[Sequence[BaseMessage]] = None,
    error_cls: Type[StructuredOutputError] = StructuredOutputError,
) -> SchemaT:
    """Obtain a ``schema`` instance from the model.

    Constrained decoding is tried first when the model offers it. If it is
    missing or fails, the model is asked for plain text (``fallback_messages``
    when given) and the first JSON object in the reply is validated against
    ``schema``. Raises ``error_cls`` when neither path yields a valid value.
    """
    if isinstance(model, StructuredGenerator):
        try:
            result = await model.with_structured_output(schema).ainvoke(list(messages))
            if isinstance(result, schema):
                return result
            if result is not None:
                return schema.model_validate(result)
            logging.warning("Structured output returned nothing, falling back to JSON parsing.")
        except Exception as e:
            logging.warning(f"Structured output failed, falling back to JSON parsing: {e}")

    try:
        response = await model.ainvoke(list(fallback_messages or messages))
    except Exception as e:
        raise error_cls(f"LLM invocation failed: {e}") from e

    content = get_text_content(getattr(response, "content", response))
    logging.debug(f"Raw structured-output fallback response: {content[:500]}")
    try:
        return extract_json_object(content, schema)
    except (ValueError, ValidationError) as e:
        raise error_cls(f"Could not parse {schema.__name__} from model output: {e}") from e
