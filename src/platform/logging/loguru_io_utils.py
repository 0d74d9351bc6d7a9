from inspect import getfile, getfullargspec, getsourcelines
from os.path import basename
import re
from time import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    MASK,
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


_MAX_CONTENT_LENGTH = 1000

# key=value / key: value / 'key': 'value' pairs whose key looks sensitive
_SENSITIVE_PAIR = re.compile(
    r"""(['"]?(?:%s)\w*['"]?\s*[=:]\s*)(['"]?)[^,'"\s)}]+(['"]?)""" % '|'.join(SENSITIVE_KEYWORDS),
    re.IGNORECASE,
)


def get_chain_start_time() -> float:
    if not (start_time := chain_start_time_var.get()):
        start_time = time()
        chain_start_time_var.set(start_time)
    return start_time


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    target = getattr(func, '__func__', func)
    try:
        lineno = getsourcelines(target)[1]
        filename = basename(getfile(target))
    except (OSError, TypeError):
        return func.__qualname__
    return f'{filename}::{func.__qualname__}:{lineno}'


def reset_call_depth() -> None:
    layer = max(call_depth_var.get() - 1, 0)
    call_depth_var.set(layer)
    if not layer:
        chain_start_time_var.set(0)


def normalize_args_kwargs(
    func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[tuple[Any, ...], dict[Any, Any]]:
    """Drop keyword arguments the wrapped function cannot accept."""
    target = getattr(func, '__wrapped__', func)
    try:
        spec = getfullargspec(target)
    except TypeError:
        return args, kwargs
    if not spec.varkw:
        accepted = set(spec.args) | set(spec.kwonlyargs)
        kwargs = {k: v for k, v in kwargs.items() if k in accepted}
    return args, kwargs


def is_sensitive_keyword(keyword: Any) -> bool:
    return isinstance(keyword, str) and any(word in keyword.lower() for word in SENSITIVE_KEYWORDS)


def should_mask_keyword(keyword: Any, value: Any) -> Any:
    return MASK if is_sensitive_keyword(keyword) else value


def mask_sensitive(data: Any) -> Any:
    if data is None or isinstance(data, bool | int | float):
        return data
    data_str = str(data)
    masked = _SENSITIVE_PAIR.sub(lambda m: f'{m.group(1)}{m.group(2)}{MASK}{m.group(3)}', data_str)
    return data if masked == data_str else masked


def truncate_content(data: Any) -> Any:
    if isinstance(data, str) and len(data) > _MAX_CONTENT_LENGTH:
        return f'{data[:_MAX_CONTENT_LENGTH]}...(truncated {len(data) - _MAX_CONTENT_LENGTH} chars)'
    return data
