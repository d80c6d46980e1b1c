"""로깅 및 트레이싱 유틸리티"""

import functools
import inspect
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable

from loguru import logger


def configure_logging(log_file_path: Path, level: str = "DEBUG") -> None:
    """콘솔(stderr)과 회전되는 JSON 디버그 로그 파일에 로그를 남기도록 설정합니다."""
    logger.remove()
    if sys.stderr:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | <yellow>{extra}</yellow>",
        )
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file_path,
        level=level,
        rotation="10 MB",
        retention="7 days",
        encoding="utf-8",
        backtrace=True,
        diagnose=False,
        serialize=True,
    )


def _describe_call(func: Callable, args: tuple, kwargs: dict[str, Any]) -> str:
    # 메서드라면 self는 제외
    if args and inspect.ismethod(getattr(args[0], func.__name__, None)):
        args = args[1:]
    args_repr = [repr(a) for a in args]
    kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
    return f"{func.__module__}.{func.__qualname__}({', '.join(args_repr + kwargs_repr)})"


@contextmanager
def _timed_call(func: Callable, args: tuple, kwargs: dict[str, Any]):
    logger.debug(f"→ {_describe_call(func, args, kwargs)}")
    start_time = time.perf_counter()
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.debug(
            f"✗ {func.__qualname__} failed after {elapsed:.3f}s: {e.__class__.__name__}: {e}"
        )
        raise
    elapsed = time.perf_counter() - start_time
    logger.debug(f"← {func.__qualname__} completed in {elapsed:.3f}s")


def log_function_call(func: Callable) -> Callable:
    """함수 호출을 자동으로 로깅하는 데코레이터

    함수의 시작, 종료, 실행 시간을 로깅합니다.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with _timed_call(func, args, kwargs):
                return await func(*args, **kwargs)

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with _timed_call(func, args, kwargs):
            return func(*args, **kwargs)

    return sync_wrapper


@contextmanager
def log_step(step_name: str, **extra_context):
    """단계별 작업을 로깅하는 컨텍스트 매니저

    Usage:
        with log_step("Bootstrapping dashboard", base_url=url):
            # do work
            pass
    """
    step_logger = logger.bind(**extra_context)
    step_logger.info(f"▶ {step_name}")
    start_time = time.perf_counter()

    try:
        yield
        elapsed = time.perf_counter() - start_time
        step_logger.bind(duration=elapsed).info(f"✓ {step_name} completed in {elapsed:.3f}s")
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        step_logger.bind(duration=elapsed, error_type=e.__class__.__name__).error(
            f"✗ {step_name} failed after {elapsed:.3f}s: {e.__class__.__name__}: {e}"
        )
        raise
