"""Global pytest configuration and fixtures for the test suite."""

import logging
import sys
import textwrap
import uuid

import pytest

from clockmaker.scheduler import ManualScheduler, set_default_scheduler


@pytest.fixture
def scheduler():
    """Virtual clock scheduler; tests move time with ``scheduler.advance(ms)``."""
    return ManualScheduler()


@pytest.fixture(autouse=True)
def reset_default_scheduler():
    """Keep the process-wide default scheduler from leaking between tests."""
    yield
    set_default_scheduler(None)


@pytest.fixture
def restore_logging():
    """Restore root logger handlers and level after tests that reconfigure logging."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level

    yield root

    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def handler_module(tmp_path, monkeypatch):
    """Write an importable module of timer handlers and return its name.

    The module records ticks in ``ticks`` and errors in ``errors``.
    """
    module_name = f"clockmaker_jobs_{uuid.uuid4().hex}"
    source = textwrap.dedent(
        """
        ticks = []
        errors = []
        not_callable = 42


        def record(timer):
            ticks.append(timer.get_num_ticks())


        def record_async(timer, done):
            ticks.append(timer.get_num_ticks())
            done()


        def fail(timer):
            raise RuntimeError(f"tick {timer.get_num_ticks()} failed")


        def on_error(err):
            errors.append(err)


        class Jobs:
            @staticmethod
            def nested(timer):
                ticks.append(("nested", timer.get_num_ticks()))
        """
    )
    (tmp_path / f"{module_name}.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))

    yield module_name

    sys.modules.pop(module_name, None)
