import logging

from psdparse.context import WARN_LIMIT, Event, ParseContext, Severity


def test_warning_limit(ctx, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="psdparse.context"):
        for i in range(WARN_LIMIT + 5):
            ctx.warn("warning %d", i)
    assert ctx.warning_count == WARN_LIMIT + 5
    assert len(ctx.warnings) == WARN_LIMIT + 5
    messages = [r.getMessage() for r in caplog.records]
    assert len(messages) == WARN_LIMIT + 1
    assert messages[-1] == "test.psd: (further warnings suppressed)"
    assert messages[0] == "test.psd: warning 0"


def test_always_warnings_bypass_limit(ctx, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="psdparse.context"):
        for i in range(WARN_LIMIT):
            ctx.warn("counted %d", i)
        ctx.warn("counted again")
        ctx.warn("unconditional", always=True)
    assert ctx.warning_count == WARN_LIMIT + 1
    messages = [r.getMessage() for r in caplog.records]
    assert messages[-1] == "test.psd: unconditional"


def test_reset(ctx) -> None:
    ctx.merged_alpha = True
    ctx.warn("x")
    ctx.info("y")
    ctx.reset("other.psd")
    assert ctx.name == "other.psd"
    assert not ctx.merged_alpha
    assert ctx.warning_count == 0
    assert ctx.events == []
    assert not ctx.has_warnings


def test_events(ctx) -> None:
    ctx.info("channels = %d", 3)
    ctx.warn("bad RLE count %d", 10000, offset=12)
    ctx.fatal("can't get memory")
    assert ctx.events == [
        Event(Severity.INFO, "channels = 3"),
        Event(Severity.WARNING, "bad RLE count 10000", 12),
        Event(Severity.FATAL, "can't get memory"),
    ]
    assert ctx.has_warnings


def test_message_without_args_is_not_formatted(ctx) -> None:
    ctx.warn("100% done")
    assert ctx.warnings[0].message == "100% done"


def test_fork_and_merge(ctx, caplog) -> None:
    ctx.merged_alpha = True
    child = ctx.fork()
    assert child.merged_alpha
    assert child.name == ctx.name
    with caplog.at_level(logging.INFO, logger="psdparse.context"):
        child.info("layer 0")
        child.warn("bad compression type 7", offset=40)
        assert caplog.records == []
        ctx.merge(child)
    assert [e.message for e in ctx.events] == ["layer 0", "bad compression type 7"]
    assert ctx.warnings[0].offset == 40
    assert ctx.warning_count == 1
    assert len(caplog.records) == 2


def test_merge_keeps_unconditional_warnings(ctx, caplog) -> None:
    for i in range(WARN_LIMIT + 2):
        ctx.warn("counted %d", i)
    child = ctx.fork()
    child.warn("currentpos = 802, should be 804, resynchronized", always=True)
    assert child.warnings[0].always
    with caplog.at_level(logging.WARNING, logger="psdparse.context"):
        ctx.merge(child)
    assert ctx.warning_count == WARN_LIMIT + 2
    assert [r.getMessage() for r in caplog.records] == [
        "test.psd: currentpos = 802, should be 804, resynchronized"
    ]


def test_severity_levels() -> None:
    assert Severity.WARNING == logging.WARNING
    assert Severity.INFO < Severity.WARNING < Severity.FATAL
    assert ParseContext().warn_limit == WARN_LIMIT == 10
