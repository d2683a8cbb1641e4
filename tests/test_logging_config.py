import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.remote",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Dropping reading entry %d",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    output = formatter.format(_record(sensor="S1", reason="invalid numeric value", unrelated="x"))

    assert output == "Dropping reading entry 3 | sensor=S1 reason=invalid numeric value"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record(sensor=None)) == "Dropping reading entry 3"
