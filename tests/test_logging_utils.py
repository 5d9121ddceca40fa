from __future__ import annotations

from datetime import date
import json
import logging
import sys
import unittest

from jobflow.logging_utils import JsonFormatter


def _record(msg: str, **extra) -> logging.LogRecord:  # type: ignore[no-untyped-def]
    record = logging.LogRecord("jobflow.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class JsonFormatterTests(unittest.TestCase):
    def test_extra_fields_are_included(self) -> None:
        payload = json.loads(
            JsonFormatter().format(
                _record("compensation_requested", user_id="u1", hours=4.0, day=date(2024, 3, 7))
            )
        )

        self.assertEqual(payload["message"], "compensation_requested")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["logger"], "jobflow.test")
        self.assertEqual(payload["user_id"], "u1")
        self.assertEqual(payload["hours"], 4.0)
        self.assertEqual(payload["day"], "2024-03-07")
        self.assertNotIn("levelno", payload)
        self.assertNotIn("args", payload)

    def test_exception_is_serialized(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "jobflow.test", logging.ERROR, __file__, 20, "unhandled_error", None, sys.exc_info()
            )

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["level"], "ERROR")
        self.assertIn("ValueError: boom", payload["exception"])

    def test_non_ascii_is_kept(self) -> None:
        output = JsonFormatter().format(_record("Niet genoeg compensatie uren", user_name="Zoë"))

        self.assertIn("Zoë", output)


if __name__ == "__main__":
    unittest.main()
