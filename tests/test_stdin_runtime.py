from __future__ import annotations

import io
import os
import tempfile
import threading
import unittest
from pathlib import Path
from typing import Any
from unittest import mock

from bulkmail.adapters import stdin_runtime
from bulkmail.adapters.stream_parser import RecordParser
from bulkmail.domain.records import BatchStore, RequestKind


class FailingStream:
    def read1(self, size: int = -1) -> bytes:
        raise OSError("stdin closed unexpectedly")


def make_settings(output_dir: str, **overrides: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "debug": True,
        "configuration_set": "default",
        "source": "noreply@localhost",
        "output_dir": output_dir,
        "reply_to": [],
        "endpoint_url": None,
        "region": None,
        "connect_timeout_seconds": 10.0,
        "read_timeout_seconds": 30.0,
    }
    return base | overrides


class PumpStreamTests(unittest.TestCase):
    def test_flush_runs_after_each_line_before_next_byte(self) -> None:
        store = BatchStore()
        parser = RecordParser(store)
        seen: list[tuple[int, int]] = []

        def on_line_complete() -> None:
            seen.append(
                (len(store[RequestKind.ACTIVATION]), len(store[RequestKind.PASSWORD_RECOVERY]))
            )
            store[RequestKind.ACTIVATION].clear()
            store[RequestKind.PASSWORD_RECOVERY].clear()

        stream = io.BytesIO(b"1,a,b,c,d\n2,e,f,g,h\n")
        stdin_runtime.pump_stream(stream, parser, on_line_complete, chunk_size=4)

        self.assertEqual(seen, [(1, 0), (0, 1)])

    def test_line_on_open_pipe_is_flushed_without_waiting_for_more_input(self) -> None:
        read_fd, write_fd = os.pipe()
        store = BatchStore()
        parser = RecordParser(store)
        flushed = threading.Event()

        with os.fdopen(read_fd, "rb") as stream:
            worker = threading.Thread(
                target=stdin_runtime.pump_stream,
                args=(stream, parser, flushed.set),
                daemon=True,
            )
            worker.start()
            try:
                os.write(write_fd, b"1,a@x.com,alice,topsecret,\n")
                self.assertTrue(
                    flushed.wait(2), "a complete line on an open pipe was never flushed"
                )
                self.assertEqual(len(store[RequestKind.ACTIVATION]), 1)
            finally:
                os.close(write_fd)
                worker.join(2)

        self.assertFalse(worker.is_alive())


class SenderRuntimeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = str(Path(self._tmp.name) / "output")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_end_of_stream_is_fatal_after_sending(self) -> None:
        sent: list[dict[str, Any]] = []

        def send_bulk(request: dict[str, Any]) -> dict[str, Any]:
            sent.append(request)
            return {"status": "success", "destination_statuses": ["Success"]}

        with self.assertLogs("bulkmail.adapters.stdin_runtime", level="INFO") as logs:
            exit_code = stdin_runtime.run_sender_forever(
                io.BytesIO(b"1,a@x.com,alice,topsecret,\n2,b@x.com,bob,pw,123456\n"),
                settings=make_settings(self.output_dir),
                sender=send_bulk,
            )

        self.assertEqual(exit_code, 1)
        self.assertEqual([item["template"] for item in sent], ["activationv1", "passwordrecoveryv1"])
        self.assertTrue(os.path.isdir(self.output_dir))
        self.assertIn("end of input stream", logs.output[-1])

    def test_parse_error_stops_ingestion(self) -> None:
        sent: list[dict[str, Any]] = []

        def send_bulk(request: dict[str, Any]) -> dict[str, Any]:
            sent.append(request)
            return {"status": "success"}

        with self.assertLogs("bulkmail.adapters.stdin_runtime", level="ERROR") as logs:
            exit_code = stdin_runtime.run_sender_forever(
                io.BytesIO(b"1,a,b,c,d\n9,a,b,c,d\n1,e,f,g,h\n"),
                settings=make_settings(self.output_dir),
                sender=send_bulk,
            )

        self.assertEqual(exit_code, 1)
        self.assertEqual(len(sent), 1)
        self.assertIn("failed to parse input", logs.output[-1])

    def test_dispatch_failure_does_not_stop_ingestion(self) -> None:
        calls: list[str] = []

        def send_bulk(request: dict[str, Any]) -> dict[str, Any]:
            calls.append(request["destinations"][0]["to_address"])
            return {"status": "transport_failure", "error": "connection refused"}

        with self.assertLogs(level="ERROR"):
            stdin_runtime.run_sender_forever(
                io.BytesIO(b"1,first,b,c,d\n1,second,b,c,d\n"),
                settings=make_settings(self.output_dir),
                sender=send_bulk,
            )

        self.assertEqual(calls, ["first", "second"])

    def test_read_error_is_fatal(self) -> None:
        with self.assertLogs("bulkmail.adapters.stdin_runtime", level="ERROR") as logs:
            exit_code = stdin_runtime.run_sender_forever(
                FailingStream(),  # type: ignore[arg-type]
                settings=make_settings(self.output_dir),
                sender=lambda request: {"status": "success"},
            )

        self.assertEqual(exit_code, 1)
        self.assertIn("failed to read from stdin", logs.output[-1])

    def test_debug_mode_uses_console_sender(self) -> None:
        with mock.patch("builtins.print") as print_mock, self.assertLogs(level="INFO"):
            stdin_runtime.run_sender_forever(
                io.BytesIO(b"2,b@x.com,bob,pw,123456\n"),
                settings=make_settings(self.output_dir, debug=True),
            )

        printed = [call.args[0] for call in print_mock.call_args_list if call.args]
        self.assertIn("template=passwordrecoveryv1", printed)
        self.assertIn('  1. to=b@x.com data={"login":"bob","secret":"pw","code":"123456"}', printed)


class BatchCounterRuntimeTests(unittest.TestCase):
    def test_end_of_stream_is_clean_exit(self) -> None:
        with mock.patch("builtins.print") as print_mock:
            exit_code = stdin_runtime.run_batch_counter(
                io.BytesIO(b"1,a,b,c,d,1,e,f,g,h\n2,i,j,k,l\n")
            )

        self.assertEqual(exit_code, 0)
        self.assertEqual(
            [call.args[0] for call in print_mock.call_args_list],
            ["Batch 1 has 2 items.", "Batch 2 has 1 items."],
        )

    def test_parse_error_exits_non_zero(self) -> None:
        with self.assertLogs("bulkmail.adapters.stdin_runtime", level="ERROR"):
            exit_code = stdin_runtime.run_batch_counter(io.BytesIO(b"3,a,b,c,d\n"))

        self.assertEqual(exit_code, 1)


class SettingsFromEnvTests(unittest.TestCase):
    @mock.patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        settings = stdin_runtime.load_settings_from_env()

        self.assertFalse(settings["debug"])
        self.assertEqual(settings["configuration_set"], "default")
        self.assertEqual(settings["source"], "noreply@localhost")
        self.assertEqual(settings["output_dir"], "./output")
        self.assertEqual(settings["reply_to"], [])
        self.assertIsNone(settings["endpoint_url"])
        self.assertIsNone(settings["region"])

    @mock.patch.dict(
        os.environ,
        {
            "MF_DEBUG": "true",
            "MF_SES_CONFIG_SET": "transactional",
            "MF_SES_SOURCE": "Mercury <noreply@example.com>",
            "MF_SES_OUTPUT_PATH": "/tmp/ses",
            "MF_SES_REPLY_TO": "Support <support@example.com>, ops@example.com ",
            "AWS_DEFAULT_REGION": "eu-west-1",
            "MF_SES_READ_TIMEOUT_SECONDS": "2.5",
        },
        clear=True,
    )
    def test_reads_environment(self) -> None:
        settings = stdin_runtime.load_settings_from_env()

        self.assertTrue(settings["debug"])
        self.assertEqual(settings["configuration_set"], "transactional")
        self.assertEqual(settings["output_dir"], "/tmp/ses")
        self.assertEqual(
            settings["reply_to"], ["Support <support@example.com>", "ops@example.com"]
        )
        self.assertEqual(settings["region"], "eu-west-1")
        self.assertEqual(settings["read_timeout_seconds"], 2.5)

    @mock.patch.dict(os.environ, {"MF_DEBUG": "maybe"}, clear=True)
    def test_invalid_boolean_raises(self) -> None:
        with self.assertRaises(RuntimeError):
            stdin_runtime.load_settings_from_env()

    @mock.patch.dict(os.environ, {"MF_DEBUG": "maybe"}, clear=True)
    def test_invalid_configuration_exits_non_zero(self) -> None:
        with self.assertLogs("bulkmail.adapters.stdin_runtime", level="ERROR"):
            exit_code = stdin_runtime.run_sender_forever(io.BytesIO(b""))

        self.assertEqual(exit_code, 1)


if __name__ == "__main__":
    unittest.main()
