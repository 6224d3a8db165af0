from __future__ import annotations

import json
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from gobf import compile_source
from gobf.config import Settings
from gobf.webui import create_app
from gobf.webui.__main__ import main as serve_main


class CompileApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app(Settings()))

    def _compile(self, source: str, **payload):
        body = {"source": source}
        body.update(payload)
        return self.client.post("/api/compile", json=body)

    def test_health(self) -> None:
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_compile_returns_go_source(self) -> None:
        response = self._compile("+++[>+++[>+++<-]<-]>+.")
        self.assertEqual(response.status_code, 200, response.text)
        data = response.json()
        self.assertEqual(data["code"], compile_source("+++[>+++[>+++<-]<-]>+."))
        self.assertFalse(data["uses_input"])
        self.assertTrue(data["uses_output"])
        self.assertEqual(data["loops"], 2)
        self.assertEqual(data["functions"], 0)

    def test_compile_counts_functions(self) -> None:
        data = self._compile("{+}{-}!").json()
        self.assertEqual(data["functions"], 2)

    def test_compile_classic_dialect(self) -> None:
        data = self._compile("{,}!", extended=False).json()
        self.assertEqual(data["functions"], 0)
        self.assertTrue(data["uses_input"])
        self.assertNotIn("functions", data["code"])

    def test_compile_rejects_unmatched_closer(self) -> None:
        response = self._compile("+++]")
        self.assertEqual(response.status_code, 422, response.text)
        detail = response.json()["detail"]
        self.assertEqual(detail["start"], 3)
        self.assertEqual(detail["end"], 4)
        self.assertIn("Loop closed while not open", detail["message"])
        self.assertEqual(detail["context"], "+++]")

    def test_compile_respects_max_depth(self) -> None:
        response = self._compile("[[]]", max_depth=1)
        self.assertEqual(response.status_code, 422, response.text)
        self.assertIn("Nesting deeper", response.json()["detail"]["message"])

    def test_compile_validates_max_depth(self) -> None:
        response = self._compile("+", max_depth=0)
        self.assertEqual(response.status_code, 422)

    def test_compile_rejects_depth_above_ceiling(self) -> None:
        response = self._compile("[" * 5000 + "]" * 5000, max_depth=100000)
        self.assertEqual(response.status_code, 422, response.text)

    def _post_raw(self, path: str, body: dict):
        return self.client.post(
            path,
            content=json.dumps(body),
            headers={"content-type": "application/json"},
        )

    def test_compile_accepts_lone_surrogate_in_source(self) -> None:
        response = self._post_raw("/api/compile", {"source": "\ud800+"})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertIn("registers[currentIndex] += 1", response.json()["code"])

    def test_compile_error_context_with_lone_surrogate(self) -> None:
        response = self._post_raw("/api/compile", {"source": "\ud800]"})
        self.assertEqual(response.status_code, 422, response.text)
        detail = response.json()["detail"]
        self.assertEqual(detail["start"], 3)
        self.assertTrue(detail["context"].endswith("]"))


class RunApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(create_app(Settings()))

    def test_run_returns_output(self) -> None:
        response = self.client.post("/api/run", json={"source": "+" * 65 + "."})
        self.assertEqual(response.status_code, 200, response.text)
        data = response.json()
        self.assertEqual(data["output"], "A")
        self.assertEqual(data["steps"], 2)
        self.assertEqual(data["cursor"], 0)

    def test_run_reads_input(self) -> None:
        response = self.client.post("/api/run", json={"source": ",.>,.", "input": "ok"})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["output"], "ok")

    def test_run_echoes_non_ascii_input(self) -> None:
        response = self.client.post("/api/run", json={"source": ",.>,.", "input": "é"})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["output"], "é")

    def test_run_step_limit_conflict(self) -> None:
        response = self.client.post("/api/run", json={"source": "+[]", "max_steps": 10})
        self.assertEqual(response.status_code, 409, response.text)
        self.assertIn("detail", response.json())

    def test_run_rejects_unclosed_loop(self) -> None:
        response = self.client.post("/api/run", json={"source": "+["})
        self.assertEqual(response.status_code, 422, response.text)
        self.assertIn("opened but never closed", response.json()["detail"]["message"])


class ServeEntryPointTests(unittest.TestCase):
    def test_main_starts_uvicorn_with_app(self) -> None:
        with mock.patch("gobf.webui.__main__.uvicorn.run") as run, mock.patch(
            "gobf.webui.__main__.setup_logging"
        ):
            exit_code = serve_main(["--host", "0.0.0.0", "--port", "9000"])
        self.assertEqual(exit_code, 0)
        run.assert_called_once()
        args, kwargs = run.call_args
        self.assertEqual(kwargs["host"], "0.0.0.0")
        self.assertEqual(kwargs["port"], 9000)
        self.assertEqual(kwargs["log_level"], Settings().log_level.lower())
        self.assertEqual(args[0].title, "gobf compiler API")


if __name__ == "__main__":
    unittest.main()
