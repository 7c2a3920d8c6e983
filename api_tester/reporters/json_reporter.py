"""JSON reporter for machine-readable output.

Writes one JSON document describing the whole run to a stream (stdout by
default) once all endpoints have been tested. Nothing is written to disk.
"""

import json
import sys
from typing import TYPE_CHECKING, Optional, TextIO

from api_tester.reporters.base import Reporter

if TYPE_CHECKING:
    from api_tester.runner import RunResult


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        stream: Where to write the document, defaults to sys.stdout
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def on_run_start(self, endpoints) -> None:
        """No-op for JSON reporter."""
        pass

    def on_endpoint_start(self, index, total, endpoint) -> None:
        """No-op for JSON reporter."""
        pass

    def on_stage(self, endpoint, message) -> None:
        """No-op for JSON reporter."""
        pass

    def on_endpoint_complete(self, endpoint, outcome) -> None:
        """No-op - data comes from the run result."""
        pass

    def on_run_complete(self, result: "RunResult") -> dict:
        """Generates and writes the JSON document.

        Returns:
            The generated JSON data as a dictionary
        """
        output = result.to_dict()
        output["summary"]["all_passed"] = not result.has_failures

        stream = self.stream or sys.stdout
        json.dump(output, stream, indent=2)
        stream.write("\n")
        return output
