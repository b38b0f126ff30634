"""Helper tool lookup tests."""

from __future__ import annotations

import unittest

from panefm.tools import ToolRegistry


class ToolRegistryTests(unittest.TestCase):
    def test_lookups_are_cached_per_tool(self) -> None:
        calls: list[str] = []

        def which(name: str) -> str | None:
            calls.append(name)
            return "/usr/bin/batcat" if name == "batcat" else None

        tools = ToolRegistry(which=which)

        self.assertEqual(tools.preview_helper(), "/usr/bin/batcat")
        self.assertEqual(tools.preview_helper(), "/usr/bin/batcat")
        self.assertIsNone(tools.find_helper())
        self.assertIsNone(tools.find_helper())
        self.assertEqual(calls, ["bat", "batcat", "fd", "fdfind"])


if __name__ == "__main__":
    unittest.main()
