"""Request id and staleness tests.

Only the newest request per category may be applied, whatever order the
responses arrive in.
"""

from __future__ import annotations

import itertools
import unittest
from pathlib import Path

from panefm.entries import Listing
from panefm.errors import ErrorKind, NotFoundError
from panefm.protocol import (
    Category,
    DirectoryLoaded,
    ErrorPayload,
    FindResults,
    RequestPhase,
    RequestTracker,
    Response,
)


def _nav_response(request_id: int, name: str) -> Response:
    path = Path("/") / name
    return Response(
        request_id=request_id,
        category=Category.NAVIGATION,
        payload=DirectoryLoaded(listing=Listing(path=path, entries=())),
    )


class RequestTrackerTests(unittest.TestCase):
    def test_ids_increase_independently_per_category(self) -> None:
        tracker = RequestTracker()

        self.assertEqual(tracker.issue(Category.NAVIGATION), 1)
        self.assertEqual(tracker.issue(Category.NAVIGATION), 2)
        self.assertEqual(tracker.issue(Category.PREVIEW), 1)
        self.assertEqual(tracker.latest(Category.NAVIGATION), 2)
        self.assertEqual(tracker.latest(Category.FIND), 0)

    def test_only_newest_response_applies_in_any_arrival_order(self) -> None:
        for order in itertools.permutations([1, 2, 3]):
            with self.subTest(order=order):
                tracker = RequestTracker()
                for _ in range(3):
                    tracker.issue(Category.NAVIGATION)
                applied = [
                    response.payload.listing.path.name
                    for response in (_nav_response(i, f"d{i}") for i in order)
                    if tracker.accept(response)
                ]
                self.assertEqual(applied, ["d3"])
                self.assertEqual(tracker.discarded_count(Category.NAVIGATION), 2)
                self.assertEqual(tracker.phase(Category.NAVIGATION), RequestPhase.COMPLETED)

    def test_phases_follow_request_lifecycle(self) -> None:
        tracker = RequestTracker()
        self.assertEqual(tracker.phase(Category.PREVIEW), RequestPhase.IDLE)

        first = tracker.issue(Category.PREVIEW)
        self.assertTrue(tracker.is_outstanding(Category.PREVIEW))
        second = tracker.issue(Category.PREVIEW)

        self.assertEqual(tracker.phase_of(Category.PREVIEW, first), RequestPhase.SUPERSEDED)
        self.assertEqual(tracker.phase_of(Category.PREVIEW, second), RequestPhase.REQUESTED)
        self.assertTrue(tracker.is_superseded(Category.PREVIEW, first))
        self.assertFalse(tracker.is_superseded(Category.PREVIEW, second))

        error = ErrorPayload.from_error(NotFoundError("gone", Path("/x")))
        self.assertTrue(tracker.accept(Response(request_id=second, category=Category.PREVIEW, error=error)))
        self.assertEqual(tracker.phase(Category.PREVIEW), RequestPhase.ERRORED)
        self.assertFalse(tracker.is_outstanding(Category.PREVIEW))

    def test_duplicate_final_response_is_discarded(self) -> None:
        tracker = RequestTracker()
        request_id = tracker.issue(Category.NAVIGATION)

        self.assertTrue(tracker.accept(_nav_response(request_id, "a")))
        self.assertFalse(tracker.accept(_nav_response(request_id, "a")))

    def test_partial_responses_keep_request_open_until_final(self) -> None:
        tracker = RequestTracker()
        request_id = tracker.issue(Category.FIND)
        partial = Response(
            request_id=request_id,
            category=Category.FIND,
            payload=FindResults(query="q", matches=()),
            final=False,
        )
        final = Response(request_id=request_id, category=Category.FIND, payload=FindResults(query="q", matches=()))

        self.assertTrue(tracker.accept(partial))
        self.assertTrue(tracker.accept(partial))
        self.assertEqual(tracker.phase(Category.FIND), RequestPhase.REQUESTED)
        self.assertTrue(tracker.accept(final))
        self.assertEqual(tracker.phase(Category.FIND), RequestPhase.COMPLETED)
        self.assertFalse(tracker.accept(partial))

    def test_error_payload_keeps_kind_message_and_path(self) -> None:
        payload = ErrorPayload.from_error(NotFoundError("No such file", Path("/missing")))

        self.assertEqual(payload.kind, ErrorKind.NOT_FOUND)
        self.assertEqual(payload.message, "No such file")
        self.assertEqual(payload.path, Path("/missing"))


if __name__ == "__main__":
    unittest.main()
