"""Tests for atomicity of id allocation and the approve-time dedup claim."""

import threading
from concurrent.futures import ThreadPoolExecutor

from services.paper_ledger.app.errors import ConflictError
from services.paper_ledger.tests.factories import ADMIN, AUDITOR, digest
from shared.schemas.paper import PaperStatus


def run_together(workers: int, task):
    """Start ``workers`` calls of ``task(i)`` behind a barrier and collect results."""
    barrier = threading.Barrier(workers)

    def call(i):
        barrier.wait()
        try:
            return task(i)
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(call, range(workers)))


class TestConcurrentSubmit:
    """Tests for concurrent submissions."""

    def test_ids_unique_and_dense(self, ledger):
        """Test parallel submitters never share or skip an id."""
        workers = 16

        def task(i):
            owner = f"0x{i + 1:040x}"
            return [
                ledger.submit(owner, f"T{i}-{n}", "A", f"cid-{i}-{n}", digest(f"{i}-{n}"))
                for n in range(20)
            ]

        results = run_together(workers, task)
        ids = sorted(paper_id for batch in results for paper_id in batch)

        assert ids == list(range(1, workers * 20 + 1))
        assert ledger.paper_count == workers * 20

    def test_event_order_matches_id_order(self, ledger, outbox):
        """Test submitted events are queued in id order."""
        run_together(
            8,
            lambda i: [
                ledger.submit(f"0x{i + 1:040x}", "T", "A", "cid", digest(f"{i}-{n}"))
                for n in range(10)
            ],
        )

        paper_ids = [event.paper_id for event in outbox.snapshot()]
        assert paper_ids == sorted(paper_ids)


class TestConcurrentApprove:
    """Tests for racing approvals of papers sharing an original hash."""

    def test_exactly_one_approval_wins(self, reviewed_ledger, outbox):
        """Test only one of many same-hash papers can be published."""
        workers = 12
        paper_ids = [
            reviewed_ledger.submit(f"0x{i + 1:040x}", "T", "A", f"cid-{i}", digest("shared"))
            for i in range(workers)
        ]
        outbox.clear()

        def task(i):
            caller = AUDITOR if i % 2 else ADMIN
            reviewed_ledger.approve(caller, paper_ids[i])
            return paper_ids[i]

        results = run_together(workers, task)

        winners = [r for r in results if isinstance(r, int)]
        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == workers - 1
        assert all(c.claimed_by == winners[0] for c in conflicts)

        published = reviewed_ledger.list_papers(status=PaperStatus.PUBLISHED)
        assert [p.paper_id for p in published] == winners
        assert reviewed_ledger.claimant_of(digest("shared")) == winners[0]
        assert [e.event_type for e in outbox.snapshot()] == ["PaperApproved"]

    def test_same_paper_approved_once(self, reviewed_ledger, outbox):
        """Test parallel approvals of one paper publish it exactly once."""
        paper_id = reviewed_ledger.submit(ADMIN, "T", "A", "cid", digest("solo"))
        outbox.clear()

        results = run_together(8, lambda i: reviewed_ledger.approve(AUDITOR, paper_id))

        assert sum(1 for r in results if r is None) == 1
        assert len(outbox) == 1
